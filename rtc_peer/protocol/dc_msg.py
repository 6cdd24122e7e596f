"""
Codec das mensagens de controle do data channel

Formato no fio (dois objetos msgpack concatenados):
[tag]            Inteiro msgpack com o DCMessageType
[payload]        Objeto msgpack opcional (ausente = sem payload)

Ping/Pong/Lock (pedido)/Unlock trafegam apenas com a tag.

Payload SDP:
    descrição (dict) -> JSON -> zlib (DEFLATE) -> msgpack bin
O decode devolve o texto JSON já descomprimido; o parse fica com quem chama.
"""

import json
import zlib
from dataclasses import is_dataclass
from enum import Enum
from typing import Any, NamedTuple, Optional, Union

import msgpack

from .enums import DCMessageType
from .errors import DecodeError


class DCMessage(NamedTuple):
    """Mensagem de controle decodificada"""
    type: DCMessageType
    payload: Optional[Any] = None


def _to_wire(value: Any) -> Any:
    """Converte enums e dataclasses em tipos nativos do msgpack"""
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, dict):
        return {_to_wire(k): _to_wire(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_wire(v) for v in value]
    return value


def encode_dc_msg(msg_type: DCMessageType, payload: Any = None) -> bytes:
    """
    Codifica uma mensagem de controle.

    Args:
        msg_type: Tag da mensagem
        payload: Payload opcional. Para SDP, a descrição da sessão (dict)

    Returns:
        Bytes prontos para o data channel
    """
    data = msgpack.packb(int(msg_type))
    if payload is None:
        return data

    if msg_type == DCMessageType.SDP:
        text = json.dumps(_to_wire(payload))
        payload = zlib.compress(text.encode("utf-8"))

    return data + msgpack.packb(_to_wire(payload), use_bin_type=True)


def decode_dc_msg(data: Union[bytes, bytearray, memoryview]) -> DCMessage:
    """
    Decodifica uma mensagem de controle.

    Raises:
        DecodeError: tag desconhecida, dados truncados/excedentes ou
            payload SDP que não pode ser descomprimido
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise DecodeError(f"Expected binary message, got {type(data).__name__}")

    raw = bytes(data)
    if not raw:
        raise DecodeError("Empty message")

    unpacker = msgpack.Unpacker(raw=False, strict_map_key=False)
    unpacker.feed(raw)
    objects = []
    # Fim do último objeto completo; tell() também conta bytes de um objeto parcial
    end = 0
    try:
        for obj in unpacker:
            objects.append(obj)
            end = unpacker.tell()
    except (msgpack.UnpackException, ValueError) as e:
        raise DecodeError(f"Malformed msgpack data: {e}") from e

    if end != len(raw):
        raise DecodeError("Truncated message")
    if not objects or len(objects) > 2:
        raise DecodeError(f"Expected tag and optional payload, got {len(objects)} objects")

    tag = objects[0]
    if not isinstance(tag, int) or isinstance(tag, bool):
        raise DecodeError(f"Invalid message tag: {tag!r}")
    try:
        msg_type = DCMessageType(tag)
    except ValueError as e:
        raise DecodeError(f"Unknown message type: {tag}") from e

    if len(objects) == 1:
        return DCMessage(msg_type)

    payload = objects[1]
    if msg_type == DCMessageType.SDP:
        if not isinstance(payload, (bytes, bytearray)):
            raise DecodeError("SDP payload must be binary")
        try:
            payload = zlib.decompress(payload).decode("utf-8")
        except (zlib.error, UnicodeDecodeError) as e:
            raise DecodeError(f"Failed to inflate SDP payload: {e}") from e

    return DCMessage(msg_type, payload)
