"""
Protocolo do canal de controle da sessão RTC

Uso:
    from rtc_peer.protocol import DCMessageType, encode_dc_msg, decode_dc_msg

    data = encode_dc_msg(DCMessageType.LOSS_RATE, 0.02)
    msg = decode_dc_msg(data)
    assert msg.type == DCMessageType.LOSS_RATE
"""

from .enums import (
    CodecMimeType,
    CodecSupportLevel,
    ConnectionState,
    DataChannelState,
    DCMessageType,
    DEFAULT_CODEC_SUPPORT_MAP,
    MonitorEvent,
    SessionEvent,
    SignalingMessageType,
)
from .errors import (
    CodecNotFoundError,
    ConnectionFailedError,
    ConnectionTimeoutError,
    DecodeError,
    NegotiationError,
    PeerDestroyedError,
    RTCPeerError,
    SignalingError,
    SignalingLockTimeoutError,
    TrackNotFoundError,
)
from .dc_msg import DCMessage, decode_dc_msg, encode_dc_msg
from .track_info import TrackInfo, parse_media_map

__all__ = [
    # Enums
    "CodecMimeType",
    "CodecSupportLevel",
    "ConnectionState",
    "DataChannelState",
    "DCMessageType",
    "DEFAULT_CODEC_SUPPORT_MAP",
    "MonitorEvent",
    "SessionEvent",
    "SignalingMessageType",
    # Errors
    "CodecNotFoundError",
    "ConnectionFailedError",
    "ConnectionTimeoutError",
    "DecodeError",
    "NegotiationError",
    "PeerDestroyedError",
    "RTCPeerError",
    "SignalingError",
    "SignalingLockTimeoutError",
    "TrackNotFoundError",
    # Codec
    "DCMessage",
    "decode_dc_msg",
    "encode_dc_msg",
    # Types
    "TrackInfo",
    "parse_media_map",
]
