"""
Enumerações do protocolo de controle do canal lateral (data channel)
"""

from enum import Enum, IntEnum


class DCMessageType(IntEnum):
    """Tag de cada mensagem do canal de controle (primeiro objeto no fio)."""
    PING = 1
    PONG = 2
    SDP = 3
    LOSS_RATE = 4
    ROUND_TRIP_TIME = 5
    JITTER = 6
    LOCK = 7           # Pedido (sem payload) ou resposta (payload bool)
    UNLOCK = 8
    MEDIA_MAP = 9
    CODEC_SUPPORT_MAP = 10


class CodecSupportLevel(IntEnum):
    """Nível de suporte de um codec considerando todos os participantes."""
    NONE = 0
    PARTIAL = 1
    FULL = 2


class CodecMimeType(str, Enum):
    """Codecs de vídeo conhecidos pela sessão."""
    VP8 = "video/VP8"   # Baseline, sempre obrigatório
    AV1 = "video/AV1"   # Enhanced, só com suporte total na chamada


class SignalingMessageType(str, Enum):
    """Tipos de mensagem de sinalização (JSON)."""
    OFFER = "offer"
    ANSWER = "answer"
    CANDIDATE = "candidate"


class DataChannelState(str, Enum):
    """Estados do data channel."""
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class ConnectionState(str, Enum):
    """Estados da conexão RTC reportados pelo engine."""
    NEW = "new"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    FAILED = "failed"
    CLOSED = "closed"


class SessionEvent:
    """Eventos emitidos pela sessão"""
    CONNECT = "connect"
    CLOSE = "close"
    ERROR = "error"
    CANDIDATE = "candidate"
    OFFER = "offer"
    ANSWER = "answer"
    STREAM = "stream"


class MonitorEvent:
    """Eventos emitidos pelo monitor de qualidade"""
    QUALITY = "quality"


DEFAULT_CODEC_SUPPORT_MAP = {
    CodecMimeType.AV1.value: CodecSupportLevel.NONE,
}
