"""
Exceções da sessão RTC

Taxonomia:
- DecodeError: mensagem de controle malformada (logada e descartada)
- SignalingLockTimeoutError: lock não obtido dentro do timeout
- NegotiationError / SignalingError: falhas de offer/answer
- ConnectionFailedError / ConnectionTimeoutError: falhas de conexão
- PeerDestroyedError: uso da sessão após destroy()
"""


class RTCPeerError(Exception):
    """Erro base da sessão RTC."""


class DecodeError(RTCPeerError):
    """Mensagem do data channel não pôde ser decodificada."""


class SignalingLockTimeoutError(RTCPeerError):
    def __init__(self, message: str = "timed out waiting for lock"):
        super().__init__(message)


class NegotiationError(RTCPeerError):
    """Falha ao criar ou aplicar uma descrição de sessão."""


class SignalingError(RTCPeerError):
    def __init__(self, message: str = "invalid signaling data received"):
        super().__init__(message)


class PeerDestroyedError(RTCPeerError):
    def __init__(self, message: str = "peer has been destroyed"):
        super().__init__(message)


class ConnectionFailedError(RTCPeerError):
    def __init__(self, message: str = "rtc connection failed"):
        super().__init__(message)


class ConnectionTimeoutError(RTCPeerError):
    def __init__(self, message: str = "timed out waiting for rtc connection"):
        super().__init__(message)


class CodecNotFoundError(RTCPeerError):
    """Codec exigido não está disponível no engine local."""


class TrackNotFoundError(RTCPeerError):
    def __init__(self, message: str = "ctx for track not found"):
        super().__init__(message)
