"""
Interface para o engine de mídia - Porta da sessão RTC

Define o contrato que o engine WebRTC (ICE/DTLS/SRTP, codecs, estatísticas)
precisa implementar para ser usado pelo RTCPeer. O adaptador padrão usa
aiortc (adapters/aiortc_engine.py); os testes usam um engine em memória.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable


@dataclass
class SessionDescription:
    """Descrição de sessão (offer/answer)"""
    type: str
    sdp: str

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type, "sdp": self.sdp}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionDescription":
        return cls(type=data["type"], sdp=data.get("sdp", ""))


@dataclass
class IceCandidate:
    """Candidato ICE no formato usado pela sinalização JSON"""
    candidate: str
    sdp_mid: Optional[str] = None
    sdp_mline_index: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidate": self.candidate,
            "sdpMid": self.sdp_mid,
            "sdpMLineIndex": self.sdp_mline_index,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IceCandidate":
        return cls(
            candidate=data.get("candidate", ""),
            sdp_mid=data.get("sdpMid", data.get("sdp_mid")),
            sdp_mline_index=data.get("sdpMLineIndex", data.get("sdp_mline_index")),
        )


@dataclass
class CodecCapability:
    """Capacidade de codec do engine local"""
    mime_type: str
    clock_rate: int = 90000
    channels: Optional[int] = None
    parameters: Dict[str, Any] = field(default_factory=dict)


@dataclass
class EncodingParameters:
    """Parâmetros de um encoding (camada simulcast)"""
    rid: Optional[str] = None
    max_bitrate: Optional[int] = None        # bps
    max_framerate: Optional[float] = None
    scale_resolution_down_by: Optional[float] = None
    active: bool = True


@dataclass
class RtpParameters:
    """Parâmetros atuais de um sender (codecs na ordem negociada)"""
    codecs: List[CodecCapability] = field(default_factory=list)
    encodings: List[EncodingParameters] = field(default_factory=list)


@runtime_checkable
class MediaTrack(Protocol):
    """Track de mídia local ou remota"""
    id: str
    kind: str  # "audio" ou "video"


@runtime_checkable
class MediaStream(Protocol):
    id: str

    def get_tracks(self) -> List[MediaTrack]:
        ...


@runtime_checkable
class RtpSender(Protocol):
    """Sender RTP. track=None significa sender ocioso (pausado)."""

    @property
    def track(self) -> Optional[MediaTrack]:
        ...

    async def replace_track(self, track: Optional[MediaTrack]) -> None:
        """Troca a track enviada sem renegociar"""
        ...

    def get_parameters(self) -> RtpParameters:
        ...


@runtime_checkable
class Transceiver(Protocol):
    mid: Optional[str]
    sender: RtpSender
    receiver: Any
    direction: str

    def set_codec_preferences(self, codecs: List[CodecCapability]) -> None:
        ...


@runtime_checkable
class DataChannel(Protocol):
    """Canal de dados confiável e ordenado"""
    label: str

    @property
    def ready_state(self) -> str:
        """connecting, open, closing ou closed"""
        ...

    def send(self, data: bytes) -> None:
        ...

    def set_message_handler(self, handler: Optional[Callable[[bytes], None]]) -> None:
        """Registra (ou remove, com None) o handler de mensagens recebidas"""
        ...


@runtime_checkable
class PeerConnection(Protocol):
    """
    Conexão RTC do engine.

    Eventos registrados via on(event, handler):
        - connectionstatechange: handler(state: str)
        - icecandidate: handler(candidate: Optional[IceCandidate])
        - iceconnectionstatechange: handler(state: str)
        - track: handler(track: MediaTrack, transceiver: Transceiver)
    """

    @property
    def signaling_state(self) -> str:
        ...

    @property
    def local_description(self) -> Optional[SessionDescription]:
        ...

    @property
    def remote_description(self) -> Optional[SessionDescription]:
        ...

    def on(self, event: str, handler: Callable) -> None:
        ...

    def remove_all_handlers(self) -> None:
        ...

    def create_data_channel(self, label: str) -> DataChannel:
        ...

    async def set_local_description(self) -> None:
        """Cria offer ou answer conforme o estado de sinalização e aplica"""
        ...

    async def set_remote_description(self, description: SessionDescription) -> None:
        ...

    async def add_ice_candidate(self, candidate: IceCandidate) -> None:
        ...

    def add_transceiver(
        self,
        track: MediaTrack,
        direction: str = "sendrecv",
        send_encodings: Optional[List[EncodingParameters]] = None,
        streams: Optional[List[MediaStream]] = None,
    ) -> Transceiver:
        ...

    def add_track(self, track: MediaTrack, stream: Optional[MediaStream] = None) -> RtpSender:
        ...

    def remove_track(self, sender: RtpSender) -> None:
        ...

    def get_transceivers(self) -> List[Transceiver]:
        ...

    def get_senders(self) -> List[RtpSender]:
        ...

    async def get_stats(self) -> Dict[str, Dict[str, Any]]:
        """
        Snapshot de estatísticas no formato WebRTC: id -> report (dict com
        type, kind, ssrc, timestamp em ms e contadores camelCase)
        """
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class MediaEngine(Protocol):
    """Fábrica de conexões e consulta de codecs locais"""

    def create_peer_connection(self, ice_servers: List[str]) -> PeerConnection:
        ...

    def get_video_codec(self, mime_type: str) -> Optional[CodecCapability]:
        """Retorna o codec de vídeo local com esse mime type, se suportado"""
        ...
