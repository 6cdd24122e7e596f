"""
Adaptador aiortc - implementação da porta MediaEngine

Limitações do aiortc refletidas aqui:
- Não há trickle ICE: os candidatos vão dentro do SDP, então o evento
  "icecandidate" nunca é disparado
- addTransceiver não aceita sendEncodings; os encodings ficam apenas
  registrados no sender (sem simulcast real)
- Não existe removeTrack: o sender é esvaziado e o transceiver passa a
  recvonly
- Codecs de vídeo disponíveis: VP8 e H264 (sem AV1)
"""

import dataclasses
import datetime
import logging
from typing import Any, Callable, Dict, List, Optional

from aiortc import (
    RTCConfiguration,
    RTCIceServer,
    RTCPeerConnection,
    RTCRtpSender,
    RTCSessionDescription,
)
from aiortc.sdp import candidate_from_sdp

from ..ports.media_engine import (
    CodecCapability,
    EncodingParameters,
    IceCandidate,
    MediaStream,
    MediaTrack,
    RtpParameters,
    SessionDescription,
)

logger = logging.getLogger("rtc-peer.aiortc")

# aiortc reporta jitter em unidades de timestamp RTP
JITTER_CLOCK_RATES = {
    "audio": 48000,  # Opus
    "video": 90000,
}


class AiortcDataChannel:
    """Wrapper do RTCDataChannel"""

    def __init__(self, channel):
        self._channel = channel
        self.label = channel.label
        self._handler: Optional[Callable[[bytes], None]] = None
        channel.on("message", self._on_message)

    @property
    def ready_state(self) -> str:
        return self._channel.readyState

    def send(self, data: bytes) -> None:
        self._channel.send(data)

    def set_message_handler(self, handler: Optional[Callable[[bytes], None]]) -> None:
        self._handler = handler

    def _on_message(self, message) -> None:
        if self._handler is not None:
            self._handler(message)


class AiortcSender:
    """Wrapper do RTCRtpSender que guarda codecs/encodings configurados"""

    def __init__(self, sender):
        self._sender = sender
        self.codecs: List[CodecCapability] = []
        self.encodings: List[EncodingParameters] = []

    @property
    def native(self):
        return self._sender

    @property
    def track(self) -> Optional[MediaTrack]:
        return self._sender.track

    async def replace_track(self, track: Optional[MediaTrack]) -> None:
        self._sender.replaceTrack(track)

    def get_parameters(self) -> RtpParameters:
        return RtpParameters(codecs=list(self.codecs), encodings=list(self.encodings))


class AiortcTransceiver:
    """Wrapper do RTCRtpTransceiver"""

    def __init__(self, transceiver, sender: AiortcSender):
        self._transceiver = transceiver
        self.sender = sender

    @property
    def mid(self) -> Optional[str]:
        return self._transceiver.mid

    @property
    def receiver(self):
        return self._transceiver.receiver

    @property
    def direction(self) -> str:
        return self._transceiver.direction

    @direction.setter
    def direction(self, value: str) -> None:
        self._transceiver.direction = value

    def set_codec_preferences(self, codecs: List[CodecCapability]) -> None:
        available = RTCRtpSender.getCapabilities(self._transceiver.kind).codecs
        preferences = []
        for codec in codecs:
            for capability in available:
                if capability.mimeType.lower() == codec.mime_type.lower():
                    preferences.append(capability)
        self._transceiver.setCodecPreferences(preferences)
        self.sender.codecs = list(codecs)


def _to_description(description) -> Optional[SessionDescription]:
    if description is None:
        return None
    return SessionDescription(type=description.type, sdp=description.sdp)


def _to_ms(value: Any) -> Any:
    if isinstance(value, datetime.datetime):
        return value.timestamp() * 1000
    return value


def convert_stats(report) -> Dict[str, Dict[str, Any]]:
    """Converte o RTCStatsReport (dataclasses) no formato dict do WebRTC"""
    result: Dict[str, Dict[str, Any]] = {}
    for key, stats in report.items():
        data = dataclasses.asdict(stats)
        data["timestamp"] = _to_ms(data.get("timestamp"))
        if "remoteTimestamp" in data:
            data["remoteTimestamp"] = _to_ms(data["remoteTimestamp"])
        if data.get("jitter") is not None:
            clock_rate = JITTER_CLOCK_RATES.get(data.get("kind"), 90000)
            data["jitter"] = data["jitter"] / clock_rate
        result[key] = data
    return result


class AiortcPeerConnection:
    """Wrapper do RTCPeerConnection com os eventos da porta"""

    def __init__(self, ice_servers: List[str]):
        config = RTCConfiguration(iceServers=[RTCIceServer(urls=[url]) for url in ice_servers])
        self._pc = RTCPeerConnection(configuration=config)
        self._handlers: Dict[str, List[Callable]] = {}
        self._senders: Dict[int, AiortcSender] = {}

        @self._pc.on("connectionstatechange")
        def on_connection_state_change():
            self._dispatch("connectionstatechange", self._pc.connectionState)

        @self._pc.on("iceconnectionstatechange")
        def on_ice_connection_state_change():
            self._dispatch("iceconnectionstatechange", self._pc.iceConnectionState)

        @self._pc.on("track")
        def on_track(track):
            self._dispatch("track", track, self._find_transceiver_by_receiver_track(track))

    def _dispatch(self, event: str, *args) -> None:
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(*args)
            except Exception as e:
                logger.error(f"Erro no handler de {event}: {e}")

    def on(self, event: str, handler: Callable) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def remove_all_handlers(self) -> None:
        self._handlers.clear()

    def _wrap_sender(self, sender) -> AiortcSender:
        wrapper = self._senders.get(id(sender))
        if wrapper is None:
            wrapper = AiortcSender(sender)
            self._senders[id(sender)] = wrapper
        return wrapper

    def _wrap_transceiver(self, transceiver) -> AiortcTransceiver:
        return AiortcTransceiver(transceiver, self._wrap_sender(transceiver.sender))

    def _find_transceiver_by_receiver_track(self, track) -> Optional[AiortcTransceiver]:
        for transceiver in self._pc.getTransceivers():
            if transceiver.receiver is not None and transceiver.receiver.track is track:
                return self._wrap_transceiver(transceiver)
        return None

    @property
    def signaling_state(self) -> str:
        return self._pc.signalingState

    @property
    def local_description(self) -> Optional[SessionDescription]:
        return _to_description(self._pc.localDescription)

    @property
    def remote_description(self) -> Optional[SessionDescription]:
        return _to_description(self._pc.remoteDescription)

    def create_data_channel(self, label: str) -> AiortcDataChannel:
        return AiortcDataChannel(self._pc.createDataChannel(label))

    async def set_local_description(self) -> None:
        if self._pc.signalingState == "have-remote-offer":
            description = await self._pc.createAnswer()
        else:
            description = await self._pc.createOffer()
        await self._pc.setLocalDescription(description)

    async def set_remote_description(self, description: SessionDescription) -> None:
        await self._pc.setRemoteDescription(
            RTCSessionDescription(sdp=description.sdp, type=description.type)
        )

    async def add_ice_candidate(self, candidate: IceCandidate) -> None:
        if not candidate.candidate:
            # Fim dos candidatos remotos
            return
        sdp = candidate.candidate
        if sdp.startswith("candidate:"):
            sdp = sdp[len("candidate:"):]
        ice = candidate_from_sdp(sdp)
        ice.sdpMid = candidate.sdp_mid
        ice.sdpMLineIndex = candidate.sdp_mline_index
        await self._pc.addIceCandidate(ice)

    def add_transceiver(
        self,
        track: MediaTrack,
        direction: str = "sendrecv",
        send_encodings: Optional[List[EncodingParameters]] = None,
        streams: Optional[List[MediaStream]] = None,
    ) -> AiortcTransceiver:
        transceiver = self._wrap_transceiver(self._pc.addTransceiver(track, direction=direction))
        if send_encodings:
            transceiver.sender.encodings = list(send_encodings)
        return transceiver

    def add_track(self, track: MediaTrack, stream: Optional[MediaStream] = None) -> AiortcSender:
        return self._wrap_sender(self._pc.addTrack(track))

    def remove_track(self, sender: AiortcSender) -> None:
        sender.native.replaceTrack(None)
        for transceiver in self._pc.getTransceivers():
            if transceiver.sender is sender.native:
                transceiver.direction = "recvonly"
                break

    def get_transceivers(self) -> List[AiortcTransceiver]:
        return [self._wrap_transceiver(t) for t in self._pc.getTransceivers()]

    def get_senders(self) -> List[AiortcSender]:
        return [self._wrap_sender(s) for s in self._pc.getSenders()]

    async def get_stats(self) -> Dict[str, Dict[str, Any]]:
        return convert_stats(await self._pc.getStats())

    async def close(self) -> None:
        await self._pc.close()


class AiortcEngine:
    """MediaEngine baseado em aiortc"""

    def create_peer_connection(self, ice_servers: List[str]) -> AiortcPeerConnection:
        logger.debug(f"Criando RTCPeerConnection (ice_servers={ice_servers})")
        return AiortcPeerConnection(ice_servers)

    def get_video_codec(self, mime_type: str) -> Optional[CodecCapability]:
        for codec in RTCRtpSender.getCapabilities("video").codecs:
            if codec.mimeType.lower() == mime_type.lower():
                return CodecCapability(
                    mime_type=codec.mimeType,
                    clock_rate=codec.clockRate,
                    channels=codec.channels,
                    parameters=dict(codec.parameters),
                )
        return None
