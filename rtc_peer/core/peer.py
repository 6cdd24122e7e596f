"""
RTCPeer - sessão RTC com lock de sinalização e troca dinâmica de codec

Responsabilidades:
- Cria a conexão do engine e o data channel de controle ("calls-dc")
- Troca offer/answer pelo data channel (ou por sinalização externa)
- Serializa renegociações com o lado remoto via SignalingLock
- Mantém o contexto das tracks locais e troca VP8 <-> AV1 conforme o
  mapa de suporte de codecs da chamada
- Mede RTT via ping/pong e envia métricas de qualidade ao remoto

Eventos (pyee):
    connect()                      Conexão estabelecida
    close(error=None)              Conexão encerrada ou falhou
    error(exc)                     Falha de negociação ou timeout de conexão
    candidate(IceCandidate)        Candidato ICE local
    offer(SessionDescription)      Offer para sinalização externa
    answer(SessionDescription)     Answer para sinalização externa
    stream(track, TrackInfo|None)  Track remota disponível

Uso:
    peer = RTCPeer(engine, RTCPeerConfig.from_env())
    peer.on("connect", on_connect)
    await peer.initialize()
    await peer.add_track(video_track, stream)
"""

import asyncio
import json
import time
import uuid
from typing import Any, Coroutine, Dict, List, Optional, Set, Union

from pyee.asyncio import AsyncIOEventEmitter

from ..metrics import (
    track_codec_switch,
    track_connection_error,
    track_connection_state,
    track_dc_decode_error,
    track_dc_message,
    track_negotiation_error,
    track_ping_rtt,
    track_renegotiation,
    track_session_created,
    track_session_destroyed,
)
from ..ports.media_engine import (
    CodecCapability,
    DataChannel,
    IceCandidate,
    MediaEngine,
    MediaStream,
    MediaTrack,
    PeerConnection,
    SessionDescription,
)
from ..protocol.dc_msg import DCMessage, decode_dc_msg, encode_dc_msg
from ..protocol.enums import (
    CodecMimeType,
    CodecSupportLevel,
    ConnectionState,
    DataChannelState,
    DCMessageType,
    DEFAULT_CODEC_SUPPORT_MAP,
    SessionEvent,
    SignalingMessageType,
)
from ..protocol.errors import (
    CodecNotFoundError,
    ConnectionFailedError,
    ConnectionTimeoutError,
    DecodeError,
    PeerDestroyedError,
    SignalingError,
    TrackNotFoundError,
)
from ..protocol.track_info import TrackInfo, parse_media_map
from ..utils.logging import get_session_logger
from .peer_config import RTCPeerConfig
from .signaling_lock import SignalingLock
from .tracks import TrackContext, TrackOptions, default_encodings

DATA_CHANNEL_LABEL = "calls-dc"


def support_level(support_map: Dict[str, Any], mime_type: str) -> CodecSupportLevel:
    """Nível de suporte de um codec no mapa (ausente ou inválido = NONE)"""
    try:
        return CodecSupportLevel(int(support_map.get(mime_type, CodecSupportLevel.NONE)))
    except (TypeError, ValueError):
        return CodecSupportLevel.NONE


class RTCPeer(AsyncIOEventEmitter):
    """Sessão RTC de uma perna da chamada"""

    def __init__(
        self,
        engine: MediaEngine,
        config: Optional[RTCPeerConfig] = None,
        session_id: Optional[str] = None,
    ):
        super().__init__()
        self.session_id = session_id or str(uuid.uuid4())
        self.config = config or RTCPeerConfig.from_env()
        self._engine = engine
        self._logger = get_session_logger("rtc-peer.session", self.session_id)

        self._pc: Optional[PeerConnection] = None
        self._dc: Optional[DataChannel] = None

        self._connected = False
        self._making_offer = False
        self._dc_negotiated = False
        self._destroyed = False

        self._candidates: List[IceCandidate] = []
        self._track_ctxs: Dict[str, TrackContext] = {}
        self._media_map: Dict[str, TrackInfo] = {}
        self._codec_support_map: Dict[str, Any] = dict(DEFAULT_CODEC_SUPPORT_MAP)

        # RTT em segundos, medido via ping/pong
        self._rtt = 0.0
        self._last_ping_ts = 0.0

        self._signaling_lock = SignalingLock(
            channel_state=self._dc_state,
            is_negotiated=lambda: self._dc_negotiated,
            send=self._send,
            timeout_ms=self.config.lock_timeout_ms,
            retry_interval_ms=self.config.lock_retry_interval_ms,
            logger=self._logger,
        )

        self._ping_task: Optional[asyncio.Task] = None
        self._conn_timeout_handle: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

    # =========================================================================
    # PROPRIEDADES
    # =========================================================================

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def making_offer(self) -> bool:
        return self._making_offer

    @property
    def dc_negotiated(self) -> bool:
        return self._dc_negotiated

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def track_contexts(self) -> Dict[str, TrackContext]:
        return dict(self._track_ctxs)

    @property
    def media_map(self) -> Dict[str, TrackInfo]:
        return dict(self._media_map)

    @property
    def codec_support_map(self) -> Dict[str, Any]:
        return dict(self._codec_support_map)

    @property
    def pending_candidates(self) -> List[IceCandidate]:
        return list(self._candidates)

    @property
    def lock(self) -> SignalingLock:
        return self._signaling_lock

    @property
    def lock_waiter(self):
        """Callback da tentativa de lock pendente (None se livre)"""
        return self._signaling_lock.waiter

    # =========================================================================
    # CICLO DE VIDA
    # =========================================================================

    async def initialize(self) -> None:
        """
        Cria a conexão e o data channel, inicia ping e timeout de conexão
        e dispara o primeiro ciclo de offer.
        """
        self._check_destroyed()
        if self._pc is not None:
            raise RuntimeError("peer already initialized")

        self._pc = self._engine.create_peer_connection(self.config.ice_servers)
        self._pc.on("icecandidate", self._on_ice_candidate)
        self._pc.on("iceconnectionstatechange", self._on_ice_connection_state_change)
        self._pc.on("connectionstatechange", self._on_connection_state_change)
        self._pc.on("track", self._on_track)

        self._dc = self._pc.create_data_channel(DATA_CHANNEL_LABEL)
        self._dc.set_message_handler(self._on_dc_message)

        loop = asyncio.get_running_loop()
        self._ping_task = asyncio.create_task(self._ping_loop())
        self._conn_timeout_handle = loop.call_later(
            self.config.conn_timeout_ms / 1000, self._on_conn_timeout
        )

        track_session_created()
        self._logger.info("Sessão RTC inicializada")

        # Renegociação é sempre explícita para poder ser protegida pelo lock
        await self._on_negotiation_needed()

    async def destroy(self) -> None:
        """Encerra a sessão: cancela timers, remove handlers e fecha a conexão"""
        if self._destroyed:
            raise PeerDestroyedError("peer has been destroyed already")
        self._destroyed = True

        self.remove_all_listeners()
        self._signaling_lock.close(PeerDestroyedError())

        if self._ping_task is not None:
            self._ping_task.cancel()
            self._ping_task = None
        if self._conn_timeout_handle is not None:
            self._conn_timeout_handle.cancel()
            self._conn_timeout_handle = None
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

        self._connected = False
        self._candidates = []

        if self._dc is not None:
            self._dc.set_message_handler(None)

        if self._pc is not None:
            self._pc.remove_all_handlers()
            pc, self._pc = self._pc, None
            try:
                await pc.close()
            except Exception as e:
                self._logger.error(f"Erro ao fechar conexão: {e}")
            # Só sessões inicializadas entram no gauge de sessões ativas
            track_session_destroyed()
        self._logger.info("Sessão RTC destruída")

    def _check_destroyed(self) -> None:
        if self._destroyed:
            raise PeerDestroyedError()

    def _require_pc(self) -> PeerConnection:
        self._check_destroyed()
        if self._pc is None:
            raise RuntimeError("peer not initialized")
        return self._pc

    # =========================================================================
    # DATA CHANNEL
    # =========================================================================

    def _dc_state(self) -> str:
        if self._dc is None:
            return DataChannelState.CLOSED.value
        return self._dc.ready_state

    def _dc_open(self) -> bool:
        return self._dc_state() == DataChannelState.OPEN.value

    def _send(self, data: bytes) -> None:
        if self._dc is None:
            raise RuntimeError("data channel not created")
        self._dc.send(data)

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        """Cria task de background mantendo referência até terminar"""
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _on_dc_message(self, data: bytes) -> None:
        if self._destroyed:
            return
        try:
            msg = decode_dc_msg(data)
        except DecodeError as e:
            track_dc_decode_error()
            self._logger.error(f"Falha ao decodificar mensagem do data channel: {e}")
            return

        track_dc_message(msg.type.name.lower())
        self._dispatch(msg)

    def _dispatch(self, msg: DCMessage) -> None:
        """Aplica o efeito de uma mensagem de controle (ordem de chegada)"""
        if msg.type == DCMessageType.PING:
            try:
                self._send(encode_dc_msg(DCMessageType.PONG))
            except Exception as e:
                self._logger.warning(f"Erro ao responder ping: {e}")

        elif msg.type == DCMessageType.PONG:
            if self._last_ping_ts <= 0:
                self._logger.debug("Pong recebido sem ping pendente")
                return
            self._rtt = time.perf_counter() - self._last_ping_ts
            track_ping_rtt(self._rtt * 1000)

        elif msg.type == DCMessageType.SDP:
            self._spawn(self._signal_from_dc(msg.payload))

        elif msg.type == DCMessageType.LOCK:
            if msg.payload is None:
                self._logger.warning("Pedido de lock recebido do remoto, ignorando")
                return
            self._signaling_lock.handle_response(bool(msg.payload))

        elif msg.type == DCMessageType.MEDIA_MAP:
            self._media_map = parse_media_map(msg.payload)
            self._logger.debug(f"Media map atualizado: {len(self._media_map)} tracks")

        elif msg.type == DCMessageType.CODEC_SUPPORT_MAP:
            if not isinstance(msg.payload, dict):
                self._logger.warning("Codec support map inválido, ignorando")
                return
            self._codec_support_map = dict(msg.payload)
            self._spawn(self._on_codec_support_map(dict(msg.payload)))

        else:
            self._logger.warning(f"Mensagem de controle inesperada: {msg.type.name}")

    async def _signal_from_dc(self, payload: Any) -> None:
        try:
            await self.signal(payload)
        except Exception as e:
            self._logger.error(f"Erro ao processar SDP do data channel: {e}")
            self._signaling_lock.release()

    async def _on_codec_support_map(self, support_map: Dict[str, Any]) -> None:
        try:
            await self._signaling_lock.acquire()
            renegotiated = await self.handle_codec_support_update(support_map)
            if not renegotiated:
                self._logger.debug("Codec support map sem renegociação, liberando lock")
                self._signaling_lock.release()
        except Exception as e:
            self._logger.error(f"Falha ao tratar codec support map: {e}")
            if self._signaling_lock.held:
                self._signaling_lock.release()

    async def _ping_loop(self) -> None:
        interval = self.config.ping_interval_ms / 1000
        while True:
            await asyncio.sleep(interval)
            if not self._dc_open():
                continue
            try:
                self._last_ping_ts = time.perf_counter()
                self._send(encode_dc_msg(DCMessageType.PING))
            except Exception as e:
                self._logger.warning(f"Erro ao enviar ping: {e}")

    # =========================================================================
    # EVENTOS DO ENGINE
    # =========================================================================

    def _on_ice_candidate(self, candidate: Optional[IceCandidate]) -> None:
        if candidate is None:
            self._logger.debug("Coleta de candidatos ICE concluída")
            return
        self.emit(SessionEvent.CANDIDATE, candidate)

    def _on_ice_connection_state_change(self, state: str) -> None:
        self._logger.debug(f"ICE connection state -> {state}")

    def _on_connection_state_change(self, state: str) -> None:
        self._logger.info(f"Connection state -> {state}")
        track_connection_state(state)

        if state == ConnectionState.CONNECTED.value:
            if not self._connected:
                self._connected = True
                if self._conn_timeout_handle is not None:
                    self._conn_timeout_handle.cancel()
                    self._conn_timeout_handle = None
                self.emit(SessionEvent.CONNECT)
        elif state == ConnectionState.CLOSED.value:
            self._connected = False
            self.emit(SessionEvent.CLOSE)
        elif state == ConnectionState.FAILED.value:
            self._connected = False
            track_connection_error("failed")
            self.emit(SessionEvent.CLOSE, ConnectionFailedError())

    def _on_track(self, track: MediaTrack, transceiver: Any = None) -> None:
        mid = getattr(transceiver, "mid", None)
        track_info = self._media_map.get(mid) if mid is not None else None
        self._logger.debug(f"Track remota recebida: kind={track.kind} mid={mid}")
        self.emit(SessionEvent.STREAM, track, track_info)

    def _on_conn_timeout(self) -> None:
        self._conn_timeout_handle = None
        if self._connected:
            return
        track_connection_error("timeout")
        self._logger.error(f"Conexão não estabelecida em {self.config.conn_timeout_ms}ms")
        self._emit_error(ConnectionTimeoutError())

    def _emit_error(self, error: Exception) -> None:
        """Emite 'error' sem propagar quando não há listeners (pyee levantaria)"""
        if not self.listeners(SessionEvent.ERROR):
            self._logger.warning(f"Erro sem listeners: {error}")
            return
        self.emit(SessionEvent.ERROR, error)

    # =========================================================================
    # OFFER / ANSWER
    # =========================================================================

    async def _on_negotiation_needed(self) -> None:
        if self._destroyed:
            return
        await self._make_offer()

    async def _make_offer(self) -> None:
        try:
            self._making_offer = True
            pc = self._require_pc()
            await pc.set_local_description()
            offer = pc.local_description

            if self.config.dc_signaling and self._dc_open():
                self._logger.debug("Enviando offer pelo data channel", extra={"stage": "sdp"})
                try:
                    self._send(encode_dc_msg(DCMessageType.SDP, offer.to_dict()))
                    track_renegotiation("dc")
                except Exception as e:
                    self._logger.error(f"Erro ao enviar offer pelo data channel: {e}")
            else:
                self._logger.debug("Emitindo offer para sinalização externa", extra={"stage": "sdp"})
                self.emit(SessionEvent.OFFER, offer)
                track_renegotiation("external")
        except Exception as e:
            track_negotiation_error()
            self._logger.error(f"Falha ao criar offer: {e}")
            if self._signaling_lock.held:
                self._signaling_lock.release()
            self._emit_error(e)
        finally:
            self._making_offer = False

    async def signal(self, data: Union[str, bytes, Dict[str, Any]]) -> None:
        """
        Processa uma mensagem de sinalização (offer, answer ou candidate).

        Args:
            data: JSON (str/bytes) ou dict no formato {"type": ..., ...}

        Raises:
            PeerDestroyedError: sessão destruída
            SignalingError: mensagem inválida ou tipo desconhecido
        """
        pc = self._require_pc()

        if isinstance(data, (str, bytes, bytearray)):
            try:
                msg = json.loads(data)
            except ValueError as e:
                raise SignalingError() from e
        else:
            msg = data
        if not isinstance(msg, dict):
            raise SignalingError()

        msg_type = msg.get("type")

        if msg_type == SignalingMessageType.OFFER.value and (
            self._making_offer or pc.signaling_state != "stable"
        ):
            # Corrida aceita: o lock deveria impedir este cenário
            self._logger.warning(
                f"Conflito de offer (making_offer={self._making_offer}, "
                f"signaling_state={pc.signaling_state}), prosseguindo"
            )

        if msg_type == SignalingMessageType.CANDIDATE.value:
            await self._handle_candidate(msg.get("candidate"))
        elif msg_type == SignalingMessageType.OFFER.value:
            await self._handle_offer(pc, self._parse_description(msg))
        elif msg_type == SignalingMessageType.ANSWER.value:
            await self._handle_answer(pc, self._parse_description(msg))
        else:
            raise SignalingError()

    @staticmethod
    def _parse_description(msg: Dict[str, Any]) -> SessionDescription:
        sdp = msg.get("sdp")
        if not isinstance(sdp, str):
            raise SignalingError()
        return SessionDescription(type=msg["type"], sdp=sdp)

    async def _handle_candidate(self, data: Any) -> None:
        if isinstance(data, dict):
            candidate = IceCandidate.from_dict(data)
        elif isinstance(data, str):
            candidate = IceCandidate(candidate=data)
        else:
            raise SignalingError()

        if self._pc.remote_description is None:
            self._logger.debug("Remote description ausente, enfileirando candidato")
            self._candidates.append(candidate)
            return
        await self._add_candidate(candidate)

    async def _add_candidate(self, candidate: IceCandidate) -> None:
        try:
            await self._pc.add_ice_candidate(candidate)
        except Exception as e:
            self._logger.error(f"Falha ao adicionar candidato ICE: {e}")

    async def _flush_candidates(self) -> None:
        candidates, self._candidates = self._candidates, []
        if candidates:
            self._logger.debug(f"Aplicando {len(candidates)} candidatos enfileirados")
        for candidate in candidates:
            await self._add_candidate(candidate)

    async def _handle_offer(self, pc: PeerConnection, offer: SessionDescription) -> None:
        await pc.set_remote_description(offer)
        await self._flush_candidates()
        await pc.set_local_description()
        answer = pc.local_description

        if self.config.dc_signaling and self._dc_open():
            self._logger.debug("Enviando answer pelo data channel", extra={"stage": "sdp"})
            self._send(encode_dc_msg(DCMessageType.SDP, answer.to_dict()))
        else:
            self.emit(SessionEvent.ANSWER, answer)

    async def _handle_answer(self, pc: PeerConnection, answer: SessionDescription) -> None:
        await pc.set_remote_description(answer)
        await self._flush_candidates()

        if self._dc_negotiated:
            if not self._dc_open():
                self._logger.warning("Answer recebida com data channel fechado")
            self._signaling_lock.release()
        else:
            # Primeira answer estabelece o próprio data channel
            self._dc_negotiated = True
            self._logger.info("Data channel negociado")

    # =========================================================================
    # TRACKS
    # =========================================================================

    def _video_codec_preferences(self) -> List[CodecCapability]:
        vp8 = self._engine.get_video_codec(CodecMimeType.VP8.value)
        if vp8 is None:
            raise CodecNotFoundError("VP8 codec not supported")

        codecs = [vp8]
        av1 = self._engine.get_video_codec(CodecMimeType.AV1.value)
        if av1 is not None:
            codecs.append(av1)
            full = support_level(self._codec_support_map, CodecMimeType.AV1.value) == CodecSupportLevel.FULL
            if self.config.enable_av1 and full:
                codecs.reverse()
        return codecs

    async def _add_track_no_lock(
        self,
        track: MediaTrack,
        stream: Optional[MediaStream] = None,
        opts: Optional[TrackOptions] = None,
    ) -> None:
        pc = self._require_pc()
        opts = opts or TrackOptions()

        if track.kind == "video":
            encodings = opts.encodings or default_encodings(self.config.simulcast)
            transceiver = pc.add_transceiver(
                track,
                direction="sendrecv",
                send_encodings=encodings,
                streams=[stream] if stream is not None else None,
            )
            codecs = opts.codecs or self._video_codec_preferences()
            transceiver.set_codec_preferences(codecs)
            sender = transceiver.sender
            self._logger.debug(
                f"Track de vídeo adicionada: {track.id} codecs={[c.mime_type for c in codecs]}"
            )
        else:
            sender = pc.add_track(track, stream)
            self._logger.debug(f"Track de {track.kind} adicionada: {track.id}")

        self._track_ctxs[track.id] = TrackContext(track=track, sender=sender, stream=stream, opts=opts)

    async def add_track(
        self,
        track: MediaTrack,
        stream: Optional[MediaStream] = None,
        opts: Optional[TrackOptions] = None,
    ) -> None:
        """Adiciona uma track local (com lock) e renegocia"""
        self._check_destroyed()
        await self._signaling_lock.acquire()
        try:
            self._check_destroyed()
            await self._add_track_no_lock(track, stream, opts)
        except Exception:
            self._signaling_lock.release()
            raise
        await self._on_negotiation_needed()

    async def add_stream(self, stream: MediaStream, opts: Optional[TrackOptions] = None) -> None:
        """Adiciona todas as tracks de um stream, em ordem"""
        self._check_destroyed()
        for track in stream.get_tracks():
            await self.add_track(track, stream, opts)

    async def replace_track(self, old_track_id: str, new_track: Optional[MediaTrack]) -> None:
        """
        Troca a track enviada por um sender sem renegociar (sem lock).
        new_track=None pausa o envio mantendo o contexto.
        """
        self._check_destroyed()
        ctx = self._track_ctxs.get(old_track_id)
        if ctx is None:
            raise TrackNotFoundError()

        await ctx.sender.replace_track(new_track)

        if new_track is not None and new_track.id != old_track_id:
            del self._track_ctxs[old_track_id]
            ctx.track = new_track
            self._track_ctxs[new_track.id] = ctx

    async def remove_track(self, track_id: str) -> None:
        """Remove uma track local (com lock) e renegocia"""
        self._check_destroyed()
        await self._signaling_lock.acquire()
        try:
            self._check_destroyed()
            ctx = self._track_ctxs.get(track_id)
            if ctx is None:
                raise TrackNotFoundError()
            self._pc.remove_track(ctx.sender)
            del self._track_ctxs[track_id]
        except Exception:
            self._signaling_lock.release()
            raise
        await self._on_negotiation_needed()

    # =========================================================================
    # TROCA DE CODEC
    # =========================================================================

    async def _switch_codec_for_track(self, ctx: TrackContext, target: CodecCapability) -> None:
        # Pausa o envio atual para nunca enviar dois encodings ao mesmo tempo
        await ctx.sender.replace_track(None)

        existing = None
        for sender in self._pc.get_senders():
            if sender.track is not None:
                continue
            params = sender.get_parameters()
            if params.codecs and params.codecs[0].mime_type == target.mime_type:
                existing = sender
                break

        if existing is not None:
            self._logger.debug(f"Reutilizando sender {target.mime_type} para {ctx.track.id}", extra={"stage": "codec"})
            await existing.replace_track(ctx.track)
            self._track_ctxs[ctx.track.id] = TrackContext(
                track=ctx.track, sender=existing, stream=ctx.stream, opts=ctx.opts,
            )
        else:
            self._logger.debug(f"Criando sender {target.mime_type} para {ctx.track.id}", extra={"stage": "codec"})
            # Codec forçado, senão o remoto aceitaria o encoding atual
            opts = TrackOptions(encodings=ctx.opts.encodings, codecs=[target])
            await self._add_track_no_lock(ctx.track, ctx.stream, opts)

        track_codec_switch(target.mime_type)

    async def handle_codec_support_update(self, support_map: Dict[str, Any]) -> bool:
        """
        Ajusta o codec das tracks de vídeo ao suporte da chamada.
        Deve ser chamado com o lock obtido.

        Returns:
            True se houve troca e uma renegociação foi iniciada (o lock
            permanece até a answer), False caso contrário
        """
        self._require_pc()

        av1 = self._engine.get_video_codec(CodecMimeType.AV1.value)
        if av1 is None:
            self._logger.debug("AV1 não suportado localmente, nada a fazer")
            return False

        vp8 = self._engine.get_video_codec(CodecMimeType.VP8.value)
        if vp8 is None:
            self._logger.error("VP8 não suportado localmente")
            return False

        # Parcial e nenhum são equivalentes: só AV1 com suporte total
        av1_call_support = support_level(support_map, CodecMimeType.AV1.value) == CodecSupportLevel.FULL
        target = av1 if av1_call_support else vp8

        needs_negotiation = False
        for ctx in list(self._track_ctxs.values()):
            sender_track = ctx.sender.track
            if sender_track is None or sender_track.kind != "video":
                continue

            params = ctx.sender.get_parameters()
            current = params.codecs[0].mime_type if params.codecs else None
            if current == target.mime_type:
                continue

            self._logger.info(
                f"Trocando codec da track {ctx.track.id}: {current} -> {target.mime_type}",
                extra={"stage": "codec"},
            )
            await self._switch_codec_for_track(ctx, target)
            needs_negotiation = True

        for transceiver in self._pc.get_transceivers():
            receiver_track = getattr(transceiver.receiver, "track", None) if transceiver.receiver else None
            info = self._media_map.get(transceiver.mid) if transceiver.mid is not None else None
            if receiver_track is not None and info is not None and info.mime_type == target.mime_type:
                self._logger.debug(f"Receiver {target.mime_type} já existe, emitindo stream")
                self.emit(SessionEvent.STREAM, receiver_track, info)
                break

        if needs_negotiation:
            await self._on_negotiation_needed()

        return needs_negotiation

    # =========================================================================
    # ESTATÍSTICAS E MÉTRICAS
    # =========================================================================

    async def get_stats(self) -> Dict[str, Dict[str, Any]]:
        """Snapshot de estatísticas do engine"""
        pc = self._require_pc()
        return await pc.get_stats()

    def get_rtt(self) -> float:
        """RTT do data channel em segundos (0 se ainda não medido)"""
        self._check_destroyed()
        return self._rtt

    def handle_metrics(self, loss_rate: float, jitter: float) -> None:
        """
        Envia ao remoto as métricas calculadas localmente.

        Args:
            loss_rate: Taxa de perda (0.0-1.0); negativo = não enviar
            jitter: Jitter em segundos; zero = não enviar
        """
        self._check_destroyed()
        if not self._dc_open():
            self._logger.debug("Data channel não aberto, métricas não enviadas")
            return
        try:
            if loss_rate >= 0:
                self._send(encode_dc_msg(DCMessageType.LOSS_RATE, float(loss_rate)))
            if self._rtt > 0:
                self._send(encode_dc_msg(DCMessageType.ROUND_TRIP_TIME, float(self._rtt)))
            if jitter > 0:
                self._send(encode_dc_msg(DCMessageType.JITTER, float(jitter)))
        except Exception as e:
            self._logger.error(f"Erro ao enviar métricas: {e}")
