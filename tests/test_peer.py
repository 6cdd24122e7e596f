"""
Testes da sessão RTCPeer sobre o engine em memória

Cobertura:
- Ciclo de vida (initialize, conexão, timeout, destroy)
- Sinalização (offer, answer, candidatos enfileirados)
- Mensagens de controle (ping/pong, media map, mensagens inválidas)
- Tracks locais (add/remove/replace) protegidas pelo lock
- Métricas enviadas ao remoto
"""

import asyncio
import json
import logging

import pytest
from prometheus_client import REGISTRY

from fakes import (
    AV1,
    FakeEngine,
    FakeRemote,
    FakeStream,
    FakeTrack,
    FakeTransceiver,
    FakeSender,
    connected_peer,
    fast_config,
    wait_for,
)
from rtc_peer.core import DATA_CHANNEL_LABEL, RTCPeer, SignalingLock, TrackOptions
from rtc_peer.ports import EncodingParameters, IceCandidate, SessionDescription
from rtc_peer.protocol import (
    CodecNotFoundError,
    ConnectionFailedError,
    ConnectionTimeoutError,
    DCMessageType,
    PeerDestroyedError,
    SignalingError,
    TrackInfo,
    TrackNotFoundError,
    encode_dc_msg,
)


# =============================================================================
# CICLO DE VIDA
# =============================================================================

class TestLifecycle:
    """Testes de initialize/destroy e estado da conexão"""

    @pytest.mark.asyncio
    async def test_initialize_creates_control_channel(self, engine, config):
        peer = RTCPeer(engine, config)
        offers = []
        peer.on("offer", offers.append)

        await peer.initialize()

        assert engine.pc.dc.label == DATA_CHANNEL_LABEL == "calls-dc"
        assert engine.pc.dc.has_handler
        assert engine.pc.ice_servers == config.ice_servers
        # Data channel ainda não aberto: offer vai para sinalização externa
        assert len(offers) == 1
        assert isinstance(offers[0], SessionDescription)
        assert offers[0].type == "offer"
        assert peer.making_offer is False
        assert peer.dc_negotiated is False

        await peer.destroy()

    @pytest.mark.asyncio
    async def test_listeners_coexist_with_signaling_lock(self, engine, config):
        peer = RTCPeer(engine, config)
        received = []
        peer.on("connect", lambda: received.append("connect"))
        peer.on("close", lambda error=None: received.append("close"))

        assert isinstance(peer.lock, SignalingLock)

        await peer.initialize()
        engine.pc.emit("connectionstatechange", "connected")
        engine.pc.emit("connectionstatechange", "closed")

        assert received == ["connect", "close"]
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_destroy_removes_listeners_and_closes(self, engine, config):
        peer = RTCPeer(engine, config)
        peer.on("connect", lambda: None)
        await peer.initialize()
        pc = engine.pc

        await peer.destroy()

        assert peer.listeners("connect") == []
        assert pc.closed is True

    @pytest.mark.asyncio
    async def test_destroy_uninitialized_keeps_active_sessions(self, engine, config):
        before = REGISTRY.get_sample_value("rtc_peer_sessions_active")
        peer = RTCPeer(engine, config)

        await peer.destroy()

        assert peer.destroyed is True
        assert REGISTRY.get_sample_value("rtc_peer_sessions_active") == before

    @pytest.mark.asyncio
    async def test_initialize_twice_fails(self, engine, config):
        peer = RTCPeer(engine, config)
        await peer.initialize()

        with pytest.raises(RuntimeError):
            await peer.initialize()

        await peer.destroy()

    @pytest.mark.asyncio
    async def test_connection_timeout_emits_error(self, engine):
        peer = RTCPeer(engine, fast_config(conn_timeout_ms=30))
        errors = []
        peer.on("error", errors.append)

        await peer.initialize()
        assert await wait_for(lambda: errors, timeout=1.0)

        assert isinstance(errors[0], ConnectionTimeoutError)
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_connect_cancels_timeout(self, engine):
        peer = RTCPeer(engine, fast_config(conn_timeout_ms=50))
        errors = []
        connects = []
        peer.on("error", errors.append)
        peer.on("connect", lambda: connects.append(True))

        await peer.initialize()
        engine.pc.emit("connectionstatechange", "connected")
        await asyncio.sleep(0.1)

        assert errors == []
        assert connects == [True]
        assert peer.connected is True
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_connect_emitted_once(self, engine, config):
        peer = RTCPeer(engine, config)
        connects = []
        peer.on("connect", lambda: connects.append(True))
        await peer.initialize()

        engine.pc.emit("connectionstatechange", "connected")
        engine.pc.emit("connectionstatechange", "connected")

        assert len(connects) == 1
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_failed_connection_closes_with_error(self, engine, config):
        peer = RTCPeer(engine, config)
        closes = []
        peer.on("close", lambda error=None: closes.append(error))
        await peer.initialize()
        engine.pc.emit("connectionstatechange", "connected")

        engine.pc.emit("connectionstatechange", "failed")

        assert len(closes) == 1
        assert isinstance(closes[0], ConnectionFailedError)
        assert peer.connected is False
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_closed_connection_emits_close(self, engine, config):
        peer = RTCPeer(engine, config)
        closes = []
        peer.on("close", lambda error=None: closes.append(error))
        await peer.initialize()

        engine.pc.emit("connectionstatechange", "closed")

        assert closes == [None]
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_local_candidates_forwarded(self, engine, config):
        peer = RTCPeer(engine, config)
        candidates = []
        peer.on("candidate", candidates.append)
        await peer.initialize()

        candidate = IceCandidate("candidate:1 1 udp 1 10.0.0.1 5000 typ host", "0", 0)
        engine.pc.emit("icecandidate", candidate)
        engine.pc.emit("icecandidate", None)

        assert candidates == [candidate]
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_destroy_closes_connection(self, engine, config):
        peer = await connected_peer(engine, config)
        pc = engine.pc

        await peer.destroy()

        assert peer.destroyed is True
        assert pc.closed is True
        assert pc.dc.has_handler is False

    @pytest.mark.asyncio
    async def test_destroyed_peer_rejects_operations(self, engine, config):
        peer = await connected_peer(engine, config)
        await peer.destroy()

        with pytest.raises(PeerDestroyedError):
            await peer.destroy()
        with pytest.raises(PeerDestroyedError):
            await peer.signal({"type": "answer", "sdp": "v=0"})
        with pytest.raises(PeerDestroyedError):
            await peer.add_track(FakeTrack("audio"))
        with pytest.raises(PeerDestroyedError):
            await peer.remove_track("any")
        with pytest.raises(PeerDestroyedError):
            peer.get_rtt()

    @pytest.mark.asyncio
    async def test_destroy_rejects_pending_lock(self, engine, config):
        peer = await connected_peer(engine, config)
        # Sem FakeRemote: ninguém responde ao pedido de lock
        task = asyncio.create_task(peer.add_track(FakeTrack("audio")))
        assert await wait_for(lambda: peer.lock_waiter is not None)

        await peer.destroy()

        with pytest.raises(PeerDestroyedError):
            await task


# =============================================================================
# SINALIZAÇÃO
# =============================================================================

class TestSignaling:
    """Testes de offer/answer/candidatos"""

    @pytest.mark.asyncio
    async def test_candidates_queued_until_remote_description(self, engine, config):
        peer = RTCPeer(engine, config)
        await peer.initialize()

        for i in range(3):
            await peer.signal({"type": "candidate", "candidate": {"candidate": f"candidate:{i}", "sdpMid": "0"}})

        assert len(peer.pending_candidates) == 3
        assert engine.pc.added_candidates == []

        await peer.signal({"type": "answer", "sdp": "v=0 answer"})

        assert peer.pending_candidates == []
        assert [c.candidate for c in engine.pc.added_candidates] == [
            "candidate:0", "candidate:1", "candidate:2",
        ]
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_candidate_applied_directly_with_remote_description(self, engine, config):
        peer = await connected_peer(engine, config)

        await peer.signal(json.dumps({"type": "candidate", "candidate": "candidate:9"}))

        assert peer.pending_candidates == []
        assert engine.pc.added_candidates[-1].candidate == "candidate:9"
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_remote_offer_emits_answer(self, engine):
        peer = RTCPeer(engine, fast_config(dc_signaling=False))
        answers = []
        peer.on("answer", answers.append)
        await peer.initialize()
        await peer.signal({"type": "answer", "sdp": "v=0 answer"})

        await peer.signal({"type": "offer", "sdp": "v=0 remote offer"})

        assert engine.pc.remote_description.sdp == "v=0 remote offer"
        assert len(answers) == 1
        assert answers[0].type == "answer"
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_remote_offer_over_data_channel(self, engine, config):
        peer = await connected_peer(engine, config)
        dc = engine.pc.dc

        dc.receive_msg(DCMessageType.SDP, {"type": "offer", "sdp": "v=0 remote offer"})
        assert await wait_for(lambda: dc.count(DCMessageType.SDP) == 1)

        sdp_msg = [m for m in dc.sent_messages() if m.type == DCMessageType.SDP][0]
        assert json.loads(sdp_msg.payload)["type"] == "answer"
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_offer_conflict_is_logged(self, engine, config, caplog):
        peer = RTCPeer(engine, config)
        await peer.initialize()
        # Offer local pendente (have-local-offer)
        assert engine.pc.signaling_state == "have-local-offer"

        with caplog.at_level(logging.WARNING):
            await peer.signal({"type": "offer", "sdp": "v=0 remote offer"})

        assert "Conflito de offer" in caplog.text
        assert engine.pc.answers_created == 1
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_first_answer_negotiates_data_channel(self, engine, config):
        peer = await connected_peer(engine, config)

        assert peer.dc_negotiated is True
        assert engine.pc.dc.count(DCMessageType.UNLOCK) == 0
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_subsequent_answer_releases_lock(self, engine, config):
        peer = await connected_peer(engine, config)

        await peer.signal({"type": "answer", "sdp": "v=0 second answer"})

        assert engine.pc.dc.count(DCMessageType.UNLOCK) == 1
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_answer_with_closed_channel_warns(self, engine, config, caplog):
        peer = await connected_peer(engine, config)
        engine.pc.dc.state = "closed"

        with caplog.at_level(logging.WARNING):
            await peer.signal({"type": "answer", "sdp": "v=0 second answer"})

        assert "data channel fechado" in caplog.text
        assert engine.pc.dc.sent == []
        await peer.destroy()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", [
        {"type": "bogus"},
        {"type": "offer"},
        {"type": "candidate", "candidate": 42},
        "not json",
        ["offer"],
    ])
    async def test_invalid_signaling_data(self, engine, config, data):
        peer = RTCPeer(engine, config)
        await peer.initialize()

        with pytest.raises(SignalingError):
            await peer.signal(data)

        await peer.destroy()

    @pytest.mark.asyncio
    async def test_offer_failure_emits_error_and_releases(self, engine, config):
        peer = await connected_peer(engine, config)
        remote = FakeRemote(engine.pc.dc)
        errors = []
        peer.on("error", errors.append)
        engine.pc.fail_local_description = True

        await peer.add_track(FakeTrack("audio"))

        assert len(errors) == 1
        assert isinstance(errors[0], RuntimeError)
        assert remote.unlocks == 1
        assert peer.lock.held is False
        assert peer.making_offer is False
        await peer.destroy()


    @pytest.mark.asyncio
    async def test_offer_send_failure_only_logged(self, engine, config, caplog):
        peer = await connected_peer(engine, config)
        dc = engine.pc.dc
        errors = []
        peer.on("error", errors.append)

        def on_send(data):
            if data == encode_dc_msg(DCMessageType.LOCK):
                asyncio.get_running_loop().call_soon(dc.receive_msg, DCMessageType.LOCK, True)
            elif data[0] == DCMessageType.SDP:
                raise RuntimeError("sctp closed")

        dc.on_send = on_send

        with caplog.at_level(logging.ERROR):
            await peer.add_track(FakeTrack("audio"))

        assert errors == []
        assert "Erro ao enviar offer" in caplog.text
        assert peer.making_offer is False
        await peer.destroy()

# =============================================================================
# MENSAGENS DE CONTROLE
# =============================================================================

class TestControlMessages:
    """Testes das mensagens do data channel"""

    @pytest.mark.asyncio
    async def test_ping_answered_with_pong(self, engine, config):
        peer = await connected_peer(engine, config)

        engine.pc.dc.receive_msg(DCMessageType.PING)

        assert engine.pc.dc.count(DCMessageType.PONG) == 1
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_ping_pong_measures_rtt(self, engine):
        peer = await connected_peer(engine, fast_config(ping_interval_ms=20))
        dc = engine.pc.dc
        assert peer.get_rtt() == 0.0

        assert await wait_for(lambda: dc.count(DCMessageType.PING) >= 1)
        await asyncio.sleep(0.005)
        dc.receive_msg(DCMessageType.PONG)

        assert peer.get_rtt() > 0
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_no_ping_while_channel_closed(self, engine):
        peer = RTCPeer(engine, fast_config(ping_interval_ms=10))
        await peer.initialize()

        await asyncio.sleep(0.05)

        assert engine.pc.dc.sent == []
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_malformed_message_ignored(self, engine, config, caplog):
        peer = await connected_peer(engine, config)
        dc = engine.pc.dc

        with caplog.at_level(logging.ERROR):
            dc.receive(b"\xc1")
            dc.receive(b"\x63")

        assert "decodificar" in caplog.text
        # Sessão segue funcional
        dc.receive_msg(DCMessageType.PING)
        assert dc.count(DCMessageType.PONG) == 1
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_media_map_labels_remote_streams(self, engine, config):
        peer = await connected_peer(engine, config)
        streams = []
        peer.on("stream", lambda track, info: streams.append((track, info)))

        engine.pc.dc.receive_msg(DCMessageType.MEDIA_MAP, {
            "0": {"type": "screen", "sender_id": "user-a", "mime_type": "video/VP8"},
        })
        assert peer.media_map == {"0": TrackInfo("screen", "user-a", "video/VP8")}

        remote_track = FakeTrack("video")
        engine.pc.emit("track", remote_track, FakeTransceiver("0", FakeSender()))
        engine.pc.emit("track", FakeTrack("audio"), FakeTransceiver("5", FakeSender()))

        assert streams[0] == (remote_track, TrackInfo("screen", "user-a", "video/VP8"))
        assert streams[1][1] is None
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_truncated_media_map_keeps_cache(self, engine, config, caplog):
        peer = await connected_peer(engine, config)
        media_map = {"0": {"type": "video", "sender_id": "user-a", "mime_type": "video/VP8"}}
        engine.pc.dc.receive_msg(DCMessageType.MEDIA_MAP, media_map)

        data = encode_dc_msg(DCMessageType.MEDIA_MAP, media_map)
        with caplog.at_level(logging.ERROR):
            engine.pc.dc.receive(data[:-10])

        assert "decodificar" in caplog.text
        assert peer.media_map == {"0": TrackInfo("video", "user-a", "video/VP8")}
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_unexpected_message_logged(self, engine, config, caplog):
        peer = await connected_peer(engine, config)

        with caplog.at_level(logging.WARNING):
            engine.pc.dc.receive_msg(DCMessageType.JITTER, 0.01)

        assert "inesperada" in caplog.text
        await peer.destroy()


# =============================================================================
# TRACKS
# =============================================================================

class TestTracks:
    """Testes de add/remove/replace de tracks"""

    @pytest.mark.asyncio
    async def test_add_video_track_simulcast(self, engine, config):
        peer = await connected_peer(engine, config)
        remote = FakeRemote(engine.pc.dc)
        track = FakeTrack("video")
        stream = FakeStream(track)

        await peer.add_track(track, stream)

        transceiver = engine.pc.transceivers[0]
        assert transceiver.sender.track is track
        assert transceiver.direction == "sendrecv"
        assert transceiver.streams == [stream]
        assert [e.rid for e in transceiver.sender.encodings] == ["l", "h"]
        assert [e.max_bitrate for e in transceiver.sender.encodings] == [500_000, 2_500_000]
        assert [c.mime_type for c in transceiver.codec_preferences] == ["video/VP8", "video/AV1"]

        assert len(remote.offers) == 1
        assert await wait_for(lambda: remote.unlocks == 1)
        assert track.id in peer.track_contexts
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_add_video_track_without_simulcast(self, engine):
        peer = await connected_peer(engine, fast_config(simulcast=False))
        FakeRemote(engine.pc.dc)

        await peer.add_track(FakeTrack("video"))

        encodings = engine.pc.transceivers[0].sender.encodings
        assert len(encodings) == 1
        assert encodings[0].rid is None
        assert encodings[0].max_bitrate == 1_000_000
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_custom_encodings(self, engine, config):
        peer = await connected_peer(engine, config)
        FakeRemote(engine.pc.dc)
        custom = [EncodingParameters(max_bitrate=300_000)]

        await peer.add_track(FakeTrack("video"), opts=TrackOptions(encodings=custom))

        assert engine.pc.transceivers[0].sender.encodings == custom
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_av1_preferred_with_full_support(self, engine):
        peer = await connected_peer(engine, fast_config(enable_av1=True))
        remote = FakeRemote(engine.pc.dc)

        engine.pc.dc.receive_msg(DCMessageType.CODEC_SUPPORT_MAP, {"video/AV1": 2})
        assert await wait_for(lambda: remote.unlocks == 1)

        await peer.add_track(FakeTrack("video"))

        prefs = engine.pc.transceivers[0].codec_preferences
        assert [c.mime_type for c in prefs] == ["video/AV1", "video/VP8"]
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_av1_not_preferred_when_disabled(self, engine, config):
        peer = await connected_peer(engine, config)
        remote = FakeRemote(engine.pc.dc)
        engine.pc.dc.receive_msg(DCMessageType.CODEC_SUPPORT_MAP, {"video/AV1": 2})
        assert await wait_for(lambda: remote.unlocks == 1)

        await peer.add_track(FakeTrack("video"))

        prefs = engine.pc.transceivers[0].codec_preferences
        assert prefs[0].mime_type == "video/VP8"
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_vp8_required(self, config):
        engine = FakeEngine(codecs=[AV1])
        peer = await connected_peer(engine, config)
        remote = FakeRemote(engine.pc.dc)

        with pytest.raises(CodecNotFoundError):
            await peer.add_track(FakeTrack("video"))

        assert remote.unlocks == 1
        assert remote.offers == []
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_add_audio_track(self, engine, config):
        peer = await connected_peer(engine, config)
        remote = FakeRemote(engine.pc.dc)
        track = FakeTrack("audio")

        await peer.add_track(track)

        ctx = peer.track_contexts[track.id]
        assert ctx.sender.track is track
        assert ctx.sender.encodings == []
        assert ctx.is_video is False
        assert len(remote.offers) == 1
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_add_stream_adds_each_track(self, engine, config):
        peer = await connected_peer(engine, config)
        remote = FakeRemote(engine.pc.dc)
        audio, video = FakeTrack("audio"), FakeTrack("video")

        await peer.add_stream(FakeStream(audio, video))
        assert await wait_for(lambda: remote.unlocks == 2)

        assert set(peer.track_contexts) == {audio.id, video.id}
        assert len(remote.offers) == 2
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_add_track_waits_for_remote_lock(self, engine, config):
        peer = await connected_peer(engine, config)
        remote = FakeRemote(engine.pc.dc)
        remote.remote_holds_lock = True
        track = FakeTrack("video")

        task = asyncio.create_task(peer.add_track(track))
        await asyncio.sleep(0.1)

        assert not task.done()
        assert engine.pc.dc.lock_requests() >= 2
        assert remote.offers == []
        assert peer.track_contexts == {}

        remote.remote_holds_lock = False
        await asyncio.wait_for(task, 1)

        assert len(remote.offers) == 1
        assert await wait_for(lambda: remote.unlocks == 1)
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_remove_track(self, engine, config):
        peer = await connected_peer(engine, config)
        remote = FakeRemote(engine.pc.dc)
        track = FakeTrack("video")
        await peer.add_track(track)
        assert await wait_for(lambda: remote.unlocks == 1)
        sender = peer.track_contexts[track.id].sender

        await peer.remove_track(track.id)

        assert engine.pc.removed_senders == [sender]
        assert track.id not in peer.track_contexts
        assert len(remote.offers) == 2
        assert await wait_for(lambda: remote.unlocks == 2)
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_remove_unknown_track_releases_lock(self, engine, config):
        peer = await connected_peer(engine, config)
        remote = FakeRemote(engine.pc.dc)

        with pytest.raises(TrackNotFoundError):
            await peer.remove_track("missing")

        assert remote.unlocks == 1
        assert remote.offers == []
        assert peer.lock_waiter is None
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_replace_track_rekeys_context(self, engine, config):
        peer = await connected_peer(engine, config)
        remote = FakeRemote(engine.pc.dc)
        old, new = FakeTrack("video"), FakeTrack("video")
        await peer.add_track(old)
        requests_before = engine.pc.dc.lock_requests()

        await peer.replace_track(old.id, new)

        ctxs = peer.track_contexts
        assert old.id not in ctxs
        assert ctxs[new.id].track is new
        assert ctxs[new.id].sender.track is new
        # Sem renegociação
        assert len(remote.offers) == 1
        assert engine.pc.dc.lock_requests() == requests_before
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_replace_track_with_none_keeps_context(self, engine, config):
        peer = await connected_peer(engine, config)
        FakeRemote(engine.pc.dc)
        track = FakeTrack("audio")
        await peer.add_track(track)

        await peer.replace_track(track.id, None)

        assert peer.track_contexts[track.id].sender.track is None

        with pytest.raises(TrackNotFoundError):
            await peer.replace_track("missing", track)
        await peer.destroy()


# =============================================================================
# MÉTRICAS
# =============================================================================

class TestMetrics:
    """Testes de handle_metrics e get_stats"""

    @pytest.mark.asyncio
    async def test_metrics_sent_over_data_channel(self, engine, config):
        peer = await connected_peer(engine, config)

        peer.handle_metrics(0.05, 0.02)

        msgs = {m.type: m.payload for m in engine.pc.dc.sent_messages()}
        assert msgs[DCMessageType.LOSS_RATE] == pytest.approx(0.05)
        assert msgs[DCMessageType.JITTER] == pytest.approx(0.02)
        # RTT ainda não medido
        assert DCMessageType.ROUND_TRIP_TIME not in msgs
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_rtt_sent_after_measurement(self, engine):
        peer = await connected_peer(engine, fast_config(ping_interval_ms=10))
        dc = engine.pc.dc
        assert await wait_for(lambda: dc.count(DCMessageType.PING) >= 1)
        dc.receive_msg(DCMessageType.PONG)

        peer.handle_metrics(0.0, 0.0)

        assert dc.count(DCMessageType.ROUND_TRIP_TIME) == 1
        assert dc.count(DCMessageType.LOSS_RATE) == 1
        assert dc.count(DCMessageType.JITTER) == 0
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_negative_loss_not_sent(self, engine, config):
        peer = await connected_peer(engine, config)

        peer.handle_metrics(-1, 0)

        assert engine.pc.dc.sent == []
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_metrics_skipped_when_channel_closed(self, engine, config):
        peer = RTCPeer(engine, config)
        await peer.initialize()

        peer.handle_metrics(0.1, 0.02)

        assert engine.pc.dc.sent == []
        await peer.destroy()

    @pytest.mark.asyncio
    async def test_get_stats_from_engine(self, engine, config):
        peer = await connected_peer(engine, config)
        engine.pc.stats = {"x": {"type": "inbound-rtp"}}

        assert await peer.get_stats() == {"x": {"type": "inbound-rtp"}}
        await peer.destroy()
