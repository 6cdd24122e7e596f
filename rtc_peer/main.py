#!/usr/bin/env python3
"""
RTC Peer - cliente de chamada
Conecta uma sessão RTCPeer (aiortc) a um servidor de sinalização WebSocket
e monitora a qualidade da chamada.
"""

import asyncio
import logging
import signal
import sys

from .adapters.aiortc_engine import AiortcEngine
from .config import LOG_CONFIG, METRICS_CONFIG, MONITOR_CONFIG, SIGNALING_CONFIG
from .core.peer import RTCPeer
from .core.peer_config import RTCPeerConfig
from .metrics import start_metrics_server
from .protocol.enums import MonitorEvent, SessionEvent
from .quality.monitor import RTCMonitor
from .ws.signaling_client import SignalingClient

logger = logging.getLogger("rtc-peer")


def setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, LOG_CONFIG["level"]),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )
    engine_level = getattr(logging, LOG_CONFIG["engine_log_level"])
    logging.getLogger("aiortc").setLevel(engine_level)
    logging.getLogger("aioice").setLevel(engine_level)


class RTCPeerApp:
    """Liga engine, sessão, sinalização e monitor"""

    def __init__(self):
        self.peer: RTCPeer = None
        self.signaling: SignalingClient = None
        self.monitor: RTCMonitor = None
        self._shutdown_event = asyncio.Event()

    async def start(self) -> None:
        logger.info("=" * 60)
        logger.info(" RTC PEER")
        logger.info("=" * 60)

        if METRICS_CONFIG.get("enabled", True):
            start_metrics_server(METRICS_CONFIG["port"])

        self.peer = RTCPeer(AiortcEngine(), RTCPeerConfig.from_env())
        self.peer.on(SessionEvent.CONNECT, lambda: logger.info("Conectado"))
        self.peer.on(SessionEvent.CLOSE, self._on_close)
        self.peer.on(SessionEvent.ERROR, lambda err: logger.error(f"Erro na sessão: {err}"))
        self.peer.on(SessionEvent.STREAM, self._on_stream)

        self.signaling = SignalingClient(self.peer, SIGNALING_CONFIG["url"])
        if not await self.signaling.connect():
            raise RuntimeError("não foi possível conectar ao servidor de sinalização")

        self.monitor = RTCMonitor(self.peer, MONITOR_CONFIG["interval_ms"], MONITOR_CONFIG["mos_threshold"])
        self.monitor.on(MonitorEvent.QUALITY, lambda mos: logger.info(f"MOS: {mos:.2f}"))

        await self.peer.initialize()
        self.monitor.start()

        logger.info(f"   Sessão: {self.peer.session_id}")
        logger.info(f"   Sinalização: {self.signaling.url}")
        logger.info("=" * 60)

        await self._shutdown_event.wait()

    def _on_close(self, error=None) -> None:
        if error is not None:
            logger.error(f"Conexão encerrada: {error}")
        else:
            logger.info("Conexão encerrada")
        self._shutdown_event.set()

    def _on_stream(self, track, track_info) -> None:
        logger.info(f"Track remota: kind={track.kind} info={track_info}")

    async def stop(self) -> None:
        logger.info("Parando RTC Peer...")
        if self.monitor:
            self.monitor.stop()
        if self.peer and not self.peer.destroyed:
            await self.peer.destroy()
        if self.signaling:
            await self.signaling.disconnect()
        logger.info("RTC Peer parado")

    def trigger_shutdown(self) -> None:
        self._shutdown_event.set()


async def run() -> None:
    app = RTCPeerApp()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, app.trigger_shutdown)

    try:
        await app.start()
    except Exception as e:
        logger.error(f"Erro fatal: {e}")
        sys.exit(1)
    finally:
        await app.stop()


def main() -> None:
    setup_logging()
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
