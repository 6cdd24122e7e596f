"""
Cliente WebSocket de sinalização externa

Usado enquanto o data channel não está disponível (ou com dc_signaling
desabilitado). Mensagens JSON:

    {"type": "offer",  "sdp": "..."}
    {"type": "answer", "sdp": "..."}
    {"type": "candidate", "candidate": {"candidate": "...", "sdpMid": "0", "sdpMLineIndex": 0}}
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Set

import websockets

from ..config import SIGNALING_CONFIG
from ..ports.media_engine import IceCandidate, SessionDescription
from ..protocol.enums import SessionEvent, SignalingMessageType

logger = logging.getLogger("rtc-peer.signaling")


class SignalingClient:
    """Liga os eventos de sinalização de um RTCPeer a um servidor WebSocket"""

    def __init__(self, peer, url: Optional[str] = None):
        self.url = url or SIGNALING_CONFIG["url"]
        self.ws = None
        self._peer = peer
        self._connected = asyncio.Event()
        self._receive_task: Optional[asyncio.Task] = None
        self._send_tasks: Set[asyncio.Task] = set()

        peer.on(SessionEvent.OFFER, self._on_description)
        peer.on(SessionEvent.ANSWER, self._on_description)
        peer.on(SessionEvent.CANDIDATE, self._on_candidate)

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set() and self.ws is not None

    async def connect(self) -> bool:
        """Conecta ao servidor de sinalização"""
        try:
            logger.info(f"Conectando ao servidor de sinalização: {self.url}")
            self.ws = await websockets.connect(
                self.url,
                ping_interval=SIGNALING_CONFIG["ping_interval"],
                ping_timeout=SIGNALING_CONFIG["ping_timeout"],
                close_timeout=SIGNALING_CONFIG["close_timeout"],
            )
            self._connected.set()
            self._receive_task = asyncio.create_task(self._receive_loop())
            logger.info("Conectado ao servidor de sinalização")
            return True
        except Exception as e:
            logger.error(f"Erro ao conectar na sinalização: {e}")
            self._connected.clear()
            return False

    async def disconnect(self) -> None:
        self._connected.clear()
        if self._receive_task is not None:
            self._receive_task.cancel()
            try:
                await self._receive_task
            except asyncio.CancelledError:
                pass
            self._receive_task = None

        if self.ws is not None:
            try:
                await self.ws.close()
            except Exception as e:
                logger.debug(f"Erro ao fechar WebSocket: {e}")
            self.ws = None
        logger.info("Desconectado do servidor de sinalização")

    async def wait_connected(self, timeout: float = 10) -> bool:
        try:
            await asyncio.wait_for(self._connected.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    async def send(self, message: Dict[str, Any]) -> bool:
        """Envia uma mensagem de sinalização (JSON)"""
        if not self.is_connected:
            logger.warning(f"Sinalização desconectada, descartando {message.get('type')}")
            return False
        try:
            await self.ws.send(json.dumps(message))
            return True
        except Exception as e:
            logger.error(f"Erro ao enviar {message.get('type')}: {e}")
            return False

    def _schedule_send(self, message: Dict[str, Any]) -> None:
        task = asyncio.create_task(self.send(message))
        self._send_tasks.add(task)
        task.add_done_callback(self._send_tasks.discard)

    def _on_description(self, description: SessionDescription) -> None:
        self._schedule_send(description.to_dict())

    def _on_candidate(self, candidate: IceCandidate) -> None:
        self._schedule_send({
            "type": SignalingMessageType.CANDIDATE.value,
            "candidate": candidate.to_dict(),
        })

    async def _receive_loop(self) -> None:
        try:
            async for message in self.ws:
                await self._handle_message(message)
        except websockets.ConnectionClosed as e:
            logger.warning(f"Conexão de sinalização fechada: {e.code}")
        except Exception as e:
            logger.error(f"Erro no receive loop: {e}")
        finally:
            self._connected.clear()

    async def _handle_message(self, message) -> None:
        if isinstance(message, bytes):
            message = message.decode("utf-8", errors="replace")
        try:
            data = json.loads(message)
        except ValueError:
            logger.warning(f"Mensagem de sinalização inválida: {message[:100]}")
            return

        try:
            await self._peer.signal(data)
        except Exception as e:
            logger.error(f"Erro ao processar sinalização {data.get('type') if isinstance(data, dict) else '?'}: {e}")
