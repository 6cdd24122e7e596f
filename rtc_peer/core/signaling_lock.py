"""
Lock de sinalização compartilhado com o lado remoto

Antes de qualquer operação que altere senders/transceivers (add/remove track,
troca de codec) a sessão precisa obter o lock pelo data channel:

    1. Envia LOCK (sem payload)
    2. Remoto responde LOCK(true) = obtido, LOCK(false) = remoto negociando
    3. Em caso de negação, reenvia após retry_interval (só com o canal
       aberto e negociado; caso contrário apenas reagenda)
    4. Timeout global rejeita a tentativa e libera o slot
    5. UNLOCK libera o lock ao final da renegociação

Apenas uma tentativa local fica pendente por vez: chamadas concorrentes
aguardam (polling) até o slot ficar livre.
"""

import asyncio
import logging
from typing import Callable, Optional, Union

from ..metrics import track_lock_acquired, track_lock_denied, track_lock_timeout
from ..protocol.dc_msg import encode_dc_msg
from ..protocol.enums import DataChannelState, DCMessageType
from ..protocol.errors import SignalingLockTimeoutError

LockWaiter = Callable[[bool], None]


class SignalingLock:
    """Protocolo de exclusão mútua de renegociações sobre o data channel"""

    def __init__(
        self,
        channel_state: Callable[[], str],
        is_negotiated: Callable[[], bool],
        send: Callable[[bytes], None],
        timeout_ms: int = 5000,
        retry_interval_ms: int = 50,
        logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    ):
        """
        Args:
            channel_state: Retorna o ready_state atual do data channel
            is_negotiated: Retorna se o data channel já foi negociado
            send: Envia bytes pelo data channel
            timeout_ms: Timeout global de uma tentativa
            retry_interval_ms: Intervalo entre reenvios
        """
        self._channel_state = channel_state
        self._is_negotiated = is_negotiated
        self._send = send
        self.timeout_ms = timeout_ms
        self.retry_interval_ms = retry_interval_ms
        self._logger = logger or logging.getLogger("rtc-peer.lock")

        self._waiter: Optional[LockWaiter] = None
        self._pending: Optional[asyncio.Future] = None
        self._retry_handle: Optional[asyncio.TimerHandle] = None
        self._held = False
        self._closed_error: Optional[Exception] = None

    @property
    def waiter(self) -> Optional[LockWaiter]:
        """Callback da tentativa pendente (None se não há tentativa)"""
        return self._waiter

    @property
    def held(self) -> bool:
        return self._held

    def _channel_ready(self) -> bool:
        return self._is_negotiated() and self._channel_state() == DataChannelState.OPEN.value

    async def acquire(self, timeout_ms: Optional[int] = None) -> None:
        """
        Obtém o lock de sinalização.

        Raises:
            SignalingLockTimeoutError: lock não obtido dentro do timeout
        """
        timeout = (self.timeout_ms if timeout_ms is None else timeout_ms) / 1000
        loop = asyncio.get_running_loop()
        start = loop.time()

        # Serializa tentativas locais
        while self._waiter is not None:
            if loop.time() - start > timeout:
                track_lock_timeout()
                raise SignalingLockTimeoutError()
            await asyncio.sleep(self.retry_interval_ms / 1000)

        if self._closed_error is not None:
            raise self._closed_error

        future = loop.create_future()

        def on_response(granted: bool) -> None:
            if granted:
                self._clear_waiter()
                if not future.done():
                    future.set_result(None)
            else:
                track_lock_denied()
                self._logger.debug("Lock negado pelo remoto, nova tentativa agendada")
                self._schedule_retry()

        self._waiter = on_response
        self._pending = future
        remaining = max(0.0, timeout - (loop.time() - start))
        timeout_handle = loop.call_later(remaining, self._on_timeout, future)

        if not self._channel_ready():
            self._schedule_retry()
        else:
            self._send_lock()

        try:
            await future
        finally:
            timeout_handle.cancel()
            if self._waiter is on_response:
                self._clear_waiter()
            if self._pending is future:
                self._pending = None

        self._held = True
        elapsed = loop.time() - start
        track_lock_acquired(elapsed)
        self._logger.debug("Lock obtido", extra={"stage": "lock", "duration_ms": elapsed * 1000})

    def handle_response(self, granted: bool) -> None:
        """Entrega a resposta LOCK(bool) do remoto para a tentativa pendente"""
        if self._waiter is None:
            self._logger.warning("Resposta de lock recebida sem tentativa pendente")
            return
        self._waiter(bool(granted))

    def release(self) -> None:
        """Envia UNLOCK; sem canal pronto apenas loga (entrega não garantida)"""
        self._held = False
        if not self._channel_ready():
            self._logger.warning("Unlock ignorado: data channel não negociado ou não aberto")
            return
        try:
            self._send(encode_dc_msg(DCMessageType.UNLOCK))
        except Exception as e:
            self._logger.error(f"Erro ao enviar unlock: {e}")

    def close(self, error: Exception) -> None:
        """Rejeita a tentativa pendente e impede novas tentativas"""
        self._closed_error = error
        future = self._pending
        self._clear_waiter()
        self._pending = None
        if future is not None and not future.done():
            future.set_exception(error)

    def _on_timeout(self, future: asyncio.Future) -> None:
        if future.done():
            return
        self._clear_waiter()
        track_lock_timeout()
        self._logger.warning(f"Timeout aguardando lock ({self.timeout_ms}ms)")
        future.set_exception(SignalingLockTimeoutError())

    def _clear_waiter(self) -> None:
        self._waiter = None
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None

    def _schedule_retry(self) -> None:
        if self._retry_handle is not None:
            self._retry_handle.cancel()
        loop = asyncio.get_running_loop()
        self._retry_handle = loop.call_later(self.retry_interval_ms / 1000, self._retry)

    def _retry(self) -> None:
        self._retry_handle = None
        if self._waiter is None:
            return

        state = self._channel_state()
        if state in (DataChannelState.CLOSING.value, DataChannelState.CLOSED.value):
            # Sem reenvio: o timeout global encerra a tentativa
            self._logger.warning(f"Data channel {state}, abandonando novas tentativas de lock")
            return

        if not self._channel_ready():
            self._schedule_retry()
            return

        self._send_lock()

    def _send_lock(self) -> None:
        try:
            self._send(encode_dc_msg(DCMessageType.LOCK))
        except Exception as e:
            self._logger.error(f"Erro ao enviar pedido de lock: {e}")
