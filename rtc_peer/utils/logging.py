"""
Logging com correlation ID da sessão RTC.

Uso:
    from rtc_peer.utils.logging import get_session_logger

    logger = get_session_logger("rtc-peer.session", session_id="abc123")
    logger.info("Offer enviada")
    # Output: [session_id=abc123] Offer enviada

    logger.info("Lock obtido", extra={"stage": "lock", "duration_ms": 120})
    # Output: [session_id=abc123] [stage=lock] Lock obtido (120ms)
"""

import logging
from typing import MutableMapping, Any


class SessionLoggerAdapter(logging.LoggerAdapter):
    """Logger que injeta session_id e stage em todas as mensagens."""

    def __init__(self, logger: logging.Logger, session_id: str):
        super().__init__(logger, {
            "session_id": session_id[:8] if session_id else "",
        })

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple:
        extra = kwargs.get("extra", {})

        session_id = self.extra.get("session_id", "")
        prefix = f"[session_id={session_id}]" if session_id else ""

        # Stage opcional (lock, sdp, codec, stats)
        stage = extra.get("stage")
        if stage:
            prefix = f"{prefix} [stage={stage}]"

        duration_ms = extra.get("duration_ms")
        suffix = f" ({duration_ms:.0f}ms)" if duration_ms is not None else ""

        # Não muta o dict do caller
        filtered_extra = {k: v for k, v in extra.items() if k not in ("stage", "duration_ms")}
        kwargs["extra"] = {**self.extra, **filtered_extra}
        return f"{prefix} {msg}{suffix}".lstrip(), kwargs


def get_session_logger(name: str, session_id: str) -> SessionLoggerAdapter:
    """Cria um logger com correlation ID para uma sessão.

    Args:
        name: Nome do logger (ex: "rtc-peer.session")
        session_id: ID da sessão (truncado para 8 chars)
    """
    return SessionLoggerAdapter(logging.getLogger(name), session_id)
