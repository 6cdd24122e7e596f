"""
Módulo de métricas Prometheus da sessão RTC
"""

from .prometheus_metrics import (
    # Sessões
    SESSIONS_CREATED,
    SESSIONS_DESTROYED,
    ACTIVE_SESSIONS,
    CONNECTION_STATE,
    CONNECTION_ERRORS,
    # Sinalização
    LOCK_WAIT_TIME,
    LOCK_DENIALS,
    LOCK_TIMEOUTS,
    RENEGOTIATIONS,
    NEGOTIATION_ERRORS,
    CODEC_SWITCHES,
    DC_MESSAGES,
    DC_DECODE_ERRORS,
    # Qualidade
    CALL_MOS_SCORE,
    MOS_SCORE_DISTRIBUTION,
    POOR_QUALITY_PERIODS,
    CALL_JITTER_MS,
    CALL_LOSS_RATIO,
    CALL_LATENCY_MS,
    PING_RTT_MS,
    # Helpers
    start_metrics_server,
    track_session_created,
    track_session_destroyed,
    track_connection_state,
    track_connection_error,
    track_lock_acquired,
    track_lock_denied,
    track_lock_timeout,
    track_renegotiation,
    track_negotiation_error,
    track_codec_switch,
    track_dc_message,
    track_dc_decode_error,
    track_ping_rtt,
    track_call_quality,
    track_mos_score,
)

__all__ = [
    "SESSIONS_CREATED",
    "SESSIONS_DESTROYED",
    "ACTIVE_SESSIONS",
    "CONNECTION_STATE",
    "CONNECTION_ERRORS",
    "LOCK_WAIT_TIME",
    "LOCK_DENIALS",
    "LOCK_TIMEOUTS",
    "RENEGOTIATIONS",
    "NEGOTIATION_ERRORS",
    "CODEC_SWITCHES",
    "DC_MESSAGES",
    "DC_DECODE_ERRORS",
    "CALL_MOS_SCORE",
    "MOS_SCORE_DISTRIBUTION",
    "POOR_QUALITY_PERIODS",
    "CALL_JITTER_MS",
    "CALL_LOSS_RATIO",
    "CALL_LATENCY_MS",
    "PING_RTT_MS",
    "start_metrics_server",
    "track_session_created",
    "track_session_destroyed",
    "track_connection_state",
    "track_connection_error",
    "track_lock_acquired",
    "track_lock_denied",
    "track_lock_timeout",
    "track_renegotiation",
    "track_negotiation_error",
    "track_codec_switch",
    "track_dc_message",
    "track_dc_decode_error",
    "track_ping_rtt",
    "track_call_quality",
    "track_mos_score",
]
