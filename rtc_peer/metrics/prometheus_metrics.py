"""
Definições de métricas Prometheus da sessão RTC
"""

import logging
from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    Enum,
    start_http_server,
)

logger = logging.getLogger("rtc-peer.metrics")

# =============================================================================
# MÉTRICAS DE SESSÃO
# =============================================================================

SESSIONS_CREATED = Counter(
    'rtc_peer_sessions_created_total',
    'Total de sessões RTC criadas'
)

SESSIONS_DESTROYED = Counter(
    'rtc_peer_sessions_destroyed_total',
    'Total de sessões RTC destruídas'
)

ACTIVE_SESSIONS = Gauge(
    'rtc_peer_sessions_active',
    'Número de sessões RTC ativas'
)

CONNECTION_STATE = Enum(
    'rtc_peer_connection_state',
    'Último estado de conexão reportado pelo engine',
    states=['new', 'connecting', 'connected', 'disconnected', 'failed', 'closed']
)

CONNECTION_ERRORS = Counter(
    'rtc_peer_connection_errors_total',
    'Total de falhas de conexão',
    ['reason']  # failed, timeout
)

# =============================================================================
# MÉTRICAS DE SINALIZAÇÃO
# =============================================================================

LOCK_WAIT_TIME = Histogram(
    'rtc_peer_signaling_lock_wait_seconds',
    'Tempo até obter o lock de sinalização',
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

LOCK_DENIALS = Counter(
    'rtc_peer_signaling_lock_denials_total',
    'Total de pedidos de lock negados pelo lado remoto'
)

LOCK_TIMEOUTS = Counter(
    'rtc_peer_signaling_lock_timeouts_total',
    'Total de timeouts aguardando o lock'
)

RENEGOTIATIONS = Counter(
    'rtc_peer_renegotiations_total',
    'Total de ciclos de offer iniciados',
    ['transport']  # dc, external
)

NEGOTIATION_ERRORS = Counter(
    'rtc_peer_negotiation_errors_total',
    'Total de falhas de offer/answer'
)

CODEC_SWITCHES = Counter(
    'rtc_peer_codec_switches_total',
    'Total de trocas de codec por track',
    ['codec']
)

DC_MESSAGES = Counter(
    'rtc_peer_dc_messages_total',
    'Mensagens recebidas no data channel',
    ['type']
)

DC_DECODE_ERRORS = Counter(
    'rtc_peer_dc_decode_errors_total',
    'Mensagens do data channel descartadas por erro de decode'
)

# =============================================================================
# MÉTRICAS DE QUALIDADE
# =============================================================================

CALL_MOS_SCORE = Gauge(
    'rtc_peer_call_mos_score',
    'MOS score estimado da chamada atual (1.0-4.5)'
)

MOS_SCORE_DISTRIBUTION = Histogram(
    'rtc_peer_mos_score_distribution',
    'Distribuição dos MOS scores estimados',
    buckets=[1.0, 1.5, 2.0, 2.5, 3.0, 3.5, 4.0, 4.5]
)

POOR_QUALITY_PERIODS = Counter(
    'rtc_peer_poor_quality_periods_total',
    'Períodos com MOS abaixo do threshold'
)

CALL_JITTER_MS = Gauge(
    'rtc_peer_call_jitter_ms',
    'Jitter estimado em milissegundos'
)

CALL_LOSS_RATIO = Gauge(
    'rtc_peer_call_loss_ratio',
    'Taxa de perda de pacotes estimada (0.0-1.0)'
)

CALL_LATENCY_MS = Gauge(
    'rtc_peer_call_latency_ms',
    'Latência estimada (one-way) em milissegundos'
)

PING_RTT_MS = Gauge(
    'rtc_peer_ping_rtt_ms',
    'RTT medido via ping/pong no data channel'
)

# =============================================================================
# HELPERS
# =============================================================================

def start_metrics_server(port: int = 9092):
    """Inicia servidor HTTP para expor métricas"""
    try:
        start_http_server(port)
        logger.info(f"Metrics server iniciado na porta {port}")
    except Exception as e:
        logger.error(f"Erro ao iniciar metrics server: {e}")


def track_session_created():
    SESSIONS_CREATED.inc()
    ACTIVE_SESSIONS.inc()


def track_session_destroyed():
    SESSIONS_DESTROYED.inc()
    ACTIVE_SESSIONS.dec()


def track_connection_state(state: str):
    """Atualiza estado da conexão (ignora estados desconhecidos)"""
    try:
        CONNECTION_STATE.state(state)
    except ValueError:
        logger.debug(f"Estado de conexão não mapeado: {state}")


def track_connection_error(reason: str):
    CONNECTION_ERRORS.labels(reason=reason).inc()


def track_lock_acquired(wait_seconds: float):
    LOCK_WAIT_TIME.observe(wait_seconds)


def track_lock_denied():
    LOCK_DENIALS.inc()


def track_lock_timeout():
    LOCK_TIMEOUTS.inc()


def track_renegotiation(transport: str):
    """Registra início de um ciclo de offer (dc ou external)"""
    RENEGOTIATIONS.labels(transport=transport).inc()


def track_negotiation_error():
    NEGOTIATION_ERRORS.inc()


def track_codec_switch(codec: str):
    CODEC_SWITCHES.labels(codec=codec).inc()


def track_dc_message(msg_type: str):
    DC_MESSAGES.labels(type=msg_type).inc()


def track_dc_decode_error():
    DC_DECODE_ERRORS.inc()


def track_ping_rtt(rtt_ms: float):
    PING_RTT_MS.set(rtt_ms)


def track_call_quality(latency_ms: float, jitter_ms: float, loss_rate: float):
    """Atualiza gauges de qualidade do período"""
    CALL_LATENCY_MS.set(latency_ms)
    CALL_JITTER_MS.set(jitter_ms)
    CALL_LOSS_RATIO.set(loss_rate)


def track_mos_score(mos: float, threshold: float = 3.5):
    """Registra MOS score estimado"""
    CALL_MOS_SCORE.set(mos)
    MOS_SCORE_DISTRIBUTION.observe(mos)
    if mos < threshold:
        POOR_QUALITY_PERIODS.inc()
