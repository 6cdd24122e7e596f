"""
Configuração da sessão RTC

Todas as configurações são carregadas de variáveis de ambiente.
Veja .env.example para documentação de cada variável.
"""

import os
from typing import List
from dotenv import load_dotenv

load_dotenv(override=False)  # Não sobrescreve variáveis já definidas no ambiente


def _parse_list(value: str, default: List[str]) -> List[str]:
    """Parse lista separada por vírgula"""
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_bool(value: str, default: bool = False) -> bool:
    """Parse boolean de string"""
    if not value:
        return default
    return value.lower() in ("true", "1", "yes", "on")


# =============================================================================
# CONFIGURAÇÕES DO PEER
# =============================================================================

PEER_CONFIG = {
    # Servidores STUN/TURN (separados por vírgula)
    "ice_servers": _parse_list(os.getenv("RTC_ICE_SERVERS", ""), ["stun:stun.l.google.com:19302"]),

    # Envia SDP pelo data channel quando ele estiver aberto
    "dc_signaling": _parse_bool(os.getenv("RTC_DC_SIGNALING", "true"), True),

    # Usa encodings simulcast nas tracks de vídeo
    "simulcast": _parse_bool(os.getenv("RTC_SIMULCAST", "true"), True),

    # Prefere AV1 em novas tracks quando toda a chamada suporta
    "enable_av1": _parse_bool(os.getenv("RTC_ENABLE_AV1", "false"), False),

    # Timeout para estabelecer a conexão (ms)
    "conn_timeout_ms": int(os.getenv("RTC_CONN_TIMEOUT_MS", "15000")),

    # Intervalo de ping no data channel para medir RTT (ms)
    "ping_interval_ms": int(os.getenv("RTC_PING_INTERVAL_MS", "1000")),
}


# =============================================================================
# CONFIGURAÇÕES DO LOCK DE SINALIZAÇÃO
# =============================================================================

LOCK_CONFIG = {
    # Timeout global para obter o lock (ms)
    "timeout_ms": int(os.getenv("RTC_LOCK_TIMEOUT_MS", "5000")),

    # Intervalo entre tentativas após negação ou canal não pronto (ms)
    "retry_interval_ms": int(os.getenv("RTC_LOCK_RETRY_INTERVAL_MS", "50")),
}


# =============================================================================
# CONFIGURAÇÕES DO MONITOR DE QUALIDADE
# =============================================================================

MONITOR_CONFIG = {
    # Intervalo de coleta de estatísticas (ms)
    "interval_ms": int(os.getenv("RTC_MONITOR_INTERVAL_MS", "1000")),

    # MOS abaixo deste valor indica chamada ruim
    "mos_threshold": float(os.getenv("RTC_MOS_THRESHOLD", "3.5")),
}


# =============================================================================
# CONFIGURAÇÕES DE SINALIZAÇÃO (WebSocket)
# =============================================================================

SIGNALING_CONFIG = {
    # URL do servidor de sinalização
    "url": os.getenv("SIGNALING_URL", "ws://localhost:8080/signaling"),

    # Intervalo de ping do WebSocket (segundos)
    "ping_interval": int(os.getenv("SIGNALING_PING_INTERVAL", "20")),

    # Timeout do ping WebSocket (segundos)
    "ping_timeout": int(os.getenv("SIGNALING_PING_TIMEOUT", "10")),

    # Timeout para fechar conexão WebSocket (segundos)
    "close_timeout": int(os.getenv("SIGNALING_CLOSE_TIMEOUT", "5")),
}


# =============================================================================
# CONFIGURAÇÕES DE LOG
# =============================================================================

LOG_CONFIG = {
    # Nível de log da aplicação (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    "level": os.getenv("LOG_LEVEL", "INFO"),

    # Nível de log do aiortc/aioice
    "engine_log_level": os.getenv("ENGINE_LOG_LEVEL", "WARNING"),
}


# =============================================================================
# CONFIGURAÇÕES DE MÉTRICAS
# =============================================================================

METRICS_CONFIG = {
    # Porta do servidor HTTP para métricas Prometheus
    "port": int(os.getenv("METRICS_PORT", "9092")),

    # Habilita servidor de métricas
    "enabled": _parse_bool(os.getenv("METRICS_ENABLED", "true"), True),
}
