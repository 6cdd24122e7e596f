"""
Configuração de uma sessão RTCPeer
"""

from dataclasses import dataclass, field
from typing import List

from ..config import LOCK_CONFIG, PEER_CONFIG


@dataclass
class RTCPeerConfig:
    """Parâmetros de uma sessão RTCPeer"""
    ice_servers: List[str] = field(default_factory=list)
    dc_signaling: bool = True
    simulcast: bool = True
    enable_av1: bool = False
    conn_timeout_ms: int = 15000
    ping_interval_ms: int = 1000
    lock_timeout_ms: int = 5000
    lock_retry_interval_ms: int = 50

    @classmethod
    def from_env(cls) -> "RTCPeerConfig":
        """Cria a configuração a partir das variáveis de ambiente"""
        return cls(
            ice_servers=list(PEER_CONFIG["ice_servers"]),
            dc_signaling=PEER_CONFIG["dc_signaling"],
            simulcast=PEER_CONFIG["simulcast"],
            enable_av1=PEER_CONFIG["enable_av1"],
            conn_timeout_ms=PEER_CONFIG["conn_timeout_ms"],
            ping_interval_ms=PEER_CONFIG["ping_interval_ms"],
            lock_timeout_ms=LOCK_CONFIG["timeout_ms"],
            lock_retry_interval_ms=LOCK_CONFIG["retry_interval_ms"],
        )
