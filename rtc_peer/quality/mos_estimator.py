"""
MOS Estimator - heurística derivada do E-model

Combina latência (one-way, ms), jitter (ms) e taxa de perda (0.0-1.0)
em um Mean Opinion Score.

MOS scale: 1.0 (ruim) a 4.5 (excelente)
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger("rtc-peer.mos")

# Abaixo deste valor a chamada é considerada ruim
MOS_THRESHOLD = 3.5


@dataclass
class QualityEstimate:
    """Resultado de um período de monitoramento"""
    latency_ms: float
    jitter_ms: float
    loss_rate: float
    mos: float

    @property
    def is_poor(self) -> bool:
        return self.mos < MOS_THRESHOLD

    def to_dict(self) -> dict:
        return {
            "latency_ms": round(self.latency_ms, 2),
            "jitter_ms": round(self.jitter_ms, 2),
            "loss_rate": round(self.loss_rate, 4),
            "mos": round(self.mos, 2),
        }


def calculate_mos(latency_ms: float, jitter_ms: float, loss_rate: float) -> float:
    """
    Calcula o MOS a partir das métricas de rede.

    Args:
        latency_ms: Latência one-way em milissegundos
        jitter_ms: Jitter em milissegundos
        loss_rate: Taxa de perda de pacotes (0.0-1.0)

    Returns:
        MOS score (1.0-4.5)
    """
    # Latência efetiva: jitter pesa em dobro + 10ms de processamento
    effective_latency = latency_ms + (2 * jitter_ms) + 10.0

    if effective_latency < 160:
        R = 93.2 - (effective_latency / 40.0)
    else:
        R = 93.2 - ((effective_latency - 120.0) / 10.0)

    # Penalidade de perda (em pontos percentuais)
    R -= 2.5 * (loss_rate * 100)

    if R < 0:
        mos = 1.0
    elif R > 100:
        mos = 4.5
    else:
        mos = 1 + (0.035 * R) + (0.000007 * R * (R - 60) * (100 - R))

    # A cúbica cai abaixo de 1.0 para R pequeno
    mos = max(1.0, min(4.5, mos))

    logger.debug(
        f"MOS: {mos:.2f} (latency={latency_ms:.1f}ms, jitter={jitter_ms:.1f}ms, "
        f"loss={loss_rate:.2%}, R={R:.1f})"
    )
    return mos
