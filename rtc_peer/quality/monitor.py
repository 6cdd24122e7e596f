"""
RTCMonitor - monitor periódico de qualidade da chamada

A cada intervalo:
    1. Coleta o snapshot de estatísticas do RTCPeer
    2. Classifica reports de áudio por SSRC (inbound, outbound,
       remote-inbound, remote-outbound) e o par ICE nomeado
    3. Calcula deltas contra o período anterior (jitter, perda, RTT)
    4. Estima o MOS, emite "quality" e envia perda/jitter ao remoto
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pyee.asyncio import AsyncIOEventEmitter

from ..config import MONITOR_CONFIG
from ..metrics import track_call_quality, track_mos_score
from ..protocol.enums import MonitorEvent
from .mos_estimator import QualityEstimate, calculate_mos
from .rtc_stats import (
    CandidatePairStats,
    LocalInboundStats,
    LocalOutboundStats,
    RemoteInboundStats,
    RemoteOutboundStats,
    StatsReport,
    new_candidate_pair_stats,
    new_local_inbound_stats,
    new_local_outbound_stats,
    new_remote_inbound_stats,
    new_remote_outbound_stats,
)

logger = logging.getLogger("rtc-peer.monitor")


@dataclass
class CallQualityStats:
    """Médias de um período (None = sem dados suficientes)"""
    avg_time: Optional[float] = None
    avg_loss_rate: Optional[float] = None
    avg_jitter: Optional[float] = None      # ms
    avg_latency: Optional[float] = None     # ms, one-way


@dataclass
class MonitorStatsSample:
    """Amostras do período anterior, por SSRC"""
    last_local_in: Dict[Any, LocalInboundStats]
    last_local_out: Dict[Any, LocalOutboundStats]
    last_remote_in: Dict[Any, RemoteInboundStats]
    last_remote_out: Dict[Any, RemoteOutboundStats]

    @classmethod
    def empty(cls) -> "MonitorStatsSample":
        return cls({}, {}, {}, {})


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isnan(value)


class RTCMonitor(AsyncIOEventEmitter):
    """Monitor de qualidade de um RTCPeer"""

    def __init__(
        self,
        peer,
        interval_ms: Optional[int] = None,
        mos_threshold: Optional[float] = None,
    ):
        super().__init__()
        self._peer = peer
        self.interval_ms = interval_ms if interval_ms is not None else MONITOR_CONFIG["interval_ms"]
        self.mos_threshold = mos_threshold if mos_threshold is not None else MONITOR_CONFIG["mos_threshold"]
        self._task: Optional[asyncio.Task] = None
        self._stats = MonitorStatsSample.empty()
        self.last_estimate: Optional[QualityEstimate] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None

    def start(self) -> None:
        if self._task is not None:
            return
        logger.debug("Iniciando monitor de qualidade")
        self._task = asyncio.create_task(self._run())

    def stop(self) -> None:
        if self._task is None:
            return
        logger.debug("Parando monitor de qualidade")
        self._task.cancel()
        self._task = None
        self.clear_cache()
        self.remove_all_listeners(MonitorEvent.QUALITY)

    def clear_cache(self) -> None:
        self._stats = MonitorStatsSample.empty()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_ms / 1000)
            await self._gather_stats()

    async def _gather_stats(self) -> None:
        try:
            reports = await self._peer.get_stats()
            self.process_stats(reports)
        except Exception as e:
            logger.error(f"Erro ao coletar estatísticas: {e}")

    # =========================================================================
    # CÁLCULOS POR DIREÇÃO
    # =========================================================================

    def _local_in_quality(
        self,
        local_in: Dict[Any, LocalInboundStats],
        remote_out: Dict[Any, RemoteOutboundStats],
    ) -> CallQualityStats:
        stats = CallQualityStats()

        total_time = 0.0
        total_received = 0
        total_lost = 0
        total_jitter = 0.0
        count = 0

        for ssrc, stat in local_in.items():
            prev = self._stats.last_local_in.get(ssrc)
            if prev is None or stat.timestamp <= prev.timestamp:
                continue
            if stat.packets_received == prev.packets_received:
                continue

            ts_diff = stat.timestamp - prev.timestamp
            received_diff = stat.packets_received - prev.packets_received

            # Perda no trecho servidor -> receptor: o remoto enviou mais
            # pacotes do que recebemos, e essa diferença cresceu no período
            lost_diff = 0
            cur_out = remote_out.get(ssrc)
            prev_out = self._stats.last_remote_out.get(ssrc)
            if cur_out is not None and prev_out is not None:
                potentially_lost = cur_out.packets_sent - stat.packets_received
                prev_potentially_lost = prev_out.packets_sent - prev.packets_received
                if prev_potentially_lost >= 0 and potentially_lost > prev_potentially_lost:
                    lost_diff = potentially_lost - prev_potentially_lost

            total_time += ts_diff
            total_received += received_diff
            total_lost += lost_diff
            total_jitter += stat.jitter or 0.0
            count += 1

        if count > 0:
            stats.avg_time = total_time / count
            stats.avg_jitter = (total_jitter / count) * 1000

        if total_received > 0:
            stats.avg_loss_rate = total_lost / total_received

        return stats

    def _remote_in_quality(
        self,
        remote_in: Dict[Any, RemoteInboundStats],
        local_out: Dict[Any, LocalOutboundStats],
    ) -> CallQualityStats:
        stats = CallQualityStats()

        total_time = 0.0
        total_rtt = 0.0
        rtt_count = 0
        total_jitter = 0.0
        total_loss = 0.0
        count = 0

        for ssrc, stat in remote_in.items():
            prev = self._stats.last_remote_in.get(ssrc)
            if prev is None or stat.timestamp <= prev.timestamp:
                continue

            cur_out = local_out.get(ssrc)
            prev_out = self._stats.last_local_out.get(ssrc)
            if cur_out is None:
                continue
            if prev_out is not None and cur_out.packets_sent == prev_out.packets_sent:
                continue

            total_time += stat.timestamp - prev.timestamp
            total_jitter += stat.jitter or 0.0
            total_loss += stat.fraction_lost or 0.0
            if _is_number(stat.round_trip_time):
                total_rtt += stat.round_trip_time
                rtt_count += 1
            count += 1

        if count > 0:
            stats.avg_time = total_time / count
            stats.avg_jitter = (total_jitter / count) * 1000
            stats.avg_loss_rate = total_loss / count
            if rtt_count > 0:
                stats.avg_latency = (total_rtt / rtt_count) * (1000 / 2)

        return stats

    # =========================================================================
    # PROCESSAMENTO DO SNAPSHOT
    # =========================================================================

    def process_stats(self, reports: StatsReport) -> Optional[QualityEstimate]:
        """
        Processa um snapshot de estatísticas.

        Returns:
            QualityEstimate do período, ou None se não há dados suficientes
        """
        local_in: Dict[Any, LocalInboundStats] = {}
        local_out: Dict[Any, LocalOutboundStats] = {}
        remote_in: Dict[Any, RemoteInboundStats] = {}
        remote_out: Dict[Any, RemoteOutboundStats] = {}
        candidate: Optional[CandidatePairStats] = None

        for report in reports.values():
            report_type = report.get("type")

            if report_type == "candidate-pair" and report.get("nominated"):
                priority = report.get("priority")
                if candidate is None or (priority and candidate.priority and priority > candidate.priority):
                    candidate = new_candidate_pair_stats(report, reports)
                continue

            if report.get("kind") != "audio":
                continue

            ssrc = report.get("ssrc")
            if report_type == "inbound-rtp":
                local_in[ssrc] = new_local_inbound_stats(report)
            elif report_type == "outbound-rtp":
                local_out[ssrc] = new_local_outbound_stats(report)
            elif report_type == "remote-inbound-rtp":
                remote_in[ssrc] = new_remote_inbound_stats(report)
            elif report_type == "remote-outbound-rtp":
                remote_out[ssrc] = new_remote_outbound_stats(report)

        # 1. Latência de transporte do par ICE em uso
        transport_latency: Optional[float] = None
        if candidate is not None and _is_number(candidate.current_round_trip_time):
            transport_latency = (candidate.current_round_trip_time * 1000) / 2

        # 2. Qualidade do que recebemos
        local_in_stats = self._local_in_quality(local_in, remote_out)

        # 3. Qualidade do que enviamos, segundo o remoto
        remote_in_stats = self._remote_in_quality(remote_in, local_out)

        # 4. Cache para os deltas do próximo período (sempre)
        self._stats = MonitorStatsSample(
            last_local_in=dict(local_in),
            last_local_out=dict(local_out),
            last_remote_in=dict(remote_in),
            last_remote_out=dict(remote_out),
        )

        if transport_latency is None and remote_in_stats.avg_latency is None:
            # RTT do ping em segundos
            transport_latency = (self._peer.get_rtt() * 1000) / 2

        if local_in_stats.avg_jitter is None and remote_in_stats.avg_jitter is None:
            logger.debug("Jitter não pôde ser calculado neste período")
            return None

        if local_in_stats.avg_loss_rate is None and remote_in_stats.avg_loss_rate is None:
            logger.debug("Taxa de perda não pôde ser calculada neste período")
            return None

        jitter = max(local_in_stats.avg_jitter or 0.0, remote_in_stats.avg_jitter or 0.0)
        loss_rate = max(local_in_stats.avg_loss_rate or 0.0, remote_in_stats.avg_loss_rate or 0.0)
        latency = transport_latency if transport_latency is not None else remote_in_stats.avg_latency

        # 5. MOS
        mos = calculate_mos(latency, jitter, loss_rate)
        estimate = QualityEstimate(latency_ms=latency, jitter_ms=jitter, loss_rate=loss_rate, mos=mos)
        self.last_estimate = estimate

        track_call_quality(latency, jitter, loss_rate)
        track_mos_score(mos, self.mos_threshold)
        if mos < self.mos_threshold:
            logger.warning(f"Qualidade baixa: {estimate.to_dict()}")
        else:
            logger.debug(f"MOS --> {mos:.2f}")

        self.emit(MonitorEvent.QUALITY, mos)

        try:
            self._peer.handle_metrics(loss_rate, jitter / 1000)
        except Exception as e:
            logger.error(f"Erro ao enviar métricas ao remoto: {e}")

        return estimate
