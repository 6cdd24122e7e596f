"""
Normalização das estatísticas WebRTC do engine em registros tipados

O snapshot bruto é um dict id -> report com chaves camelCase (formato
getStats() do WebRTC), timestamps em milissegundos.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

StatsReport = Mapping[str, Mapping[str, Any]]


@dataclass
class LocalInboundStats:
    timestamp: float
    kind: Optional[str] = None
    mid: Optional[str] = None
    track_identifier: Optional[str] = None
    packets_received: int = 0
    packets_lost: int = 0
    packets_discarded: Optional[int] = None
    bytes_received: int = 0
    nack_count: Optional[int] = None
    pli_count: Optional[int] = None
    jitter: Optional[float] = None              # segundos
    jitter_buffer_delay: Optional[float] = None


@dataclass
class LocalOutboundStats:
    timestamp: float
    kind: Optional[str] = None
    mid: Optional[str] = None
    packets_sent: int = 0
    bytes_sent: int = 0
    retransmitted_packets_sent: Optional[int] = None
    retransmitted_bytes_sent: Optional[int] = None
    nack_count: Optional[int] = None
    pli_count: Optional[int] = None
    target_bitrate: Optional[float] = None


@dataclass
class RemoteInboundStats:
    timestamp: float
    kind: Optional[str] = None
    packets_lost: int = 0
    fraction_lost: Optional[float] = None
    jitter: Optional[float] = None              # segundos
    round_trip_time: Optional[float] = None     # segundos


@dataclass
class RemoteOutboundStats:
    timestamp: float
    kind: Optional[str] = None
    packets_sent: int = 0
    bytes_sent: int = 0


@dataclass
class IceCandidateStats:
    id: str
    address: Optional[str] = None
    port: Optional[int] = None
    protocol: Optional[str] = None
    candidate_type: Optional[str] = None
    priority: Optional[int] = None


@dataclass
class CandidatePairStats:
    id: str
    timestamp: float
    state: Optional[str] = None
    nominated: bool = False
    priority: Optional[int] = None
    packets_sent: Optional[int] = None
    packets_received: Optional[int] = None
    current_round_trip_time: Optional[float] = None   # segundos
    total_round_trip_time: Optional[float] = None
    local: Optional[IceCandidateStats] = None
    remote: Optional[IceCandidateStats] = None


@dataclass
class SSRCStats:
    """Estatísticas de um SSRC agrupadas por direção"""
    local_in: Optional[LocalInboundStats] = None
    local_out: Optional[LocalOutboundStats] = None
    remote_in: Optional[RemoteInboundStats] = None
    remote_out: Optional[RemoteOutboundStats] = None


@dataclass
class RTCStats:
    ssrc_stats: Dict[Any, SSRCStats] = field(default_factory=dict)
    ice_stats: Dict[str, List[CandidatePairStats]] = field(default_factory=dict)


def _reports(reports: StatsReport) -> Iterable[Mapping[str, Any]]:
    return reports.values()


def new_local_inbound_stats(report: Mapping[str, Any]) -> LocalInboundStats:
    return LocalInboundStats(
        timestamp=report.get("timestamp", 0),
        kind=report.get("kind"),
        mid=report.get("mid"),
        track_identifier=report.get("trackIdentifier"),
        packets_received=report.get("packetsReceived", 0),
        packets_lost=report.get("packetsLost", 0),
        packets_discarded=report.get("packetsDiscarded"),
        bytes_received=report.get("bytesReceived", 0),
        nack_count=report.get("nackCount"),
        pli_count=report.get("pliCount"),
        jitter=report.get("jitter"),
        jitter_buffer_delay=report.get("jitterBufferDelay"),
    )


def new_local_outbound_stats(report: Mapping[str, Any]) -> LocalOutboundStats:
    return LocalOutboundStats(
        timestamp=report.get("timestamp", 0),
        kind=report.get("kind"),
        mid=report.get("mid"),
        packets_sent=report.get("packetsSent", 0),
        bytes_sent=report.get("bytesSent", 0),
        retransmitted_packets_sent=report.get("retransmittedPacketsSent"),
        retransmitted_bytes_sent=report.get("retransmittedBytesSent"),
        nack_count=report.get("nackCount"),
        pli_count=report.get("pliCount"),
        target_bitrate=report.get("targetBitrate"),
    )


def new_remote_inbound_stats(report: Mapping[str, Any]) -> RemoteInboundStats:
    return RemoteInboundStats(
        timestamp=report.get("timestamp", 0),
        kind=report.get("kind"),
        packets_lost=report.get("packetsLost", 0),
        fraction_lost=report.get("fractionLost"),
        jitter=report.get("jitter"),
        round_trip_time=report.get("roundTripTime"),
    )


def new_remote_outbound_stats(report: Mapping[str, Any]) -> RemoteOutboundStats:
    return RemoteOutboundStats(
        timestamp=report.get("timestamp", 0),
        kind=report.get("kind"),
        packets_sent=report.get("packetsSent", 0),
        bytes_sent=report.get("bytesSent", 0),
    )


def new_ice_candidate_stats(report: Mapping[str, Any]) -> IceCandidateStats:
    return IceCandidateStats(
        id=report.get("id", ""),
        address=report.get("address", report.get("ip")),
        port=report.get("port"),
        protocol=report.get("protocol"),
        candidate_type=report.get("candidateType"),
        priority=report.get("priority"),
    )


def new_candidate_pair_stats(report: Mapping[str, Any], reports: StatsReport) -> CandidatePairStats:
    """Cria o registro do par resolvendo os candidatos local e remoto"""
    local = None
    remote = None
    for r in _reports(reports):
        if r.get("id") == report.get("localCandidateId"):
            local = new_ice_candidate_stats(r)
        elif r.get("id") == report.get("remoteCandidateId"):
            remote = new_ice_candidate_stats(r)

    return CandidatePairStats(
        id=report.get("id", ""),
        timestamp=report.get("timestamp", 0),
        state=report.get("state"),
        nominated=bool(report.get("nominated", False)),
        priority=report.get("priority"),
        packets_sent=report.get("packetsSent"),
        packets_received=report.get("packetsReceived"),
        current_round_trip_time=report.get("currentRoundTripTime"),
        total_round_trip_time=report.get("totalRoundTripTime"),
        local=local,
        remote=remote,
    )


def parse_ssrc_stats(reports: StatsReport) -> Dict[Any, SSRCStats]:
    """Agrupa reports RTP por SSRC (todas as mídias)"""
    stats: Dict[Any, SSRCStats] = {}
    for report in _reports(reports):
        ssrc = report.get("ssrc")
        if not ssrc:
            continue

        entry = stats.setdefault(ssrc, SSRCStats())
        report_type = report.get("type")
        if report_type == "inbound-rtp":
            entry.local_in = new_local_inbound_stats(report)
        elif report_type == "outbound-rtp":
            entry.local_out = new_local_outbound_stats(report)
        elif report_type == "remote-inbound-rtp":
            entry.remote_in = new_remote_inbound_stats(report)
        elif report_type == "remote-outbound-rtp":
            entry.remote_out = new_remote_outbound_stats(report)
    return stats


def _pair_sort_key(pair: CandidatePairStats):
    # Nomeados primeiro, depois maior prioridade
    return (0 if pair.nominated else 1, -(pair.priority or 0))


def parse_ice_stats(reports: StatsReport) -> Dict[str, List[CandidatePairStats]]:
    """Agrupa pares de candidatos por estado, ordenados por relevância"""
    stats: Dict[str, List[CandidatePairStats]] = {}
    for report in _reports(reports):
        if report.get("type") != "candidate-pair":
            continue
        state = report.get("state") or "unknown"
        stats.setdefault(state, []).append(new_candidate_pair_stats(report, reports))

    for pairs in stats.values():
        pairs.sort(key=_pair_sort_key)
    return stats


def parse_rtc_stats(reports: StatsReport) -> RTCStats:
    return RTCStats(
        ssrc_stats=parse_ssrc_stats(reports),
        ice_stats=parse_ice_stats(reports),
    )
