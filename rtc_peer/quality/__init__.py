"""
Monitoramento de qualidade da chamada (estatísticas e MOS)
"""

from .mos_estimator import MOS_THRESHOLD, QualityEstimate, calculate_mos
from .monitor import CallQualityStats, RTCMonitor
from .rtc_stats import (
    CandidatePairStats,
    IceCandidateStats,
    LocalInboundStats,
    LocalOutboundStats,
    RemoteInboundStats,
    RemoteOutboundStats,
    RTCStats,
    SSRCStats,
    new_candidate_pair_stats,
    new_local_inbound_stats,
    new_local_outbound_stats,
    new_remote_inbound_stats,
    new_remote_outbound_stats,
    parse_ice_stats,
    parse_rtc_stats,
    parse_ssrc_stats,
)

__all__ = [
    "MOS_THRESHOLD",
    "QualityEstimate",
    "calculate_mos",
    "CallQualityStats",
    "RTCMonitor",
    "CandidatePairStats",
    "IceCandidateStats",
    "LocalInboundStats",
    "LocalOutboundStats",
    "RemoteInboundStats",
    "RemoteOutboundStats",
    "RTCStats",
    "SSRCStats",
    "new_candidate_pair_stats",
    "new_local_inbound_stats",
    "new_local_outbound_stats",
    "new_remote_inbound_stats",
    "new_remote_outbound_stats",
    "parse_ice_stats",
    "parse_rtc_stats",
    "parse_ssrc_stats",
]
