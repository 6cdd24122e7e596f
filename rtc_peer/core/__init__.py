"""
Core da sessão RTC
"""

from .peer import DATA_CHANNEL_LABEL, RTCPeer, support_level
from .peer_config import RTCPeerConfig
from .signaling_lock import SignalingLock
from .tracks import (
    FALLBACK_ENCODINGS,
    SIMULCAST_ENCODINGS,
    TrackContext,
    TrackOptions,
    default_encodings,
)

__all__ = [
    "DATA_CHANNEL_LABEL",
    "RTCPeer",
    "RTCPeerConfig",
    "SignalingLock",
    "support_level",
    "FALLBACK_ENCODINGS",
    "SIMULCAST_ENCODINGS",
    "TrackContext",
    "TrackOptions",
    "default_encodings",
]
