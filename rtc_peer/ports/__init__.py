"""
Ports - Interfaces da sessão RTC (Arquitetura Hexagonal)
"""

from .media_engine import (
    CodecCapability,
    DataChannel,
    EncodingParameters,
    IceCandidate,
    MediaEngine,
    MediaStream,
    MediaTrack,
    PeerConnection,
    RtpParameters,
    RtpSender,
    SessionDescription,
    Transceiver,
)

__all__ = [
    "CodecCapability",
    "DataChannel",
    "EncodingParameters",
    "IceCandidate",
    "MediaEngine",
    "MediaStream",
    "MediaTrack",
    "PeerConnection",
    "RtpParameters",
    "RtpSender",
    "SessionDescription",
    "Transceiver",
]
