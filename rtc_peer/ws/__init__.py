"""
Sinalização externa via WebSocket
"""

from .signaling_client import SignalingClient

__all__ = ["SignalingClient"]
