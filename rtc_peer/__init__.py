"""
rtc_peer - sessão WebRTC com lock de sinalização, troca de codec e MOS
"""

__version__ = "0.1.0"
