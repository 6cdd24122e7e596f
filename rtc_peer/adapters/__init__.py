"""
Adapters - Implementações das portas da sessão RTC
"""

from .aiortc_engine import AiortcEngine, convert_stats

__all__ = ["AiortcEngine", "convert_stats"]
