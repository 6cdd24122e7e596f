"""
Fixtures compartilhadas dos testes da sessão RTC
"""

import sys
from pathlib import Path

import pytest

# Permite importar tests/fakes.py
sys.path.insert(0, str(Path(__file__).parent))

from fakes import FakeEngine, fast_config  # noqa: E402


@pytest.fixture
def engine():
    """Engine em memória com VP8 e AV1"""
    return FakeEngine()


@pytest.fixture
def vp8_only_engine():
    """Engine sem suporte local a AV1"""
    from fakes import VP8
    return FakeEngine(codecs=[VP8])


@pytest.fixture
def config():
    return fast_config()
