"""
Testes unitários do estimador de MOS
"""

import pytest

from rtc_peer.quality import MOS_THRESHOLD, QualityEstimate, calculate_mos


class TestCalculateMos:
    """Testes da fórmula"""

    def test_ideal_network(self):
        assert calculate_mos(0, 0, 0) == pytest.approx(4.4044, abs=0.01)

    def test_loss_penalty(self):
        assert calculate_mos(0, 0, 0.05) == pytest.approx(4.0409, abs=0.01)

    def test_high_latency_branch(self):
        # Latência efetiva 210ms (acima do joelho de 160ms)
        assert calculate_mos(200, 0, 0) == pytest.approx(4.1724, abs=0.01)

    def test_continuous_at_knee(self):
        below = calculate_mos(149.999, 0, 0)
        above = calculate_mos(150.0, 0, 0)
        assert below == pytest.approx(above, abs=0.001)

    def test_jitter_weighs_double(self):
        assert calculate_mos(0, 25, 0) == pytest.approx(calculate_mos(50, 0, 0))

    def test_total_loss_floor(self):
        assert calculate_mos(0, 0, 1.0) == 1.0

    def test_extreme_latency_floor(self):
        assert calculate_mos(2000, 0, 0) == 1.0

    def test_low_rating_floor(self):
        # R ~ 4.2: a cúbica daria ~0.99
        assert calculate_mos(400, 50, 0.2) == 1.0

    @pytest.mark.parametrize("latency,jitter,loss", [
        (0, 0, 0),
        (20, 5, 0.01),
        (100, 10, 0.02),
        (250, 30, 0.1),
        (400, 50, 0.2),
    ])
    def test_within_scale(self, latency, jitter, loss):
        mos = calculate_mos(latency, jitter, loss)
        assert 1.0 <= mos <= 4.5

    @pytest.mark.parametrize("step", [
        dict(latency=(10, 300)),
        dict(jitter=(1, 40)),
        dict(loss=(0.0, 0.15)),
    ])
    def test_worse_network_lower_mos(self, step):
        base = {"latency": 50, "jitter": 5, "loss": 0.01}
        (name, (better, worse)), = step.items()

        good = dict(base, **{name: better})
        bad = dict(base, **{name: worse})

        assert calculate_mos(good["latency"], good["jitter"], good["loss"]) > \
            calculate_mos(bad["latency"], bad["jitter"], bad["loss"])

    def test_monotonic_in_latency(self):
        values = [calculate_mos(latency, 10, 0.02) for latency in range(0, 401, 25)]
        assert values == sorted(values, reverse=True)


class TestQualityEstimate:
    """Testes do resultado do período"""

    def test_poor_below_threshold(self):
        assert QualityEstimate(300, 40, 0.2, MOS_THRESHOLD - 0.1).is_poor is True
        assert QualityEstimate(20, 2, 0.0, 4.3).is_poor is False

    def test_to_dict_rounds(self):
        estimate = QualityEstimate(latency_ms=50.123, jitter_ms=20.456, loss_rate=0.123456, mos=3.98765)
        assert estimate.to_dict() == {
            "latency_ms": 50.12,
            "jitter_ms": 20.46,
            "loss_rate": 0.1235,
            "mos": 3.99,
        }
