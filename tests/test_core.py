"""
Unit tests for the metric calculator, fixed-point coefficients and the
post-trade state updater.
"""

from decimal import Decimal

import pytest

from antisandwich.config import PoolConfig
from antisandwich.core import (
    MAX_RELATIVE_SIZE,
    PoolMetrics,
    Scaled,
    apply_trade,
    fee_amount,
    impact,
    relative_size,
    spike_count,
)


class TestRelativeSize:
    """Trade size relative to the pool's smoothed average."""

    @pytest.mark.unit
    @pytest.mark.parametrize("size", [0, 1, 100, 10**24])
    def test_cold_start_is_neutral(self, size):
        """With no average yet every trade scores as an average trade."""
        assert relative_size(size, 0) == 1

    @pytest.mark.unit
    def test_floor_division(self):
        assert relative_size(250, 100) == 2
        assert relative_size(99, 100) == 0

    @pytest.mark.unit
    def test_capped(self):
        assert relative_size(10_000, 10) == MAX_RELATIVE_SIZE

    @pytest.mark.unit
    def test_negative_size_uses_magnitude(self):
        assert relative_size(-300, 100) == 3


class TestImpact:
    """Movement of the price metric since the last recorded trade."""

    @pytest.mark.unit
    def test_no_prior_metric(self):
        assert impact(500, None) == 0

    @pytest.mark.unit
    def test_missing_current_metric(self):
        assert impact(None, 10) == 0

    @pytest.mark.unit
    def test_tick_delta_is_absolute_and_uncapped(self):
        assert impact(-7, 8) == 15
        assert impact(1_000, 0) == 1_000

    @pytest.mark.unit
    def test_tick_zero_is_a_real_observation(self):
        """Tick 0 is a valid prior tick, not the absent sentinel."""
        assert impact(3, 0) == 3

    @pytest.mark.unit
    def test_price_delta_is_normalized(self):
        last = 10**18
        assert impact(last + 3 * 10**15, last, unit="price", price_impact_divisor=10**15) == 3
        assert impact(last - 3 * 10**15 + 1, last, unit="price", price_impact_divisor=10**15) == 2

    @pytest.mark.unit
    def test_price_delta_is_capped(self):
        last = 10**18
        assert impact(2 * last, last, unit="price", price_impact_divisor=10**15) == 10


class TestSpikeCount:

    @pytest.mark.unit
    def test_capped_for_scoring_only(self):
        metrics = PoolMetrics(consecutive_spike_count=42)
        assert spike_count(metrics) == 10
        assert metrics.consecutive_spike_count == 42


class TestScaled:
    """Fixed-point coefficients at scale 10 with floor rounding."""

    @pytest.mark.unit
    def test_parse_decimal_string(self):
        assert Scaled.parse("0.5") == Scaled(5)
        assert Scaled.parse(Decimal("1.2")) == Scaled(12)

    @pytest.mark.unit
    def test_parse_scaled_int(self):
        assert Scaled.parse(2) == Scaled(2)

    @pytest.mark.unit
    def test_parse_rejects_unrepresentable(self):
        with pytest.raises(ValueError):
            Scaled.parse("0.55")

    @pytest.mark.unit
    def test_parse_rejects_float(self):
        with pytest.raises(TypeError):
            Scaled.parse(0.5)

    @pytest.mark.unit
    def test_mul_floor(self):
        assert Scaled(5).mul_floor(15) == 7
        assert Scaled(2).mul_floor(225) == 45

    @pytest.mark.unit
    def test_str(self):
        assert str(Scaled(5)) == "0.5"


class TestApplyTrade:
    """Post-settlement state update."""

    @pytest.mark.unit
    def test_cold_start_initializes_average(self):
        updated = apply_trade(PoolMetrics(), PoolConfig(), 250, 12)
        assert updated.average_trade_size == 250
        assert updated.last_trade_size == 250
        assert updated.last_observed_metric == 12
        assert updated.consecutive_spike_count == 0
        assert updated.trade_count == 1

    @pytest.mark.unit
    def test_ema_is_ninety_ten(self):
        metrics = PoolMetrics(last_observed_metric=0, average_trade_size=100, trade_count=3)
        updated = apply_trade(metrics, PoolConfig(), 200, 1)
        assert updated.average_trade_size == 110
        assert updated.trade_count == 4

    @pytest.mark.unit
    def test_ema_floors(self):
        metrics = PoolMetrics(last_observed_metric=0, average_trade_size=101)
        updated = apply_trade(metrics, PoolConfig(), 100, 0)
        assert updated.average_trade_size == 100  # (909 + 100) // 10

    @pytest.mark.unit
    def test_metric_overwritten_unconditionally(self):
        metrics = PoolMetrics(last_observed_metric=500, average_trade_size=100)
        assert apply_trade(metrics, PoolConfig(), 100, -20).last_observed_metric == -20

    @pytest.mark.unit
    @pytest.mark.parametrize("size,metric", [(0, 10), (100, None), (0, None)])
    def test_degenerate_trade_is_noop(self, size, metric):
        metrics = PoolMetrics(last_observed_metric=5, average_trade_size=100, consecutive_spike_count=2)
        assert apply_trade(metrics, PoolConfig(), size, metric) is metrics

    @pytest.mark.unit
    def test_spike_uses_pre_trade_average(self):
        metrics = PoolMetrics(last_observed_metric=0, average_trade_size=100)
        updated = apply_trade(metrics, PoolConfig(), 600, 0)
        assert updated.consecutive_spike_count == 1
        assert updated.average_trade_size == 150

    @pytest.mark.unit
    def test_relative_size_equal_to_threshold_is_not_a_spike(self):
        metrics = PoolMetrics(last_observed_metric=0, average_trade_size=100, consecutive_spike_count=4)
        updated = apply_trade(metrics, PoolConfig(), 599, 0)
        assert updated.consecutive_spike_count == 0

    @pytest.mark.unit
    def test_cold_start_trade_is_never_a_spike(self):
        metrics = PoolMetrics(consecutive_spike_count=3)
        assert apply_trade(metrics, PoolConfig(), 10**9, 0).consecutive_spike_count == 0

    @pytest.mark.unit
    def test_spike_counter_saturates(self):
        cfg = PoolConfig(spike_count_cap=3)
        metrics = PoolMetrics(last_observed_metric=0, average_trade_size=100, consecutive_spike_count=3)
        updated = apply_trade(metrics, cfg, 10_000, 0)
        assert updated.consecutive_spike_count == 3

    @pytest.mark.unit
    def test_input_is_not_mutated(self):
        metrics = PoolMetrics(last_observed_metric=0, average_trade_size=100)
        apply_trade(metrics, PoolConfig(), 300, 7)
        assert metrics == PoolMetrics(last_observed_metric=0, average_trade_size=100)


@pytest.mark.unit
def test_fee_amount_floors():
    assert fee_amount(1_000, 20) == 2
    assert fee_amount(999, 5) == 0
