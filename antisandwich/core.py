from __future__ import annotations
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Literal, Optional, Union

if TYPE_CHECKING:
    from .config import PoolConfig

ImpactUnit = Literal["tick", "price"]
FeeModel = Literal["tiered", "quadratic"]

# Scoring inputs are capped so one outsized trade cannot saturate the score.
MAX_RELATIVE_SIZE = 10
MAX_PRICE_IMPACT = 10
MAX_SCORED_SPIKES = 10
MAX_RISK_SCORE = 255

COLD_START_RELATIVE_SIZE = 1
EMA_HISTORY_WEIGHT = 9
EMA_DENOMINATOR = 10

BPS_DENOMINATOR = 10_000

# -----------------------------
# Fixed point
# -----------------------------
COEFF_SCALE = 10


@dataclass(frozen=True)
class Scaled:
    """
    Non-negative fixed-point coefficient stored as ``raw / scale``.

    0.5 at the default scale is ``Scaled(5)``. Products are floored:
    ``Scaled(5).mul_floor(15) == 7``.
    """
    raw: int
    scale: int = COEFF_SCALE

    @classmethod
    def parse(cls, value: Union["Scaled", int, str, Decimal], scale: int = COEFF_SCALE) -> "Scaled":
        """
        Build from a decimal literal ("0.5"), a Decimal, or an already scaled int.

        Strings and Decimals must be exactly representable at ``scale``.
        """
        if isinstance(value, Scaled):
            return value
        if isinstance(value, bool):
            raise TypeError("bool is not a coefficient")
        if isinstance(value, int):
            return cls(raw=value, scale=scale)
        if isinstance(value, float):
            raise TypeError("float coefficients are not accepted; pass a decimal string")
        try:
            dec = Decimal(value) * scale
        except (InvalidOperation, TypeError) as exc:
            raise ValueError(f"not a decimal coefficient: {value!r}") from exc
        if dec != dec.to_integral_value():
            raise ValueError(f"{value!r} is not representable at scale {scale}")
        return cls(raw=int(dec), scale=scale)

    def mul_floor(self, value: int) -> int:
        return (self.raw * value) // self.scale

    def to_decimal(self) -> Decimal:
        return Decimal(self.raw) / Decimal(self.scale)

    def __str__(self) -> str:
        return str(self.to_decimal())


# -----------------------------
# Per-pool state
# -----------------------------
@dataclass(frozen=True)
class PoolMetrics:
    last_observed_metric: Optional[int] = None
    last_trade_size: int = 0
    average_trade_size: int = 0
    consecutive_spike_count: int = 0
    trade_count: int = 0

    @property
    def is_cold(self) -> bool:
        return self.average_trade_size == 0

    def to_dict(self) -> dict:
        return {
            "last_observed_metric": self.last_observed_metric,
            "last_trade_size": int(self.last_trade_size),
            "average_trade_size": int(self.average_trade_size),
            "consecutive_spike_count": int(self.consecutive_spike_count),
            "trade_count": int(self.trade_count),
        }


@dataclass(frozen=True)
class RiskAssessment:
    model: FeeModel
    relative_size: int
    impact: int
    spike_count: int
    score: Optional[int]
    fee_bps: int

    def to_dict(self) -> dict:
        return {
            "model": self.model,
            "relative_size": int(self.relative_size),
            "impact": int(self.impact),
            "spike_count": int(self.spike_count),
            "score": self.score,
            "fee_bps": int(self.fee_bps),
        }


def trade_magnitude(trade_size: int) -> int:
    return abs(int(trade_size))


def fee_amount(amount: int, fee_bps: int) -> int:
    return (int(amount) * int(fee_bps)) // BPS_DENOMINATOR


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


# -----------------------------
# Metric calculator
# -----------------------------
def relative_size(trade_size: int, average_trade_size: int) -> int:
    if average_trade_size <= 0:
        return COLD_START_RELATIVE_SIZE
    return min(trade_magnitude(trade_size) // average_trade_size, MAX_RELATIVE_SIZE)


def impact(
    current_metric: Optional[int],
    last_metric: Optional[int],
    unit: ImpactUnit = "tick",
    price_impact_divisor: int = 10**15,
) -> int:
    """
    Movement of the pool's price metric since the last recorded trade.

    Ticks are used as-is. Prices are bucketed by ``price_impact_divisor``
    and capped at MAX_PRICE_IMPACT so both units land on a comparable scale.
    """
    if current_metric is None or last_metric is None:
        return 0
    delta = abs(int(current_metric) - int(last_metric))
    if unit == "price":
        return min(delta // max(1, price_impact_divisor), MAX_PRICE_IMPACT)
    return delta


def spike_count(metrics: PoolMetrics) -> int:
    return min(metrics.consecutive_spike_count, MAX_SCORED_SPIKES)


# -----------------------------
# State updater
# -----------------------------
def is_degenerate_trade(trade_size: int, current_metric: Optional[int]) -> bool:
    return current_metric is None or trade_magnitude(trade_size) == 0


def apply_trade(
    metrics: PoolMetrics,
    config: "PoolConfig",
    trade_size: int,
    current_metric: Optional[int],
) -> PoolMetrics:
    """
    Fold one settled trade into the pool history and return the new state.

    Zero-size trades and trades without a metric leave the state untouched.
    The spike test compares against the average *before* this trade.
    """
    if is_degenerate_trade(trade_size, current_metric):
        return metrics
    size = trade_magnitude(trade_size)

    if relative_size(size, metrics.average_trade_size) > config.spike_threshold:
        spikes = min(metrics.consecutive_spike_count + 1, config.spike_count_cap)
    else:
        spikes = 0

    if metrics.average_trade_size == 0:
        average = size
    else:
        average = (metrics.average_trade_size * EMA_HISTORY_WEIGHT + size) // EMA_DENOMINATOR

    return replace(
        metrics,
        last_observed_metric=int(current_metric),
        last_trade_size=size,
        average_trade_size=average,
        consecutive_spike_count=spikes,
        trade_count=metrics.trade_count + 1,
    )
