from __future__ import annotations
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping

from .core import FeeModel, ImpactUnit, Scaled

MAX_FEE_BPS = 10_000

FEE_MODELS = ("tiered", "quadratic")
IMPACT_UNITS = ("tick", "price")


# -----------------------------
# Errors
# -----------------------------
class ConfigError(ValueError):
    """A pool configuration was rejected; the previous one stays active."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class InvalidFeeRange(ConfigError):
    pass


class InvalidThresholdOrder(ConfigError):
    pass


class FeeOutOfBounds(ConfigError):
    pass


# -----------------------------
# Pool configuration
# -----------------------------
@dataclass(frozen=True)
class PoolConfig:
    # Strategy selection
    fee_model: FeeModel = "tiered"
    impact_unit: ImpactUnit = "tick"

    # Tiered model (bps / score units)
    fee_low: int = 5
    fee_med: int = 20
    fee_high: int = 60
    threshold_low: int = 50
    threshold_high: int = 150
    w1: int = 50  # relative size
    w2: int = 30  # impact
    w3: int = 20  # consecutive spikes

    # Quadratic model
    base_fee: int = 5
    max_fee: int = 60
    k1: Scaled = Scaled(5)  # 0.5
    k2: Scaled = Scaled(2)  # 0.2

    # Shared
    spike_threshold: int = 5
    spike_count_cap: int = 255
    price_impact_divisor: int = 10**15  # 1e18-scaled price -> 0.001 per unit

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PoolConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise TypeError(f"unknown PoolConfig fields: {sorted(unknown)}")
        values = dict(data)
        for name in ("k1", "k2"):
            if name in values:
                values[name] = Scaled.parse(values[name])
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["k1"] = str(self.k1)
        out["k2"] = str(self.k2)
        return out


DEFAULT_POOL_CONFIG = PoolConfig()


def _check_fee(name: str, value: int) -> None:
    if not 0 < value <= MAX_FEE_BPS:
        raise FeeOutOfBounds(name, f"{value} bps outside (0, {MAX_FEE_BPS}]")


def validate_config(cfg: PoolConfig) -> PoolConfig:
    """
    Check every invariant of a PoolConfig and return it unchanged.

    Both parameter blocks are checked whichever model is selected, so a
    stored config stays valid if the model is switched later. Raises the
    first violation as a ConfigError subclass.
    """
    if cfg.fee_model not in FEE_MODELS:
        raise InvalidFeeRange("fee_model", f"unknown model {cfg.fee_model!r}")
    if cfg.impact_unit not in IMPACT_UNITS:
        raise InvalidFeeRange("impact_unit", f"unknown unit {cfg.impact_unit!r}")

    for name in ("fee_low", "fee_med", "fee_high", "base_fee", "max_fee"):
        _check_fee(name, getattr(cfg, name))
    if not cfg.fee_low < cfg.fee_med < cfg.fee_high:
        raise InvalidFeeRange(
            "fee_low/fee_med/fee_high",
            f"tiers must strictly increase, got {cfg.fee_low}/{cfg.fee_med}/{cfg.fee_high}",
        )
    if cfg.max_fee <= cfg.base_fee:
        raise InvalidFeeRange("max_fee", f"max_fee {cfg.max_fee} must exceed base_fee {cfg.base_fee}")

    for name in ("w1", "w2", "w3"):
        if getattr(cfg, name) < 0:
            raise InvalidFeeRange(name, "weights must be non-negative")
    for name in ("k1", "k2"):
        coeff = getattr(cfg, name)
        if not isinstance(coeff, Scaled):
            raise InvalidFeeRange(name, f"expected Scaled, got {type(coeff).__name__}")
        if coeff.raw < 0 or coeff.scale <= 0:
            raise InvalidFeeRange(name, "coefficients must be non-negative")
    if cfg.price_impact_divisor < 1:
        raise InvalidFeeRange("price_impact_divisor", "must be >= 1")

    if cfg.threshold_low < 0:
        raise InvalidThresholdOrder("threshold_low", "must be non-negative")
    if cfg.threshold_low >= cfg.threshold_high:
        raise InvalidThresholdOrder(
            "threshold_low/threshold_high",
            f"{cfg.threshold_low} must be below {cfg.threshold_high}",
        )
    if cfg.spike_threshold < 1:
        raise InvalidThresholdOrder("spike_threshold", "must be >= 1")
    if cfg.spike_count_cap < 1:
        raise InvalidThresholdOrder("spike_count_cap", "must be >= 1")
    return cfg


# -----------------------------
# Simulation harness
# -----------------------------
@dataclass
class SimulationConfig:
    # Venue
    num_pools: int = 3
    initial_tick: int = 0
    tick_depth: int = 500  # trade size that moves the tick by one

    # Retail flow (per pool, per step)
    retail_trades_per_step: int = 8
    retail_size_mean: float = 1_000.0
    retail_size_sigma: float = 0.5  # lognormal sigma

    # Sandwich attacks (per pool, per step)
    sandwich_prob: float = 0.1
    attack_size_multiple: float = 20.0  # front-run size vs retail mean
    victim_size_multiple: float = 5.0

    def __post_init__(self) -> None:
        if self.num_pools < 1:
            self.num_pools = 1
        if self.tick_depth < 1:
            self.tick_depth = 1
        self.sandwich_prob = min(1.0, max(0.0, float(self.sandwich_prob)))
