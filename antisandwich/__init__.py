"""
antisandwich package

Per-trade risk scoring and dynamic fees for a swap venue:
- metric derivation (relative size, price impact, consecutive spikes)
- pluggable fee strategies (tiered score, quadratic impact)
- per-pool state updates after settlement
- a synthetic simulation harness for exercising the engine
"""

from .config import (
    ConfigError,
    FeeOutOfBounds,
    InvalidFeeRange,
    InvalidThresholdOrder,
    PoolConfig,
    SimulationConfig,
    validate_config,
)
from .core import PoolMetrics, RiskAssessment, Scaled
from .engine import RiskFeeEngine
from .store import InMemoryPoolStore, PoolStore
from .strategy import QuadraticImpactStrategy, RiskFeeStrategy, TieredRiskStrategy, strategy_for

__version__ = "0.1.0"
