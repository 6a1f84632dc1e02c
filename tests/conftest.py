"""
Pytest configuration and fixtures for the antisandwich fee engine.

Fixtures build engines over fresh in-memory stores so no state leaks
between tests.
"""

import pytest

from antisandwich.config import PoolConfig
from antisandwich.core import PoolMetrics, Scaled
from antisandwich.engine import RiskFeeEngine
from antisandwich.store import InMemoryPoolStore


# =============================================================================
# CONFIG FIXTURES
# =============================================================================

@pytest.fixture
def tiered_config() -> PoolConfig:
    """Default discrete (tiered) configuration."""
    return PoolConfig()


@pytest.fixture
def quadratic_config() -> PoolConfig:
    """Default continuous (quadratic) configuration."""
    return PoolConfig(fee_model="quadratic", base_fee=5, max_fee=60, k1=Scaled(5), k2=Scaled(2))


@pytest.fixture
def price_config() -> PoolConfig:
    """Tiered configuration measuring impact on 1e18-scaled prices."""
    return PoolConfig(impact_unit="price", price_impact_divisor=10**15)


# =============================================================================
# STATE FIXTURES
# =============================================================================

@pytest.fixture
def warm_metrics():
    """Factory for a pool that has already seen trades."""
    def _make(average: int = 100, last: int = 0, spikes: int = 0) -> PoolMetrics:
        return PoolMetrics(
            last_observed_metric=last,
            last_trade_size=average,
            average_trade_size=average,
            consecutive_spike_count=spikes,
            trade_count=1,
        )
    return _make


@pytest.fixture
def store() -> InMemoryPoolStore:
    return InMemoryPoolStore()


@pytest.fixture
def engine(store: InMemoryPoolStore) -> RiskFeeEngine:
    return RiskFeeEngine(store=store)
