from __future__ import annotations
from typing import Optional
import logging

from .config import DEFAULT_POOL_CONFIG, ConfigError, PoolConfig, validate_config
from .core import PoolMetrics, RiskAssessment, apply_trade, is_degenerate_trade
from .store import InMemoryPoolStore, PoolId, PoolStore
from .strategy import strategy_for

logger = logging.getLogger(__name__)


class RiskFeeEngine:
    """
    Per-trade fee engine for a swap venue.

    The host calls ``evaluate`` before executing a trade, executes it at the
    returned fee, then calls ``record`` with the realized size and the
    post-trade price metric. Risk never blocks a trade: ``evaluate`` and
    ``record`` accept any well-typed input and always return.

    Caller obligation: for a given pool the sequence evaluate -> settle ->
    record must not interleave with another trade on the same pool. The
    engine takes no locks. Different pools share no state and may be driven
    concurrently.
    """

    def __init__(self, store: Optional[PoolStore] = None) -> None:
        self.store: PoolStore = store if store is not None else InMemoryPoolStore()

    # -----------------------------
    # Introspection
    # -----------------------------
    def get_config(self, pool_id: PoolId) -> PoolConfig:
        cfg = self.store.get_config(pool_id)
        return cfg if cfg is not None else DEFAULT_POOL_CONFIG

    def is_configured(self, pool_id: PoolId) -> bool:
        return self.store.get_config(pool_id) is not None

    def get_metrics(self, pool_id: PoolId) -> PoolMetrics:
        metrics = self.store.get_metrics(pool_id)
        return metrics if metrics is not None else PoolMetrics()

    def initialize_pool(self, pool_id: PoolId) -> PoolMetrics:
        metrics = self.store.get_metrics(pool_id)
        if metrics is None:
            metrics = PoolMetrics()
            self.store.put_metrics(pool_id, metrics)
            logger.debug("[POOL] pool=%s initialized", pool_id)
        return metrics

    # -----------------------------
    # Administration
    # -----------------------------
    def set_config(self, pool_id: PoolId, cfg: PoolConfig) -> None:
        """
        Validate and atomically replace the pool's configuration.

        Raises ConfigError (InvalidFeeRange, InvalidThresholdOrder,
        FeeOutOfBounds) and leaves the active configuration untouched on any
        violation. Caller authorization is the host's job.
        """
        try:
            validate_config(cfg)
        except ConfigError as exc:
            logger.warning("[CONFIG] pool=%s rejected field=%s reason=%s", pool_id, exc.field, exc.message)
            raise
        self.store.put_config(pool_id, cfg)
        logger.info("[CONFIG] pool=%s model=%s impact_unit=%s", pool_id, cfg.fee_model, cfg.impact_unit)

    # -----------------------------
    # Trade lifecycle
    # -----------------------------
    def assess(self, pool_id: PoolId, current_metric: Optional[int], trade_size: int) -> RiskAssessment:
        cfg = self.get_config(pool_id)
        metrics = self.get_metrics(pool_id)
        result = strategy_for(cfg).assess(cfg, metrics, trade_size, current_metric)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "[FEE] pool=%s model=%s size=%s rs=%d impact=%d spikes=%d score=%s fee_bps=%d",
                pool_id,
                result.model,
                trade_size,
                result.relative_size,
                result.impact,
                result.spike_count,
                result.score,
                result.fee_bps,
            )
        return result

    def evaluate(self, pool_id: PoolId, current_metric: Optional[int], trade_size: int) -> int:
        return self.assess(pool_id, current_metric, trade_size).fee_bps

    def record(self, pool_id: PoolId, current_metric: Optional[int], trade_size: int) -> PoolMetrics:
        metrics = self.get_metrics(pool_id)
        if is_degenerate_trade(trade_size, current_metric):
            logger.debug("[RECORD] pool=%s skipped size=%s metric=%s", pool_id, trade_size, current_metric)
            return metrics
        updated = apply_trade(metrics, self.get_config(pool_id), trade_size, current_metric)
        self.store.put_metrics(pool_id, updated)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "[RECORD] pool=%s metric=%s avg=%d spikes=%d trades=%d",
                pool_id,
                updated.last_observed_metric,
                updated.average_trade_size,
                updated.consecutive_spike_count,
                updated.trade_count,
            )
        return updated
