from __future__ import annotations
from typing import Dict, Optional

from .config import PoolConfig
from .core import (
    MAX_RISK_SCORE,
    FeeModel,
    PoolMetrics,
    RiskAssessment,
    clamp,
    impact,
    relative_size,
    spike_count,
)


class RiskFeeStrategy:
    """
    Maps a pool's pre-trade history and an incoming trade to a fee in bps.

    Implementations are stateless; every input arrives as an argument.
    """
    name: FeeModel

    def assess(
        self,
        cfg: PoolConfig,
        metrics: PoolMetrics,
        trade_size: int,
        current_metric: Optional[int],
    ) -> RiskAssessment:
        raise NotImplementedError

    def compute_fee(
        self,
        cfg: PoolConfig,
        metrics: PoolMetrics,
        trade_size: int,
        current_metric: Optional[int],
    ) -> int:
        return self.assess(cfg, metrics, trade_size, current_metric).fee_bps

    def _inputs(self, cfg: PoolConfig, metrics: PoolMetrics, trade_size: int,
                current_metric: Optional[int]) -> tuple[int, int, int]:
        rs = relative_size(trade_size, metrics.average_trade_size)
        delta = impact(current_metric, metrics.last_observed_metric, cfg.impact_unit, cfg.price_impact_divisor)
        return rs, delta, spike_count(metrics)


class TieredRiskStrategy(RiskFeeStrategy):
    """Weighted score in [0, 255] mapped onto three half-open fee tiers."""
    name: FeeModel = "tiered"

    def score(self, cfg: PoolConfig, rs: int, delta: int, spikes: int) -> int:
        raw = cfg.w1 * rs + cfg.w2 * delta + cfg.w3 * spikes
        return clamp(raw, 0, MAX_RISK_SCORE)

    def fee_for_score(self, cfg: PoolConfig, score: int) -> int:
        if score < cfg.threshold_low:
            return cfg.fee_low
        if score < cfg.threshold_high:
            return cfg.fee_med
        return cfg.fee_high

    def assess(self, cfg, metrics, trade_size, current_metric) -> RiskAssessment:
        rs, delta, spikes = self._inputs(cfg, metrics, trade_size, current_metric)
        score = self.score(cfg, rs, delta, spikes)
        return RiskAssessment(
            model=self.name,
            relative_size=rs,
            impact=delta,
            spike_count=spikes,
            score=score,
            fee_bps=self.fee_for_score(cfg, score),
        )


class QuadraticImpactStrategy(RiskFeeStrategy):
    """
    fee = clamp(base + k1*d + k2*d^2, base, max) on the price impact d.

    Each coefficient product is floored at the coefficient scale before the
    terms are summed, so d=15 with the defaults gives 5 + 7 + 45 = 57.
    """
    name: FeeModel = "quadratic"

    def fee_for_impact(self, cfg: PoolConfig, delta: int) -> int:
        raw = cfg.base_fee + cfg.k1.mul_floor(delta) + cfg.k2.mul_floor(delta * delta)
        return clamp(raw, cfg.base_fee, cfg.max_fee)

    def assess(self, cfg, metrics, trade_size, current_metric) -> RiskAssessment:
        rs, delta, spikes = self._inputs(cfg, metrics, trade_size, current_metric)
        return RiskAssessment(
            model=self.name,
            relative_size=rs,
            impact=delta,
            spike_count=spikes,
            score=None,
            fee_bps=self.fee_for_impact(cfg, delta),
        )


FEE_STRATEGIES: Dict[str, RiskFeeStrategy] = {
    TieredRiskStrategy.name: TieredRiskStrategy(),
    QuadraticImpactStrategy.name: QuadraticImpactStrategy(),
}


def strategy_for(cfg: PoolConfig) -> RiskFeeStrategy:
    return FEE_STRATEGIES[cfg.fee_model]
