from __future__ import annotations
from typing import Dict, List, Literal, Optional, Tuple
import logging
import math
import numpy as np

from .config import PoolConfig, SimulationConfig
from .core import fee_amount
from .engine import RiskFeeEngine
from .metrics import MetricsStore
from .store import InMemoryPoolStore

logger = logging.getLogger(__name__)

TradeKind = Literal["retail", "frontrun", "victim", "backrun"]


class SimulationEngine:
    """
    Synthetic host venue that drives a RiskFeeEngine.

    Each pool gets lognormal retail flow per step and, with
    ``sandwich_prob``, a front-run / victim / back-run triple. The host
    quotes every trade with its projected post-trade tick so the engine sees
    the trade's own price impact, then records the realized tick.
    """

    def __init__(self, cfg: SimulationConfig, pool_config: Optional[PoolConfig] = None, seed: int = 1) -> None:
        self.cfg = cfg
        self.rng = np.random.default_rng(seed)
        self.step_count: int = 0
        self.metrics = MetricsStore()
        self.store = InMemoryPoolStore()
        self.engine = RiskFeeEngine(store=self.store)
        self.ticks: Dict[str, int] = {}
        self._bootstrap(pool_config)

    def _bootstrap(self, pool_config: Optional[PoolConfig]) -> None:
        for idx in range(self.cfg.num_pools):
            pool_id = f"pool_{idx + 1:04d}"
            self.ticks[pool_id] = int(self.cfg.initial_tick)
            self.engine.initialize_pool(pool_id)
            if pool_config is not None:
                self.engine.set_config(pool_id, pool_config)

    @property
    def pool_ids(self) -> List[str]:
        return list(self.ticks.keys())

    def set_pool_config(self, pool_config: PoolConfig) -> None:
        for pool_id in self.pool_ids:
            self.engine.set_config(pool_id, pool_config)

    def _retail_size(self) -> int:
        mu = math.log(max(1.0, float(self.cfg.retail_size_mean)))
        return max(1, int(self.rng.lognormal(mean=mu, sigma=float(self.cfg.retail_size_sigma))))

    def _direction(self) -> int:
        return 1 if self.rng.random() < 0.5 else -1

    def _pool_flow(self) -> List[Tuple[TradeKind, int, int]]:
        cfg = self.cfg
        flow: List[Tuple[TradeKind, int, int]] = [
            ("retail", self._retail_size(), self._direction())
            for _ in range(max(0, int(cfg.retail_trades_per_step)))
        ]
        if self.rng.random() < cfg.sandwich_prob:
            direction = self._direction()
            attack = max(1, int(cfg.retail_size_mean * cfg.attack_size_multiple))
            victim = max(1, int(cfg.retail_size_mean * cfg.victim_size_multiple))
            at = int(self.rng.integers(0, len(flow) + 1))
            flow[at:at] = [
                ("frontrun", attack, direction),
                ("victim", victim, direction),
                ("backrun", attack, -direction),
            ]
        return flow

    def execute_trade(self, pool_id: str, kind: TradeKind, size: int, direction: int) -> dict:
        projected = self.ticks[pool_id] + direction * (size // self.cfg.tick_depth)
        assessment = self.engine.assess(pool_id, projected, size)
        # settlement: the toy curve realizes exactly the projected tick
        self.ticks[pool_id] = projected
        updated = self.engine.record(pool_id, projected, size)
        row = {
            "step": self.step_count,
            "pool_id": pool_id,
            "kind": kind,
            "size": size,
            "tick": projected,
            "fee_bps": assessment.fee_bps,
            "fee_paid": fee_amount(size, assessment.fee_bps),
            "score": assessment.score,
            "relative_size": assessment.relative_size,
            "impact": assessment.impact,
            "spike_count": assessment.spike_count,
            "average_trade_size": updated.average_trade_size,
        }
        self.metrics.add_trade(row)
        return row

    def step(self, n_steps: int = 1) -> None:
        for _ in range(n_steps):
            self.step_count += 1
            sandwiches = 0
            for pool_id in self.pool_ids:
                flow = self._pool_flow()
                for kind, size, direction in flow:
                    self.execute_trade(pool_id, kind, size, direction)
                sandwiches += sum(1 for kind, _, _ in flow if kind == "frontrun")
            logger.debug("[STEP] step=%d pools=%d sandwiches=%d", self.step_count, len(self.ticks), sandwiches)
