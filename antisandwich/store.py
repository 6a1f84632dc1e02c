from __future__ import annotations
from typing import Dict, Hashable, List, Optional, Protocol

from .config import PoolConfig
from .core import PoolMetrics

PoolId = Hashable


class PoolStore(Protocol):
    """
    Backing key-value store for per-pool state.

    ``get_*`` return None for pools never written. Hosts may back this with
    an external store; persistence is theirs to provide.
    """

    def get_config(self, pool_id: PoolId) -> Optional[PoolConfig]: ...

    def put_config(self, pool_id: PoolId, cfg: PoolConfig) -> None: ...

    def get_metrics(self, pool_id: PoolId) -> Optional[PoolMetrics]: ...

    def put_metrics(self, pool_id: PoolId, metrics: PoolMetrics) -> None: ...


class InMemoryPoolStore:
    def __init__(self) -> None:
        self.configs: Dict[PoolId, PoolConfig] = {}
        self.metrics: Dict[PoolId, PoolMetrics] = {}

    def get_config(self, pool_id: PoolId) -> Optional[PoolConfig]:
        return self.configs.get(pool_id)

    def put_config(self, pool_id: PoolId, cfg: PoolConfig) -> None:
        self.configs[pool_id] = cfg

    def get_metrics(self, pool_id: PoolId) -> Optional[PoolMetrics]:
        return self.metrics.get(pool_id)

    def put_metrics(self, pool_id: PoolId, metrics: PoolMetrics) -> None:
        self.metrics[pool_id] = metrics

    def pool_ids(self) -> List[PoolId]:
        return list(dict.fromkeys([*self.metrics.keys(), *self.configs.keys()]))
