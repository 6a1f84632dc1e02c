from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Any, List
import pandas as pd

TRADE_COLUMNS = [
    "step", "pool_id", "kind", "size", "tick", "fee_bps", "fee_paid",
    "score", "relative_size", "impact", "spike_count", "average_trade_size",
]


@dataclass
class MetricsStore:
    trade_rows: List[Dict[str, Any]] = field(default_factory=list)

    def add_trade(self, row: Dict[str, Any]) -> None:
        self.trade_rows.append(row)

    def trades_df(self) -> pd.DataFrame:
        return pd.DataFrame(self.trade_rows, columns=TRADE_COLUMNS)

    def fee_summary_df(self) -> pd.DataFrame:
        """Trades, volume, mean fee and fees paid per trade kind."""
        df = self.trades_df()
        if df.empty:
            return pd.DataFrame(columns=["kind", "trades", "volume", "mean_fee_bps", "fees_paid"])
        out = df.groupby("kind").agg(
            trades=("size", "count"),
            volume=("size", "sum"),
            mean_fee_bps=("fee_bps", "mean"),
            fees_paid=("fee_paid", "sum"),
        )
        return out.reset_index()

    def step_df(self) -> pd.DataFrame:
        """Mean fee and fees paid per simulation step."""
        df = self.trades_df()
        if df.empty:
            return pd.DataFrame(columns=["step", "mean_fee_bps", "fees_paid", "trades"])
        out = df.groupby("step").agg(
            mean_fee_bps=("fee_bps", "mean"),
            fees_paid=("fee_paid", "sum"),
            trades=("size", "count"),
        )
        return out.reset_index()
