import logging
import time
import streamlit as st
import pandas as pd

from antisandwich.config import ConfigError, PoolConfig, SimulationConfig
from antisandwich.simulation import SimulationEngine

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

st.set_page_config(page_title="Anti-Sandwich Fee Simulator", layout="wide")


def get_engine() -> SimulationEngine:
    if "engine" not in st.session_state:
        cfg = SimulationConfig()
        st.session_state.cfg = cfg
        st.session_state.pool_cfg = PoolConfig()
        st.session_state.seed = 1
        st.session_state.engine = SimulationEngine(cfg=cfg, pool_config=st.session_state.pool_cfg,
                                                   seed=st.session_state.seed)
    return st.session_state.engine


def reset_engine(reset_config: bool = False) -> None:
    if reset_config:
        st.session_state.cfg = SimulationConfig()
        st.session_state.pool_cfg = PoolConfig()
    cfg = st.session_state.get("cfg", SimulationConfig())
    pool_cfg = st.session_state.get("pool_cfg", PoolConfig())
    seed = int(st.session_state.get("seed", 1))
    st.session_state.engine = SimulationEngine(cfg=cfg, pool_config=pool_cfg, seed=seed)


engine = get_engine()

st.title("Anti-Sandwich Fee Simulator")
st.caption("Synthetic retail flow with injected sandwich attacks, priced by the risk fee engine.")


def _fmt_duration(seconds: float) -> str:
    if seconds < 0:
        seconds = 0.0
    mins = int(seconds // 60)
    secs = seconds - (mins * 60)
    return f"{mins}m {secs:0.1f}s"


def _fmt(value: float) -> str:
    return f"{float(value):,.2f}"


def _render_kpi_grid(kpis, columns: int = 4) -> None:
    for idx in range(0, len(kpis), columns):
        row = kpis[idx: idx + columns]
        cols = st.columns(columns)
        for col, (label, value) in zip(cols, row):
            col.metric(label, value)


def _format_table_numbers(df: pd.DataFrame) -> pd.DataFrame:
    formatted = df.copy()
    numeric_cols = formatted.select_dtypes(include=["number"]).columns
    if len(numeric_cols) == 0:
        return formatted
    formatted[numeric_cols] = formatted[numeric_cols].map(
        lambda value: f"{value:,.2f}" if pd.notnull(value) else ""
    )
    return formatted


with st.sidebar:
    st.header("Sim Controls")

    st.subheader("Run")
    if st.button("Restart simulation"):
        reset_engine(reset_config=True)
        engine = st.session_state.engine
    st.number_input("Random seed", min_value=1, max_value=100000, key="seed")

    run_steps = st.slider("Steps to run", min_value=1, max_value=500, value=25)
    run_many = st.button("Run N steps")
    if run_many:
        progress_bar = st.progress(0.0, text="Run progress: 0%")
        start_ts = time.time()
        for idx in range(int(run_steps)):
            engine.step(1)
            progress = (idx + 1) / run_steps
            progress_bar.progress(progress, text=f"Run progress: {progress:.0%}")
        elapsed = time.time() - start_ts
        progress_bar.progress(1.0, text=f"Run progress: 100% ({_fmt_duration(elapsed)})")
    st.caption(f"Current step: {engine.step_count}")

    st.subheader("Flow")
    engine.cfg.sandwich_prob = st.slider(
        "Sandwich probability (per pool, per step)",
        0.0, 1.0, float(engine.cfg.sandwich_prob), step=0.05,
    )
    engine.cfg.attack_size_multiple = st.number_input(
        "Attack size (x retail mean)", min_value=1.0, value=float(engine.cfg.attack_size_multiple), step=1.0,
    )

    st.subheader("Fee model")
    current = st.session_state.pool_cfg
    fee_model = st.selectbox("Model", ["tiered", "quadratic"], index=["tiered", "quadratic"].index(current.fee_model))
    if fee_model == "tiered":
        c1, c2, c3 = st.columns(3)
        fee_low = c1.number_input("Low (bps)", value=current.fee_low, step=1)
        fee_med = c2.number_input("Med (bps)", value=current.fee_med, step=1)
        fee_high = c3.number_input("High (bps)", value=current.fee_high, step=1)
        t1, t2 = st.columns(2)
        threshold_low = t1.number_input("Threshold low", value=current.threshold_low, step=1)
        threshold_high = t2.number_input("Threshold high", value=current.threshold_high, step=1)
        params = dict(fee_low=int(fee_low), fee_med=int(fee_med), fee_high=int(fee_high),
                      threshold_low=int(threshold_low), threshold_high=int(threshold_high))
    else:
        c1, c2 = st.columns(2)
        base_fee = c1.number_input("Base fee (bps)", value=current.base_fee, step=1)
        max_fee = c2.number_input("Max fee (bps)", value=current.max_fee, step=1)
        k1 = st.text_input("k1", value=str(current.k1))
        k2 = st.text_input("k2", value=str(current.k2))
        params = dict(base_fee=int(base_fee), max_fee=int(max_fee), k1=k1, k2=k2)

    if st.button("Apply to all pools"):
        try:
            data = {**current.to_dict(), **params, "fee_model": fee_model}
            new_cfg = PoolConfig.from_dict(data)
            engine.set_pool_config(new_cfg)
            st.session_state.pool_cfg = new_cfg
            st.success("Configuration applied.")
        except ConfigError as exc:
            st.error(f"Rejected ({type(exc).__name__}): {exc}")
        except ValueError as exc:
            st.error(f"Invalid coefficient: {exc}")

trades = engine.metrics.trades_df()
if trades.empty:
    st.info("No trades yet. Run some steps.")
else:
    summary = engine.metrics.fee_summary_df()
    by_kind = summary.set_index("kind")
    kpis = [
        ("Trades", _fmt(len(trades))),
        ("Mean fee (bps)", _fmt(trades["fee_bps"].mean())),
        ("Retail mean fee (bps)", _fmt(by_kind["mean_fee_bps"].get("retail", 0.0))),
        ("Front-run mean fee (bps)", _fmt(by_kind["mean_fee_bps"].get("frontrun", 0.0))),
        ("Fees paid (total)", _fmt(trades["fee_paid"].sum())),
        ("Fees paid by attackers", _fmt(
            by_kind["fees_paid"].get("frontrun", 0.0) + by_kind["fees_paid"].get("backrun", 0.0)
        )),
        ("Pools", _fmt(len(engine.pool_ids))),
        ("Step", _fmt(engine.step_count)),
    ]
    _render_kpi_grid(kpis, columns=4)

    st.subheader("Mean fee per step (bps)")
    st.line_chart(engine.metrics.step_df(), x="step", y=["mean_fee_bps"])

    st.subheader("Fees by trade kind")
    st.dataframe(_format_table_numbers(summary), use_container_width=True)

    st.subheader("Pool state")
    pool_rows = [{"pool_id": pid, "tick": engine.ticks[pid], **engine.engine.get_metrics(pid).to_dict()}
                 for pid in engine.pool_ids]
    st.dataframe(pd.DataFrame(pool_rows), use_container_width=True)

    st.subheader("Recent trades")
    st.dataframe(trades.tail(200), use_container_width=True)

