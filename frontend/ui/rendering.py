"""Shared rendering helpers for Streamlit pages."""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

import pandas as pd
import streamlit as st
from streamlit.delta_generator import DeltaGenerator

HOURLY_TABLE_FORMATS = {
    "solar_kw": "{:,.2f}",
    "battery_kw": "{:,.2f}",
    "grid_kw": "{:,.2f}",
    "ev_kw": "{:,.2f}",
    "soc_pct": "{:,.1f}",
    "efficiency_pct": "{:,.1f}",
}


@dataclass(frozen=True)
class MetricSpec:
    """Specification for a Streamlit metric card."""

    label: str
    value: str
    help: Optional[str] = None
    caption: Optional[str] = None


def render_metrics(columns: Sequence[DeltaGenerator], specs: Sequence[MetricSpec]) -> None:
    """Render metric cards from specs to keep layout and captions consistent."""

    for col, spec in zip(columns, specs):
        col.metric(spec.label, spec.value, help=spec.help)
        if spec.caption:
            col.caption(spec.caption)


def render_hourly_table(df: pd.DataFrame, **dataframe_kwargs: Any) -> None:
    """Render the hourly trace with the shared kW / % number formats."""

    formats = {col: fmt for col, fmt in HOURLY_TABLE_FORMATS.items() if col in df.columns}
    st.dataframe(df.style.format(formats), use_container_width=True, hide_index=True, **dataframe_kwargs)


def render_recommendations(recommendations: Sequence[str]) -> None:
    if not recommendations:
        st.caption("No recommendations for this run.")
        return
    st.markdown("\n".join(f"- {text}" for text in recommendations))
