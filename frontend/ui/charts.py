"""Chart and data prep helpers for Streamlit visualizations."""

import altair as alt
import numpy as np
import pandas as pd

from services.simulation_core import SimulationResult
from utils.report import hourly_frame

FLOW_LABELS = {
    "solar_kw": "Solar",
    "battery_discharge_kw": "Battery→EV",
    "grid_kw": "Grid",
}
FLOW_COLORS = ["#f2b134", "#7fd18b", "#e07a7a"]


def prepare_energy_flow_data(result: SimulationResult) -> pd.DataFrame:
    """Return a long-form frame of supply sources per hour plus the EV demand line."""
    df = hourly_frame(result)
    if df.empty:
        return pd.DataFrame(columns=["hour", "Source", "kW", "SourceOrder"])

    df["battery_discharge_kw"] = np.maximum(-df["battery_kw"], 0.0)
    long_df = df.melt(
        id_vars=["hour"],
        value_vars=list(FLOW_LABELS),
        var_name="Source",
        value_name="kW",
    )
    long_df["SourceOrder"] = long_df["Source"].map({key: idx for idx, key in enumerate(FLOW_LABELS)})
    long_df["Source"] = long_df["Source"].replace(FLOW_LABELS)
    return long_df


def prepare_battery_charge_data(result: SimulationResult) -> pd.DataFrame:
    """Charging power per hour (positive values only), drawn below the axis."""
    df = hourly_frame(result)
    out = pd.DataFrame({"hour": df["hour"], "charge_kw": np.maximum(df["battery_kw"].astype(float), 0.0)})
    out["charge_kw_neg"] = -out["charge_kw"]
    return out


def build_energy_flow_chart(result: SimulationResult) -> alt.LayerChart:
    """Stacked supply bars with the EV demand line and battery charging area."""
    flow_df = prepare_energy_flow_data(result)
    demand_df = hourly_frame(result)[["hour", "ev_kw"]]
    charge_df = prepare_battery_charge_data(result)

    x_hour = alt.X("hour:O", title="Hour")
    bars = (
        alt.Chart(flow_df)
        .mark_bar(opacity=0.85)
        .encode(
            x=x_hour,
            y=alt.Y("kW:Q", title="kW", stack="zero"),
            color=alt.Color(
                "Source:N",
                scale=alt.Scale(domain=list(FLOW_LABELS.values()), range=FLOW_COLORS),
            ),
            order=alt.Order("SourceOrder:Q", sort="ascending"),
            tooltip=["hour:O", "Source:N", alt.Tooltip("kW:Q", format=".2f")],
        )
    )
    charge_area = (
        alt.Chart(charge_df)
        .mark_area(opacity=0.5, color="#caa6ff", interpolate="step-after")
        .encode(
            x=x_hour,
            y="charge_kw_neg:Q",
            tooltip=[alt.Tooltip("charge_kw:Q", title="Battery charging (kW)", format=".2f")],
        )
    )
    demand_line = (
        alt.Chart(demand_df)
        .mark_line(color="#1f4e79", strokeWidth=2, point=True)
        .encode(
            x=x_hour,
            y="ev_kw:Q",
            tooltip=[alt.Tooltip("ev_kw:Q", title="EV demand (kW)", format=".2f")],
        )
    )
    return alt.layer(bars, charge_area, demand_line).properties(height=340)


def build_soc_chart(result: SimulationResult) -> alt.Chart:
    """SOC trace with the 10-95 % protection band shaded."""
    df = hourly_frame(result)
    band = pd.DataFrame({"low": [10.0], "high": [95.0]})
    band_chart = alt.Chart(band).mark_rect(color="#e8f4ea", opacity=0.6).encode(y="low:Q", y2="high:Q")
    line = (
        alt.Chart(df)
        .mark_line(color="#2a9d55", strokeWidth=2, point=True)
        .encode(
            x=alt.X("hour:O", title="Hour"),
            y=alt.Y("soc_pct:Q", title="SOC (%)", scale=alt.Scale(domain=[0, 100])),
            tooltip=["hour:O", alt.Tooltip("soc_pct:Q", format=".1f")],
        )
    )
    return alt.layer(band_chart, line).properties(height=220)


DISTRIBUTION_SOURCES = [
    ("Solar", "total_solar_generation"),
    ("Battery", "total_battery_discharge"),
    ("Grid", "total_grid_import"),
]


def prepare_energy_distribution_data(result: SimulationResult) -> pd.DataFrame:
    """Energy delivered by each source over the run, with its share of the supplied total."""
    df = pd.DataFrame(
        {
            "Source": [label for label, _ in DISTRIBUTION_SOURCES],
            "kWh": [float(getattr(result, attr)) for _, attr in DISTRIBUTION_SOURCES],
        }
    )
    total = df["kWh"].sum()
    df["Share"] = df["kWh"] / total if total > 0 else 0.0
    return df


def build_energy_distribution_chart(result: SimulationResult) -> alt.Chart:
    """Donut of solar / battery / grid energy over the run."""
    df = prepare_energy_distribution_data(result)
    return (
        alt.Chart(df)
        .mark_arc(innerRadius=50)
        .encode(
            theta=alt.Theta("kWh:Q", stack=True),
            color=alt.Color(
                "Source:N",
                scale=alt.Scale(domain=[label for label, _ in DISTRIBUTION_SOURCES], range=FLOW_COLORS),
            ),
            tooltip=[
                "Source:N",
                alt.Tooltip("kWh:Q", format=".2f"),
                alt.Tooltip("Share:Q", format=".1%"),
            ],
        )
        .properties(height=240)
    )
