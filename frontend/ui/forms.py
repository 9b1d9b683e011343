"""Streamlit form rendering for simulation inputs.

Centralizing the form setup keeps `app.run_app` focused on orchestration and
lets other pages reuse the same parameter construction logic.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import streamlit as st

from services.override_rows import RECOGNIZED_FIELDS, OverrideRow
from services.simulation_core import (
    MAX_DURATION_HOURS,
    InvalidParameter,
    SimulationParameters,
    validate_parameters,
)
from utils.io import read_override_table

_DEFAULTS = SimulationParameters()


@dataclass
class SimulationFormResult:
    params: Optional[SimulationParameters]
    run_submitted: bool
    override_source: Optional[str] = None
    validation_errors: List[str] = field(default_factory=list)
    is_valid: bool = True


def _render_override_upload(duration: int) -> Tuple[Tuple[OverrideRow, ...], Optional[str]]:
    """File uploader for per-hour overrides; returns rows and the source label."""

    uploaded = st.file_uploader(
        "Hourly data (CSV or Excel, optional)",
        type=["csv", "xlsx", "xls"],
        help="Recognised columns: " + ", ".join(RECOGNIZED_FIELDS) + ". Row N overrides hour N.",
    )
    if uploaded is None:
        return (), None

    try:
        rows = read_override_table([uploaded], limit=duration)
    except RuntimeError as exc:
        st.error(f"Unable to read hourly data: {exc}")
        return (), None

    if len(rows) < duration:
        st.warning(
            f"Hourly data covers {len(rows)} of {duration} hours; the base model fills the rest."
        )
    st.caption(f"Loaded {len(rows)} hourly override rows from {uploaded.name}.")
    return tuple(rows), uploaded.name


def render_simulation_form() -> SimulationFormResult:
    """Render the sidebar inputs and return validated parameters."""

    with st.sidebar:
        st.header("Environmental conditions")
        solar_irradiance = st.slider(
            "Solar irradiance (W/m²)", 0.0, 1000.0, float(_DEFAULTS.solar_irradiance), step=10.0
        )
        temperature = st.slider("Temperature (°C)", -10.0, 50.0, float(_DEFAULTS.temperature), step=1.0)
        cloud_cover = st.slider("Cloud cover (%)", 0.0, 100.0, float(_DEFAULTS.cloud_cover), step=5.0)
        wind_speed = st.slider("Wind speed (m/s)", 0.0, 30.0, float(_DEFAULTS.wind_speed), step=0.5)

        st.header("System configuration")
        solar_panel_capacity = st.number_input(
            "Solar panel capacity (kW)", min_value=0.0, value=float(_DEFAULTS.solar_panel_capacity), step=10.0
        )
        battery_capacity = st.number_input(
            "Battery capacity (kWh)", min_value=1.0, value=float(_DEFAULTS.battery_capacity), step=10.0
        )
        battery_soc = st.slider("Initial battery SOC (%)", 0.0, 100.0, float(_DEFAULTS.battery_soc), step=1.0)
        number_of_ev_chargers = int(
            st.number_input("EV chargers", min_value=0, value=_DEFAULTS.number_of_ev_chargers, step=1)
        )
        ev_charging_demand = st.number_input(
            "Base EV charging demand (kW)", min_value=0.0, value=float(_DEFAULTS.ev_charging_demand), step=5.0
        )
        grid_connection = st.toggle("Grid connection", value=_DEFAULTS.grid_connection)
        ml_optimization = st.toggle(
            "ML-optimized dispatch",
            value=_DEFAULTS.ml_optimization,
            help="Time-aware heuristic that keeps the battery for off-peak deficits.",
        )
        duration = int(
            st.number_input("Duration (hours)", min_value=1, max_value=MAX_DURATION_HOURS, value=_DEFAULTS.duration)
        )
        use_duration_period = st.checkbox(
            "Stretch daylight arc over the duration",
            value=_DEFAULTS.use_duration_period,
            help="By default the solar shape uses a fixed 24-hour period regardless of duration.",
        )

        st.header("Hourly data")
        override_rows, override_source = _render_override_upload(duration)

        run_submitted = st.button("Run simulation", type="primary", use_container_width=True)

    params = SimulationParameters(
        solar_irradiance=solar_irradiance,
        temperature=temperature,
        cloud_cover=cloud_cover,
        wind_speed=wind_speed,
        solar_panel_capacity=solar_panel_capacity,
        battery_capacity=battery_capacity,
        battery_soc=battery_soc,
        number_of_ev_chargers=number_of_ev_chargers,
        ev_charging_demand=ev_charging_demand,
        grid_connection=grid_connection,
        ml_optimization=ml_optimization,
        duration=duration,
        override_rows=override_rows,
        use_duration_period=use_duration_period,
    )

    try:
        validate_parameters(params)
    except InvalidParameter as exc:
        return SimulationFormResult(
            params=None,
            run_submitted=run_submitted,
            override_source=override_source,
            validation_errors=[str(exc)],
            is_valid=False,
        )

    return SimulationFormResult(params=params, run_submitted=run_submitted, override_source=override_source)
