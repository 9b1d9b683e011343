"""Hourly energy-balance engine for a solar EV charging station.

The module stays free of Streamlit/UI dependencies so the same engine serves
the Streamlit pages, the REST API and notebooks. A run is a single sequential
pass: each hour's dispatch depends on the battery state left by the previous
hour, so hours are never evaluated out of order.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from services.dispatch_strategies import DispatchDecision, DispatchStrategy, select_strategy
from services.override_rows import OverrideRow, override_for_hour
from utils.recommendations import generate_recommendations

logger = logging.getLogger(__name__)

BASE_PANEL_EFFICIENCY = 0.20
TEMPERATURE_COEFFICIENT_PER_C = 0.004
REFERENCE_TEMPERATURE_C = 25.0
CLOUD_ATTENUATION = 0.7
DAY_PERIOD_HOURS = 24

PEAK_DEMAND_MULTIPLIER = 1.2
OFF_PEAK_DEMAND_MULTIPLIER = 0.8

# Protection limits of the pack, independent of the user-entered initial SOC.
SOC_MIN_PCT = 10.0
SOC_MAX_PCT = 95.0

# Upper bound on run length accepted by the UI and the API.
MAX_DURATION_HOURS = 168

GRID_COST_PER_KWH = 0.12  # USD
SOLAR_COST_PER_KWH = 0.03  # USD, after installation


class InvalidParameter(ValueError):
    """Raised before a run starts when a configuration value is unusable."""


@dataclass(frozen=True)
class SimulationParameters:
    """Environmental and system inputs for one run (units in comments)."""

    solar_irradiance: float = 800.0  # W/m²
    temperature: float = 25.0  # °C
    cloud_cover: float = 20.0  # %
    wind_speed: float = 5.0  # m/s, recorded only
    solar_panel_capacity: float = 100.0  # kW
    battery_capacity: float = 200.0  # kWh
    battery_soc: float = 80.0  # %, initial
    number_of_ev_chargers: int = 4
    ev_charging_demand: float = 50.0  # kW base
    grid_connection: bool = True
    ml_optimization: bool = True
    duration: int = 24  # hours
    override_rows: Tuple[OverrideRow, ...] = field(default_factory=tuple)
    # Shape the daylight arc over ``duration`` instead of a fixed 24 h period.
    use_duration_period: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "override_rows", tuple(self.override_rows))


@dataclass(frozen=True)
class HourlyRecord:
    hour: int
    solar_kw: float
    battery_kw: float  # + charging, - discharging
    grid_kw: float
    ev_kw: float  # requested demand
    soc_pct: float  # after this hour
    efficiency_pct: float


@dataclass(frozen=True)
class SimulationResult:
    duration: int
    hourly: Tuple[HourlyRecord, ...]
    total_solar_generation: float
    total_battery_discharge: float
    total_grid_import: float
    total_energy_consumed: float
    average_efficiency: float
    peak_solar_generation: float
    estimated_cost_savings: float
    final_battery_soc: float
    recommendations: Tuple[str, ...]
    strategy: str


@dataclass
class RunTotals:
    """Running sums folded hour by hour (kWh, since each step is one hour)."""

    solar_kwh: float = 0.0
    battery_discharge_kwh: float = 0.0
    grid_import_kwh: float = 0.0
    energy_consumed_kwh: float = 0.0
    efficiency_sum: float = 0.0
    peak_solar_kw: float = 0.0
    hours: int = 0

    def add_hour(self, solar_kw: float, demand_kw: float, decision: DispatchDecision) -> None:
        self.solar_kwh += solar_kw
        if decision.battery_kw < 0:
            self.battery_discharge_kwh += abs(decision.battery_kw)
        self.grid_import_kwh += decision.grid_kw
        # Requested demand, not delivered energy; unmet load is not subtracted.
        self.energy_consumed_kwh += demand_kw
        self.efficiency_sum += decision.efficiency_pct
        self.peak_solar_kw = solar_kw if self.hours == 0 else max(self.peak_solar_kw, solar_kw)
        self.hours += 1


@dataclass(frozen=True)
class RunSummary:
    average_efficiency: float
    peak_solar_generation: float
    estimated_cost_savings: float


def summarize_totals(totals: RunTotals, duration: int) -> RunSummary:
    average_efficiency = totals.efficiency_sum / duration
    savings = (totals.solar_kwh + totals.battery_discharge_kwh) * (GRID_COST_PER_KWH - SOLAR_COST_PER_KWH)
    return RunSummary(
        average_efficiency=average_efficiency,
        peak_solar_generation=totals.peak_solar_kw,
        estimated_cost_savings=savings,
    )


def _require_finite(name: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidParameter(f"{name} must be a number, got {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise InvalidParameter(f"{name} must be finite, got {value!r}")
    return number


def validate_parameters(params: SimulationParameters) -> None:
    """Reject configurations that would produce NaN/inf or meaningless runs."""

    for name in ("solar_irradiance", "solar_panel_capacity", "ev_charging_demand", "wind_speed"):
        if _require_finite(name, getattr(params, name)) < 0:
            raise InvalidParameter(f"{name} must be non-negative")
    _require_finite("temperature", params.temperature)

    for name in ("cloud_cover", "battery_soc"):
        value = _require_finite(name, getattr(params, name))
        if not 0.0 <= value <= 100.0:
            raise InvalidParameter(f"{name} must be between 0 and 100 %")

    if _require_finite("battery_capacity", params.battery_capacity) <= 0:
        raise InvalidParameter("battery_capacity must be greater than zero")

    chargers = params.number_of_ev_chargers
    if isinstance(chargers, bool) or not isinstance(chargers, int) or chargers < 0:
        raise InvalidParameter("number_of_ev_chargers must be a non-negative integer")

    duration = params.duration
    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
        raise InvalidParameter("duration must be a positive whole number of hours")

    for name in ("grid_connection", "ml_optimization", "use_duration_period"):
        if not isinstance(getattr(params, name), bool):
            raise InvalidParameter(f"{name} must be a boolean")

    for idx, row in enumerate(params.override_rows):
        if not isinstance(row, OverrideRow):
            raise InvalidParameter(f"override_rows[{idx}] must be an OverrideRow")


def diurnal_multiplier(hour: int, period_hours: int = DAY_PERIOD_HOURS) -> float:
    """Half-sine daylight shape; zero at hour 0 and at ``period_hours``."""

    return max(0.0, math.sin(math.pi * hour / period_hours))


def hourly_irradiance(hour: int, params: SimulationParameters, override: Optional[OverrideRow] = None) -> float:
    """Irradiance (W/m²) on the panel plane for ``hour`` before derating."""

    if override is not None and override.irradiance is not None:
        return override.irradiance
    period = params.duration if params.use_duration_period else DAY_PERIOD_HOURS
    return params.solar_irradiance * diurnal_multiplier(hour, period)


def panel_efficiency(temperature_c: float, cloud_cover_pct: float) -> float:
    """Base module efficiency derated for heat and cloud (deliberately unclamped)."""

    temp_coefficient = 1.0 - (temperature_c - REFERENCE_TEMPERATURE_C) * TEMPERATURE_COEFFICIENT_PER_C
    cloud_factor = 1.0 - (cloud_cover_pct / 100.0) * CLOUD_ATTENUATION
    return BASE_PANEL_EFFICIENCY * temp_coefficient * cloud_factor


def hourly_solar_generation(
    hour: int, params: SimulationParameters, override: Optional[OverrideRow] = None
) -> float:
    """PV output (kW) for ``hour``."""

    temperature = params.temperature
    cloud_cover = params.cloud_cover
    if override is not None:
        if override.temperature is not None:
            temperature = override.temperature
        if override.cloud_cover is not None:
            cloud_cover = override.cloud_cover
    irradiance = hourly_irradiance(hour, params, override)
    return (irradiance / 1000.0) * params.solar_panel_capacity * panel_efficiency(temperature, cloud_cover)


def hourly_demand(hour: int, params: SimulationParameters, override: Optional[OverrideRow] = None) -> float:
    """EV charging demand (kW) for ``hour``; daytime 08-18 runs 20 % above base."""

    if override is not None and override.ev_demand is not None:
        return override.ev_demand
    multiplier = PEAK_DEMAND_MULTIPLIER if 8 <= hour <= 18 else OFF_PEAK_DEMAND_MULTIPLIER
    return params.ev_charging_demand * multiplier


def advance_soc(current_soc: float, battery_kw: float, battery_capacity_kwh: float) -> float:
    """Integrate one hour of battery flow into SOC, clamped to the pack limits."""

    delta_pct = (battery_kw / battery_capacity_kwh) * 100.0
    return max(SOC_MIN_PCT, min(SOC_MAX_PCT, current_soc + delta_pct))


def _simulate_hours(
    params: SimulationParameters, strategy: DispatchStrategy
) -> Tuple[List[HourlyRecord], RunTotals, float]:
    soc = float(params.battery_soc)
    totals = RunTotals()
    records: List[HourlyRecord] = []

    for hour in range(params.duration):
        override = override_for_hour(params.override_rows, hour)
        solar_kw = hourly_solar_generation(hour, params, override)
        demand_kw = hourly_demand(hour, params, override)

        decision = strategy.dispatch(
            solar_kw,
            demand_kw,
            soc,
            params.battery_capacity,
            params.grid_connection,
            hour,
        )
        soc = advance_soc(soc, decision.battery_kw, params.battery_capacity)
        totals.add_hour(solar_kw, demand_kw, decision)

        records.append(
            HourlyRecord(
                hour=hour,
                solar_kw=round(solar_kw, 2),
                battery_kw=round(decision.battery_kw, 2),
                grid_kw=round(decision.grid_kw, 2),
                ev_kw=round(demand_kw, 2),
                soc_pct=round(soc, 1),
                efficiency_pct=round(decision.efficiency_pct, 1),
            )
        )

    return records, totals, soc


def run_simulation(params: SimulationParameters) -> SimulationResult:
    """Run the hourly dispatch loop and return the rounded result structure."""

    validate_parameters(params)
    strategy = select_strategy(params.ml_optimization)
    logger.debug(
        "Running %s-hour simulation with %s dispatch (%d override rows)",
        params.duration,
        strategy.tag,
        len(params.override_rows),
    )

    records, totals, final_soc = _simulate_hours(params, strategy)
    summary = summarize_totals(totals, params.duration)
    recommendations = generate_recommendations(
        total_solar_generation=totals.solar_kwh,
        total_grid_import=totals.grid_import_kwh,
        total_energy_consumed=totals.energy_consumed_kwh,
        average_efficiency=summary.average_efficiency,
        battery_capacity=params.battery_capacity,
        solar_panel_capacity=params.solar_panel_capacity,
    )

    return SimulationResult(
        duration=params.duration,
        hourly=tuple(records),
        total_solar_generation=round(totals.solar_kwh, 2),
        total_battery_discharge=round(totals.battery_discharge_kwh, 2),
        total_grid_import=round(totals.grid_import_kwh, 2),
        total_energy_consumed=round(totals.energy_consumed_kwh, 2),
        average_efficiency=round(summary.average_efficiency, 2),
        peak_solar_generation=round(summary.peak_solar_generation, 2),
        estimated_cost_savings=round(summary.estimated_cost_savings, 2),
        final_battery_soc=round(final_soc, 1),
        recommendations=tuple(recommendations),
        strategy=strategy.tag,
    )


def run_simulation_batch(param_sets: Sequence[SimulationParameters]) -> List[SimulationResult]:
    """Run independent parameter sets one after another."""

    return [run_simulation(params) for params in param_sets]
