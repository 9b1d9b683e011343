"""Instantaneous station metrics for the configured conditions.

Complements the hourly engine with a single-point view used by the dashboard
cards and the report export: PV output at the configured irradiance (no
diurnal shaping), power-electronics efficiencies and a simple energy balance.
"""
from __future__ import annotations

from dataclasses import dataclass

from services.simulation_core import SimulationParameters, panel_efficiency, validate_parameters

MPPT_BASE_EFFICIENCY = 98.5
DCDC_BASE_EFFICIENCY = 97.2
DCDC_OPTIMAL_SOC = 65.0
INVERTER_PEAK_EFFICIENCY = 96.8
SNAPSHOT_POWER_FRACTION = 0.5  # of battery kWh, per hour


@dataclass(frozen=True)
class StationSnapshot:
    solar_generation_kw: float
    battery_flow_kw: float  # + charging, - discharging
    grid_flow_kw: float
    ev_charging_kw: float
    efficiency_pct: float
    mppt_efficiency_pct: float
    dcdc_efficiency_pct: float
    inverter_efficiency_pct: float


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def mppt_efficiency(irradiance: float, temperature: float) -> float:
    """Tracker efficiency improves with irradiance and drops above 25 °C."""

    irradiance_factor = min(irradiance / 1000.0, 1.0)
    temp_factor = 1.0 - max(temperature - 25.0, 0.0) * 0.001
    return round(_clamp(MPPT_BASE_EFFICIENCY * irradiance_factor * temp_factor, 92.0, 99.2), 1)


def dcdc_efficiency(soc_pct: float) -> float:
    """Converter efficiency peaks around mid-band SOC."""

    soc_factor = 1.0 - abs(soc_pct - DCDC_OPTIMAL_SOC) * 0.0008
    return round(_clamp(DCDC_BASE_EFFICIENCY * soc_factor, 90.0, 98.5), 1)


def inverter_efficiency(load_kw: float, rated_kw: float) -> float:
    """Flat at 96.8 % between 20 % and 80 % load, with penalties outside."""

    if rated_kw <= 0:
        return 88.0
    load_factor = load_kw / rated_kw
    efficiency = INVERTER_PEAK_EFFICIENCY
    if load_factor < 0.2:
        efficiency = 92.0 + (load_factor / 0.2) * 4.8
    elif load_factor > 0.8:
        efficiency = INVERTER_PEAK_EFFICIENCY - ((load_factor - 0.8) / 0.2) * 2.8
    return round(_clamp(efficiency, 88.0, 97.5), 1)


def _energy_balance(solar_kw: float, demand_kw: float, params: SimulationParameters) -> tuple[float, float]:
    power_limit_kw = params.battery_capacity * SNAPSHOT_POWER_FRACTION
    battery_kw = 0.0
    grid_kw = 0.0

    if solar_kw > demand_kw:
        if params.battery_soc < 95:
            battery_kw = min(solar_kw - demand_kw, power_limit_kw)
    elif solar_kw < demand_kw:
        deficit = demand_kw - solar_kw
        if params.battery_soc > 20:
            contribution = min(deficit, power_limit_kw)
            battery_kw = -contribution
            if deficit - contribution > 0 and params.grid_connection:
                grid_kw = deficit - contribution
        elif params.grid_connection:
            grid_kw = deficit

    return battery_kw, grid_kw


def compute_station_snapshot(params: SimulationParameters) -> StationSnapshot:
    """Return the dashboard metrics for ``params`` (one evaluation, no loop)."""

    validate_parameters(params)
    solar_kw = (
        (params.solar_irradiance / 1000.0)
        * params.solar_panel_capacity
        * panel_efficiency(params.temperature, params.cloud_cover)
    )
    demand_kw = params.ev_charging_demand

    mppt = mppt_efficiency(params.solar_irradiance, params.temperature)
    battery_kw, grid_kw = _energy_balance(solar_kw * (mppt / 100.0), demand_kw, params)

    if demand_kw == 0:
        efficiency = 100.0
    else:
        efficiency = min(solar_kw / demand_kw * 100.0, 100.0)

    return StationSnapshot(
        solar_generation_kw=solar_kw,
        battery_flow_kw=battery_kw,
        grid_flow_kw=grid_kw,
        ev_charging_kw=demand_kw,
        efficiency_pct=efficiency,
        mppt_efficiency_pct=mppt,
        dcdc_efficiency_pct=dcdc_efficiency(params.battery_soc),
        inverter_efficiency_pct=inverter_efficiency(demand_kw, params.solar_panel_capacity),
    )
