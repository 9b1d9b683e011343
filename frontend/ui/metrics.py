"""Reusable KPI helpers for Streamlit pages."""

from dataclasses import dataclass
from typing import List

import streamlit as st

from frontend.ui.rendering import MetricSpec, render_metrics
from services.simulation_core import SimulationResult
from services.station_snapshot import StationSnapshot


@dataclass
class KPIResults:
    solar_share_pct: float
    grid_dependency_pct: float
    battery_share_pct: float
    unserved_hours: int
    average_efficiency: float
    estimated_cost_savings: float
    final_battery_soc: float
    peak_solar_generation: float
    total_energy_consumed: float


def _pct(part: float, whole: float) -> float:
    return part / whole * 100.0 if whole > 0 else float("nan")


def compute_kpis(result: SimulationResult) -> KPIResults:
    """Derive headline ratios from a run for reuse across pages.

    ``unserved_hours`` counts hours where solar, battery discharge and grid
    together fell short of the requested demand. Records are rounded to
    0.01 kW, hence the tolerance.
    """
    unserved_hours = 0
    for record in result.hourly:
        supplied = record.solar_kw + max(-record.battery_kw, 0.0) + record.grid_kw
        if supplied + 0.015 < record.ev_kw:
            unserved_hours += 1

    return KPIResults(
        solar_share_pct=_pct(result.total_solar_generation, result.total_energy_consumed),
        grid_dependency_pct=_pct(result.total_grid_import, result.total_energy_consumed),
        battery_share_pct=_pct(result.total_battery_discharge, result.total_energy_consumed),
        unserved_hours=unserved_hours,
        average_efficiency=result.average_efficiency,
        estimated_cost_savings=result.estimated_cost_savings,
        final_battery_soc=result.final_battery_soc,
        peak_solar_generation=result.peak_solar_generation,
        total_energy_consumed=result.total_energy_consumed,
    )


def _fmt_percent(value: float) -> str:
    if value != value:
        return "n/a"
    return f"{value:,.1f}%"


def build_energy_share_specs(kpis: KPIResults) -> List[MetricSpec]:
    """Energy distribution cards: where the requested demand was sourced from."""
    return [
        MetricSpec(
            "Solar share of demand",
            _fmt_percent(kpis.solar_share_pct),
            help="Total PV generation vs requested EV demand over the run.",
        ),
        MetricSpec(
            "Battery share of demand",
            _fmt_percent(kpis.battery_share_pct),
            help="Battery discharge vs requested EV demand.",
        ),
        MetricSpec(
            "Grid dependency",
            _fmt_percent(kpis.grid_dependency_pct),
            help="Grid import vs requested EV demand.",
        ),
        MetricSpec(
            "Average efficiency",
            _fmt_percent(kpis.average_efficiency),
            help="Mean of the hourly dispatch efficiency figures.",
        ),
    ]


def build_performance_specs(kpis: KPIResults) -> List[MetricSpec]:
    return [
        MetricSpec("Peak solar", f"{kpis.peak_solar_generation:,.2f} kW"),
        MetricSpec(
            "Total energy",
            f"{kpis.total_energy_consumed:,.2f} kWh",
            help="Requested EV demand, including any hours left unserved.",
        ),
        MetricSpec(
            "Estimated savings",
            f"${kpis.estimated_cost_savings:,.2f}",
            help="(Solar + battery discharge) × (grid − solar cost per kWh).",
        ),
        MetricSpec(
            "Final SOC",
            _fmt_percent(kpis.final_battery_soc),
            caption=f"{kpis.unserved_hours} h with unserved demand" if kpis.unserved_hours else None,
        ),
    ]


def build_primary_metric_specs(kpis: KPIResults) -> List[MetricSpec]:
    return build_energy_share_specs(kpis) + build_performance_specs(kpis)


def render_primary_metrics(kpis: KPIResults) -> None:
    """Render the KPI cards shown after a simulation run, two rows of four."""
    render_metrics(st.columns(4), build_energy_share_specs(kpis))
    render_metrics(st.columns(4), build_performance_specs(kpis))


def render_snapshot_metrics(snapshot: StationSnapshot) -> None:
    """Render the instantaneous station cards (flows and converter efficiencies)."""
    flow_specs = [
        MetricSpec("Solar", f"{snapshot.solar_generation_kw:,.2f} kW"),
        MetricSpec(
            "Battery",
            f"{snapshot.battery_flow_kw:,.2f} kW",
            help="Positive while charging, negative while supplying the chargers.",
        ),
        MetricSpec("Grid", f"{snapshot.grid_flow_kw:,.2f} kW"),
        MetricSpec("EV charging", f"{snapshot.ev_charging_kw:,.2f} kW"),
    ]
    efficiency_specs = [
        MetricSpec("System efficiency", _fmt_percent(snapshot.efficiency_pct)),
        MetricSpec("MPPT", _fmt_percent(snapshot.mppt_efficiency_pct)),
        MetricSpec("DC/DC", _fmt_percent(snapshot.dcdc_efficiency_pct)),
        MetricSpec("Inverter", _fmt_percent(snapshot.inverter_efficiency_pct)),
    ]
    render_metrics(st.columns(4), flow_specs)
    render_metrics(st.columns(4), efficiency_specs)
