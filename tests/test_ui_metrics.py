import math
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from frontend.ui.metrics import build_primary_metric_specs, compute_kpis  # noqa: E402
from services.simulation_core import HourlyRecord, SimulationResult  # noqa: E402


def _result(hourly, *, solar: float, discharge: float, grid: float, consumed: float) -> SimulationResult:
    return SimulationResult(
        duration=len(hourly),
        hourly=tuple(hourly),
        total_solar_generation=solar,
        total_battery_discharge=discharge,
        total_grid_import=grid,
        total_energy_consumed=consumed,
        average_efficiency=82.5,
        peak_solar_generation=max((record.solar_kw for record in hourly), default=0.0),
        estimated_cost_savings=(solar + discharge) * 0.09,
        final_battery_soc=hourly[-1].soc_pct if hourly else 0.0,
        recommendations=(),
        strategy="basic",
    )


def test_compute_kpis_shares_and_unserved_hours() -> None:
    hourly = [
        HourlyRecord(hour=0, solar_kw=0.0, battery_kw=-40.0, grid_kw=0.0, ev_kw=40.0, soc_pct=60.0, efficiency_pct=85.0),
        HourlyRecord(hour=1, solar_kw=0.0, battery_kw=0.0, grid_kw=0.0, ev_kw=40.0, soc_pct=60.0, efficiency_pct=80.0),
        HourlyRecord(hour=2, solar_kw=10.01, battery_kw=-29.99, grid_kw=0.0, ev_kw=40.01, soc_pct=45.0, efficiency_pct=85.0),
    ]
    kpis = compute_kpis(_result(hourly, solar=10.01, discharge=69.99, grid=0.0, consumed=120.01))

    assert kpis.unserved_hours == 1
    assert kpis.solar_share_pct == pytest.approx(10.01 / 120.01 * 100.0)
    assert kpis.battery_share_pct == pytest.approx(69.99 / 120.01 * 100.0)
    assert kpis.grid_dependency_pct == pytest.approx(0.0)
    assert kpis.final_battery_soc == pytest.approx(45.0)


def test_zero_consumption_shares_are_nan_and_formatted() -> None:
    hourly = [
        HourlyRecord(hour=0, solar_kw=0.0, battery_kw=0.0, grid_kw=0.0, ev_kw=0.0, soc_pct=80.0, efficiency_pct=90.0),
    ]
    kpis = compute_kpis(_result(hourly, solar=0.0, discharge=0.0, grid=0.0, consumed=0.0))

    assert math.isnan(kpis.solar_share_pct)
    specs = build_primary_metric_specs(kpis)
    assert specs[0].value == "n/a"
    assert specs[-1].caption is None


def test_primary_cards_cover_distribution_and_performance() -> None:
    hourly = [
        HourlyRecord(hour=0, solar_kw=12.5, battery_kw=-20.0, grid_kw=7.5, ev_kw=40.0, soc_pct=70.0, efficiency_pct=80.0),
    ]
    kpis = compute_kpis(_result(hourly, solar=12.5, discharge=20.0, grid=7.5, consumed=40.0))
    specs = build_primary_metric_specs(kpis)
    by_label = {spec.label: spec.value for spec in specs}

    assert len(specs) == 8
    assert by_label["Peak solar"] == "12.50 kW"
    assert by_label["Total energy"] == "40.00 kWh"
    assert by_label["Battery share of demand"] == "50.0%"
    assert by_label["Solar share of demand"] == "31.2%"
    assert by_label["Grid dependency"] == "18.8%"
