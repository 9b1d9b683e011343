import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from services.simulation_core import InvalidParameter, SimulationParameters  # noqa: E402
from services.station_snapshot import (  # noqa: E402
    compute_station_snapshot,
    dcdc_efficiency,
    inverter_efficiency,
    mppt_efficiency,
)


def test_default_snapshot_matches_configured_conditions() -> None:
    snapshot = compute_station_snapshot(SimulationParameters())

    assert snapshot.solar_generation_kw == pytest.approx(13.76)
    assert snapshot.mppt_efficiency_pct == pytest.approx(92.0)
    assert snapshot.dcdc_efficiency_pct == pytest.approx(96.0)
    assert snapshot.inverter_efficiency_pct == pytest.approx(96.8)
    assert snapshot.battery_flow_kw == pytest.approx(-37.3408)
    assert snapshot.grid_flow_kw == pytest.approx(0.0)
    assert snapshot.ev_charging_kw == pytest.approx(50.0)
    assert snapshot.efficiency_pct == pytest.approx(27.52)


def test_surplus_charges_battery_up_to_power_limit() -> None:
    params = SimulationParameters(solar_irradiance=1000.0, cloud_cover=0.0, solar_panel_capacity=2000.0, battery_capacity=100.0)
    snapshot = compute_station_snapshot(params)

    assert snapshot.battery_flow_kw == pytest.approx(50.0)
    assert snapshot.grid_flow_kw == pytest.approx(0.0)
    assert snapshot.efficiency_pct == pytest.approx(100.0)


def test_low_soc_deficit_goes_to_grid() -> None:
    snapshot = compute_station_snapshot(SimulationParameters(battery_soc=15.0))

    assert snapshot.battery_flow_kw == pytest.approx(0.0)
    assert snapshot.grid_flow_kw == pytest.approx(50.0 - 13.76 * 0.92)


def test_zero_demand_reports_full_efficiency() -> None:
    snapshot = compute_station_snapshot(SimulationParameters(ev_charging_demand=0.0))

    assert snapshot.efficiency_pct == pytest.approx(100.0)


def test_component_efficiency_curves() -> None:
    assert mppt_efficiency(1000.0, 25.0) == pytest.approx(98.5)
    assert mppt_efficiency(1500.0, 45.0) == pytest.approx(96.5)
    assert dcdc_efficiency(65.0) == pytest.approx(97.2)
    assert inverter_efficiency(10.0, 100.0) == pytest.approx(94.4)
    assert inverter_efficiency(100.0, 100.0) == pytest.approx(94.0)
    assert inverter_efficiency(50.0, 0.0) == pytest.approx(88.0)


def test_snapshot_rejects_invalid_parameters() -> None:
    with pytest.raises(InvalidParameter):
        compute_station_snapshot(SimulationParameters(battery_capacity=0.0))
