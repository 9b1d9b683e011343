import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from utils.recommendations import RECOMMENDATION_TEXT, generate_recommendations  # noqa: E402


def _standing_advice() -> list:
    return [RECOMMENDATION_TEXT["charging_schedule"], RECOMMENDATION_TEXT["predictive_maintenance"]]


def test_every_sizing_rule_fires_in_fixed_order() -> None:
    recs = generate_recommendations(
        total_solar_generation=40.0,
        total_grid_import=50.0,
        total_energy_consumed=100.0,
        average_efficiency=75.0,
        battery_capacity=100.0,
        solar_panel_capacity=100.0,
    )

    assert recs[0] == RECOMMENDATION_TEXT["low_solar_share"]
    assert recs[1] == RECOMMENDATION_TEXT["high_grid_dependency"]
    assert recs[2] == RECOMMENDATION_TEXT["low_efficiency"]
    assert "200 kWh" in recs[3]
    assert recs[4:] == _standing_advice()


def test_well_sized_station_only_gets_standing_advice() -> None:
    recs = generate_recommendations(
        total_solar_generation=80.0,
        total_grid_import=10.0,
        total_energy_consumed=100.0,
        average_efficiency=90.0,
        battery_capacity=200.0,
        solar_panel_capacity=100.0,
    )

    assert recs == _standing_advice()


def test_thresholds_are_strict() -> None:
    recs = generate_recommendations(
        total_solar_generation=50.0,
        total_grid_import=40.0,
        total_energy_consumed=100.0,
        average_efficiency=80.0,
        battery_capacity=200.0,
        solar_panel_capacity=100.0,
    )

    assert recs == _standing_advice()


def test_zero_consumption_skips_share_rules() -> None:
    recs = generate_recommendations(
        total_solar_generation=0.0,
        total_grid_import=0.0,
        total_energy_consumed=0.0,
        average_efficiency=0.0,
        battery_capacity=200.0,
        solar_panel_capacity=100.0,
    )

    assert recs == [RECOMMENDATION_TEXT["low_efficiency"], *_standing_advice()]


def test_undersized_battery_target_is_rounded_to_whole_kwh() -> None:
    recs = generate_recommendations(
        total_solar_generation=90.0,
        total_grid_import=0.0,
        total_energy_consumed=100.0,
        average_efficiency=95.0,
        battery_capacity=10.0,
        solar_panel_capacity=12.7,
    )

    assert recs[0].endswith("Consider upgrading to 25 kWh for better energy storage.")
