"""Advisory strings derived from a finished simulation run."""

from __future__ import annotations

from typing import Dict, List

SOLAR_SHARE_THRESHOLD_PCT = 50.0
GRID_DEPENDENCY_THRESHOLD_PCT = 40.0
EFFICIENCY_THRESHOLD_PCT = 80.0
BATTERY_TO_SOLAR_RATIO = 2.0

RECOMMENDATION_TEXT: Dict[str, str] = {
    "low_solar_share": (
        "Consider increasing solar panel capacity by 30-50% to improve renewable energy utilization."
    ),
    "high_grid_dependency": (
        "High grid dependency detected. Increase battery capacity to store excess solar energy."
    ),
    "low_efficiency": (
        "System efficiency is below optimal. Review component specifications and maintenance schedules."
    ),
    "undersized_battery": (
        "Battery capacity is low relative to solar capacity. Consider upgrading to "
        "{target_kwh:.0f} kWh for better energy storage."
    ),
    "charging_schedule": (
        "ML model suggests implementing time-based charging schedules during peak solar hours."
    ),
    "predictive_maintenance": (
        "Deep learning analysis recommends predictive maintenance for optimal performance."
    ),
}


def _share_pct(part: float, whole: float) -> float:
    # Zero consumption yields NaN so neither share-based rule fires.
    if whole == 0:
        return float("nan")
    return part / whole * 100.0


def generate_recommendations(
    total_solar_generation: float,
    total_grid_import: float,
    total_energy_consumed: float,
    average_efficiency: float,
    battery_capacity: float,
    solar_panel_capacity: float,
) -> List[str]:
    """Evaluate each sizing rule independently and append the standing advice."""

    recommendations: List[str] = []

    solar_share_pct = _share_pct(total_solar_generation, total_energy_consumed)
    grid_dependency_pct = _share_pct(total_grid_import, total_energy_consumed)

    if solar_share_pct < SOLAR_SHARE_THRESHOLD_PCT:
        recommendations.append(RECOMMENDATION_TEXT["low_solar_share"])

    if grid_dependency_pct > GRID_DEPENDENCY_THRESHOLD_PCT:
        recommendations.append(RECOMMENDATION_TEXT["high_grid_dependency"])

    if average_efficiency < EFFICIENCY_THRESHOLD_PCT:
        recommendations.append(RECOMMENDATION_TEXT["low_efficiency"])

    target_kwh = solar_panel_capacity * BATTERY_TO_SOLAR_RATIO
    if battery_capacity < target_kwh:
        recommendations.append(RECOMMENDATION_TEXT["undersized_battery"].format(target_kwh=target_kwh))

    recommendations.append(RECOMMENDATION_TEXT["charging_schedule"])
    recommendations.append(RECOMMENDATION_TEXT["predictive_maintenance"])

    return recommendations
