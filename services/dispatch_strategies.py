"""Per-hour dispatch strategies for the charging station.

Both strategies are deterministic heuristics. The "optimized" variant is the
time-aware rule set exposed in the UI as ML optimization; it is not a trained
model. A strategy is chosen once per run via :func:`select_strategy`.

Sign convention: ``battery_kw`` is positive when the battery absorbs energy
and negative when it supplies the chargers. ``grid_kw`` is import only.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Type

BASIC_STRATEGY = "basic"
OPTIMIZED_STRATEGY = "optimized"


@dataclass(frozen=True)
class DispatchDecision:
    """Flows chosen for one hour plus the efficiency figure credited to it."""

    battery_kw: float = 0.0
    grid_kw: float = 0.0
    efficiency_pct: float = 0.0


class DispatchStrategy(ABC):
    """Allocate the generation/demand mismatch between battery and grid."""

    tag: str = ""

    @abstractmethod
    def dispatch(
        self,
        solar_kw: float,
        demand_kw: float,
        soc_pct: float,
        battery_capacity_kwh: float,
        grid_connected: bool,
        hour: int,
    ) -> DispatchDecision:
        raise NotImplementedError


class BasicDispatch(DispatchStrategy):
    """Rule-based dispatch: store any surplus, cover deficits battery-first."""

    tag = BASIC_STRATEGY

    charge_efficiency = 0.90
    soc_charge_ceiling = 95.0
    soc_discharge_floor = 20.0
    discharge_fraction = 0.25

    def dispatch(
        self,
        solar_kw: float,
        demand_kw: float,
        soc_pct: float,
        battery_capacity_kwh: float,
        grid_connected: bool,
        hour: int,
    ) -> DispatchDecision:
        if solar_kw >= demand_kw:
            battery_kw = 0.0
            if soc_pct < self.soc_charge_ceiling:
                battery_kw = (solar_kw - demand_kw) * self.charge_efficiency
            # At the ceiling the surplus is curtailed.
            return DispatchDecision(battery_kw=battery_kw, efficiency_pct=90.0)

        deficit = demand_kw - solar_kw
        if soc_pct > self.soc_discharge_floor:
            available = battery_capacity_kwh * (soc_pct / 100.0) * self.discharge_fraction
            battery_kw = -min(deficit, available)
            remaining = deficit - abs(battery_kw)
            if remaining > 0 and grid_connected:
                return DispatchDecision(battery_kw=battery_kw, grid_kw=remaining, efficiency_pct=80.0)
            return DispatchDecision(battery_kw=battery_kw, efficiency_pct=85.0)
        if grid_connected:
            return DispatchDecision(grid_kw=deficit, efficiency_pct=70.0)
        # Islanded with a depleted battery: the deficit goes unserved.
        return DispatchDecision()


class OptimizedDispatch(DispatchStrategy):
    """Time-aware dispatch that saves the battery for off-peak deficits.

    Daytime (06:00-18:59) surplus is stored while SOC is under 90 %. During the
    peak-demand band (08:00-18:59) deficits go to the grid when available so
    the battery is kept for evening and night hours; islanded stations fall
    back to a deeper battery draw.
    """

    tag = OPTIMIZED_STRATEGY

    charge_efficiency = 0.92
    soc_charge_ceiling = 90.0
    soc_export_threshold = 80.0
    soc_discharge_floor = 30.0
    discharge_fraction = 0.2
    backup_discharge_fraction = 0.3

    @staticmethod
    def is_daytime(hour: int) -> bool:
        return 6 <= hour <= 18

    @staticmethod
    def is_peak_demand(hour: int) -> bool:
        return 8 <= hour <= 18

    def dispatch(
        self,
        solar_kw: float,
        demand_kw: float,
        soc_pct: float,
        battery_capacity_kwh: float,
        grid_connected: bool,
        hour: int,
    ) -> DispatchDecision:
        if solar_kw >= demand_kw:
            battery_kw = 0.0
            if soc_pct < self.soc_charge_ceiling and self.is_daytime(hour):
                battery_kw = (solar_kw - demand_kw) * self.charge_efficiency
            elif grid_connected and soc_pct > self.soc_export_threshold:
                # Export would go here; the station does not model feed-in.
                battery_kw = 0.0
            return DispatchDecision(battery_kw=battery_kw, efficiency_pct=95.0)

        deficit = demand_kw - solar_kw
        if soc_pct > self.soc_discharge_floor and not self.is_peak_demand(hour):
            available = battery_capacity_kwh * (soc_pct / 100.0) * self.discharge_fraction
            battery_kw = -min(deficit, available)
            if solar_kw + abs(battery_kw) < demand_kw and grid_connected:
                grid_kw = demand_kw - solar_kw - abs(battery_kw)
                return DispatchDecision(battery_kw=battery_kw, grid_kw=grid_kw, efficiency_pct=82.0)
            return DispatchDecision(battery_kw=battery_kw, efficiency_pct=88.0)
        if grid_connected:
            return DispatchDecision(grid_kw=deficit, efficiency_pct=75.0)

        available = battery_capacity_kwh * (soc_pct / 100.0) * self.backup_discharge_fraction
        return DispatchDecision(battery_kw=-min(deficit, available), efficiency_pct=70.0)


STRATEGIES: Dict[str, Type[DispatchStrategy]] = {
    BASIC_STRATEGY: BasicDispatch,
    OPTIMIZED_STRATEGY: OptimizedDispatch,
}


def select_strategy(ml_optimization: bool) -> DispatchStrategy:
    """Return the strategy instance for a run."""

    return STRATEGIES[OPTIMIZED_STRATEGY if ml_optimization else BASIC_STRATEGY]()
