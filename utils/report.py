"""Report exports for a finished simulation (CSV, JSON, Excel)."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from io import BytesIO, StringIO
from typing import Any, Dict, Optional

import pandas as pd

from services.simulation_core import SimulationParameters, SimulationResult
from services.station_snapshot import StationSnapshot

REPORT_TITLE = "EV Charging Energy Management System Report"

HOURLY_COLUMNS = ["hour", "solar_kw", "battery_kw", "grid_kw", "ev_kw", "soc_pct", "efficiency_pct"]


def hourly_frame(result: SimulationResult) -> pd.DataFrame:
    """Return the hourly trace as a DataFrame (one row per simulated hour)."""

    if not result.hourly:
        return pd.DataFrame(columns=HOURLY_COLUMNS)
    return pd.DataFrame([asdict(record) for record in result.hourly], columns=HOURLY_COLUMNS)


def summary_dict(result: SimulationResult) -> Dict[str, Any]:
    return {
        "duration_h": result.duration,
        "strategy": result.strategy,
        "total_solar_generation_kwh": result.total_solar_generation,
        "total_battery_discharge_kwh": result.total_battery_discharge,
        "total_grid_import_kwh": result.total_grid_import,
        "total_energy_consumed_kwh": result.total_energy_consumed,
        "average_efficiency_pct": result.average_efficiency,
        "peak_solar_generation_kw": result.peak_solar_generation,
        "estimated_cost_savings_usd": result.estimated_cost_savings,
        "final_battery_soc_pct": result.final_battery_soc,
    }


def build_report_payload(
    params: SimulationParameters,
    result: SimulationResult,
    snapshot: Optional[StationSnapshot] = None,
    generated_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Assemble the exportable report structure.

    The timestamp is the only wall-clock field; every numeric value comes from
    the run and the snapshot.
    """

    stamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    payload: Dict[str, Any] = {
        "timestamp": stamp,
        "system_config": {
            "solar_capacity_kw": params.solar_panel_capacity,
            "battery_capacity_kwh": params.battery_capacity,
            "battery_soc_pct": params.battery_soc,
            "ev_chargers": params.number_of_ev_chargers,
            "grid_connection": "Connected" if params.grid_connection else "Disconnected",
        },
        "summary": summary_dict(result),
        "recommendations": list(result.recommendations),
    }
    if snapshot is not None:
        payload["metrics"] = {
            "solar_generation_kw": round(snapshot.solar_generation_kw, 2),
            "battery_flow_kw": round(snapshot.battery_flow_kw, 2),
            "grid_flow_kw": round(snapshot.grid_flow_kw, 2),
            "ev_charging_kw": round(snapshot.ev_charging_kw, 2),
            "efficiency_pct": round(snapshot.efficiency_pct, 1),
        }
    return payload


def build_report_csv(payload: Dict[str, Any]) -> str:
    """Render the sectioned CSV report (metric/value pairs per section)."""

    buffer = StringIO()
    buffer.write(f"{REPORT_TITLE}\n")
    buffer.write(f"Generated: {payload['timestamp']}\n\n")

    metrics = payload.get("metrics")
    if metrics:
        buffer.write("Real-Time Metrics\n")
        buffer.write("Metric,Value\n")
        buffer.write(f"Solar Generation,{metrics['solar_generation_kw']:.2f} kW\n")
        buffer.write(f"Battery Flow,{metrics['battery_flow_kw']:.2f} kW\n")
        buffer.write(f"Grid Power,{metrics['grid_flow_kw']:.2f} kW\n")
        buffer.write(f"EV Charging,{metrics['ev_charging_kw']:.2f} kW\n")
        buffer.write(f"System Efficiency,{metrics['efficiency_pct']:.1f}%\n\n")

    config = payload["system_config"]
    buffer.write("System Configuration\n")
    buffer.write("Parameter,Value\n")
    buffer.write(f"Solar Panel Capacity,{config['solar_capacity_kw']} kW\n")
    buffer.write(f"Battery Capacity,{config['battery_capacity_kwh']} kWh\n")
    buffer.write(f"Battery SOC,{config['battery_soc_pct']}%\n")
    buffer.write(f"Number of EV Chargers,{config['ev_chargers']}\n")
    buffer.write(f"Grid Connection,{config['grid_connection']}\n\n")

    summary = payload["summary"]
    buffer.write("Simulation Summary\n")
    buffer.write("Metric,Value\n")
    buffer.write(f"Duration,{summary['duration_h']} h\n")
    buffer.write(f"Dispatch Strategy,{summary['strategy']}\n")
    buffer.write(f"Total Solar Generation,{summary['total_solar_generation_kwh']:.2f} kWh\n")
    buffer.write(f"Total Battery Discharge,{summary['total_battery_discharge_kwh']:.2f} kWh\n")
    buffer.write(f"Total Grid Import,{summary['total_grid_import_kwh']:.2f} kWh\n")
    buffer.write(f"Total Energy Consumed,{summary['total_energy_consumed_kwh']:.2f} kWh\n")
    buffer.write(f"Average Efficiency,{summary['average_efficiency_pct']:.2f}%\n")
    buffer.write(f"Peak Solar Generation,{summary['peak_solar_generation_kw']:.2f} kW\n")
    buffer.write(f"Estimated Cost Savings,${summary['estimated_cost_savings_usd']:.2f}\n")
    buffer.write(f"Final Battery SOC,{summary['final_battery_soc_pct']:.1f}%\n")

    return buffer.getvalue()


def build_report_json(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, indent=2)


def build_hourly_workbook(result: SimulationResult) -> bytes:
    """Return an xlsx workbook with the hourly trace and the run summary."""

    summary_df = pd.DataFrame(
        [{"metric": key, "value": value} for key, value in summary_dict(result).items()]
    )
    recommendations_df = pd.DataFrame({"recommendation": list(result.recommendations)})

    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        hourly_frame(result).to_excel(writer, sheet_name="Hourly", index=False)
        summary_df.to_excel(writer, sheet_name="Summary", index=False)
        recommendations_df.to_excel(writer, sheet_name="Recommendations", index=False)
    return output.getvalue()
