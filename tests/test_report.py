import json
import sys
from datetime import datetime
from io import BytesIO
from pathlib import Path

import pandas as pd
import pytest
from openpyxl import load_workbook

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from services.simulation_core import SimulationParameters, run_simulation  # noqa: E402
from services.station_snapshot import compute_station_snapshot  # noqa: E402
from utils.report import (  # noqa: E402
    HOURLY_COLUMNS,
    build_hourly_workbook,
    build_report_csv,
    build_report_json,
    build_report_payload,
    hourly_frame,
)

GENERATED_AT = datetime(2026, 1, 1, 12, 0, 0)


@pytest.fixture
def run():
    params = SimulationParameters(duration=6, ml_optimization=False)
    return params, run_simulation(params)


def test_hourly_frame_matches_records(run):
    _, result = run
    df = hourly_frame(result)

    assert list(df.columns) == HOURLY_COLUMNS
    assert len(df) == 6
    assert df.loc[0, "battery_kw"] == pytest.approx(-40.0)


def test_report_payload_sections(run):
    params, result = run
    payload = build_report_payload(params, result, compute_station_snapshot(params), generated_at=GENERATED_AT)

    assert payload["timestamp"] == "2026-01-01 12:00:00"
    assert payload["system_config"]["grid_connection"] == "Connected"
    assert payload["summary"]["strategy"] == "basic"
    assert payload["metrics"]["solar_generation_kw"] == pytest.approx(13.76)
    assert payload["recommendations"] == list(result.recommendations)

    without_snapshot = build_report_payload(params, result, generated_at=GENERATED_AT)
    assert "metrics" not in without_snapshot


def test_report_csv_lists_sections_in_order(run):
    params, result = run
    payload = build_report_payload(params, result, compute_station_snapshot(params), generated_at=GENERATED_AT)
    text = build_report_csv(payload)

    headings = [
        "EV Charging Energy Management System Report",
        "Real-Time Metrics",
        "System Configuration",
        "Simulation Summary",
    ]
    positions = [text.index(heading) for heading in headings]
    assert positions == sorted(positions)
    assert "Generated: 2026-01-01 12:00:00" in text
    assert "Solar Generation,13.76 kW" in text
    assert f"Final Battery SOC,{result.final_battery_soc:.1f}%" in text


def test_report_json_round_trips(run):
    params, result = run
    payload = build_report_payload(params, result, generated_at=GENERATED_AT)

    assert json.loads(build_report_json(payload)) == payload


def test_hourly_workbook_contains_trace_and_summary(run):
    _, result = run
    workbook_bytes = build_hourly_workbook(result)

    workbook = load_workbook(BytesIO(workbook_bytes))
    assert workbook.sheetnames == ["Hourly", "Summary", "Recommendations"]

    hourly = pd.read_excel(BytesIO(workbook_bytes), sheet_name="Hourly")
    assert list(hourly.columns) == HOURLY_COLUMNS
    assert len(hourly) == 6
