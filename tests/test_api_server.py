from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from api import server  # noqa: E402
from api.server import (  # noqa: E402
    BatchRequest,
    BatchRun,
    OverrideSource,
    SimulationParamsPayload,
    SimulationRequest,
    UploadPayload,
    UploadStore,
    create_upload,
    simulate,
)
from services.override_rows import OverrideRow  # noqa: E402
from services.simulation_core import MAX_DURATION_HOURS  # noqa: E402


def test_simulate_with_default_inputs() -> None:
    response = simulate(SimulationRequest())

    result = response["result"]
    assert result["duration"] == 24
    assert len(result["hourly"]) == 24
    assert result["strategy"] == "optimized"
    assert result["recommendations"], "Expected standing recommendations"
    assert "snapshot" not in response
    assert "warnings" not in response


def test_simulate_includes_snapshot_when_requested() -> None:
    response = simulate(SimulationRequest(include_snapshot=True))

    assert response["snapshot"]["solar_generation_kw"] == pytest.approx(13.76)


def test_invalid_parameters_return_400() -> None:
    request = SimulationRequest(params=SimulationParamsPayload(battery_capacity=0.0))

    with pytest.raises(HTTPException) as excinfo:
        simulate(request)
    assert excinfo.value.status_code == 400
    assert "battery_capacity" in excinfo.value.detail


def test_inline_rows_warn_when_shorter_than_duration() -> None:
    request = SimulationRequest(
        params=SimulationParamsPayload(duration=3, ml_optimization=False),
        overrides=OverrideSource(rows=[{"ev_demand": 10}, {"demand": "12.5"}]),
    )
    response = simulate(request)

    hourly = response["result"]["hourly"]
    assert [record["ev_kw"] for record in hourly] == [10.0, 12.5, 40.0]
    assert "2 of 3 hours" in response["warnings"][0]


def test_override_source_accepts_one_origin_only() -> None:
    with pytest.raises(ValidationError):
        OverrideSource(upload_id="abc", rows=[{"GHI": 100}])


def test_upload_and_batch_reuse_cached_rows() -> None:
    upload = create_upload(
        UploadPayload(name="unit-test-overrides", rows=[{"GHI": 900, "temperature": 30}] * 24)
    )
    assert upload == {"upload_id": "unit-test-overrides", "rows": 24}

    batch_request = BatchRequest(
        overrides=OverrideSource(upload_id="unit-test-overrides"),
        runs=[
            BatchRun(name="small", params=SimulationParamsPayload(solar_panel_capacity=50.0)),
            BatchRun(params=SimulationParamsPayload(solar_panel_capacity=200.0)),
        ],
    )
    response = server.batch(batch_request)

    names = [run["name"] for run in response["runs"]]
    assert names == ["small", "scenario-2"]
    small, large = (run["result"] for run in response["runs"])
    assert small["total_solar_generation"] < large["total_solar_generation"]
    assert small["peak_solar_generation"] > 0.0


def test_unknown_upload_returns_404() -> None:
    request = SimulationRequest(overrides=OverrideSource(upload_id="missing-upload"))

    with pytest.raises(HTTPException) as excinfo:
        simulate(request)
    assert excinfo.value.status_code == 404


def test_batch_requires_runs() -> None:
    with pytest.raises(ValidationError):
        BatchRequest(runs=[])


@pytest.mark.parametrize("duration", [0, MAX_DURATION_HOURS + 1, 10**8])
def test_duration_outside_supported_range_is_rejected(duration: int) -> None:
    with pytest.raises(ValidationError):
        SimulationParamsPayload(duration=duration)


def test_longest_supported_duration_runs() -> None:
    response = simulate(SimulationRequest(params=SimulationParamsPayload(duration=MAX_DURATION_HOURS)))

    assert len(response["result"]["hourly"]) == MAX_DURATION_HOURS


def test_upload_store_evicts_oldest_entries() -> None:
    store = UploadStore(max_entries=2)
    rows = [OverrideRow(irradiance=100.0)]
    store.store(rows, "first")
    store.store(rows, "second")
    store.store(rows, "first")
    store.store(rows, "third")

    assert len(store) == 2
    assert store.get("first") == rows
    with pytest.raises(HTTPException) as excinfo:
        store.get("second")
    assert excinfo.value.status_code == 404
