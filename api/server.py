from __future__ import annotations

import logging
import os
import uuid
from collections import OrderedDict
from dataclasses import asdict
from threading import Lock
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, model_validator

from services.override_rows import OverrideRow, override_rows_from_records
from services.simulation_core import (
    MAX_DURATION_HOURS,
    InvalidParameter,
    SimulationParameters,
    SimulationResult,
    run_simulation,
    run_simulation_batch,
    validate_parameters,
)
from services.station_snapshot import compute_station_snapshot

logger = logging.getLogger(__name__)

_DEFAULT_PARAMS = SimulationParameters()
MAX_CACHED_UPLOADS = 64


class SimulationParamsPayload(BaseModel):
    """Pydantic mirror of :class:`SimulationParameters` for FastAPI requests."""

    solar_irradiance: float = _DEFAULT_PARAMS.solar_irradiance
    temperature: float = _DEFAULT_PARAMS.temperature
    cloud_cover: float = _DEFAULT_PARAMS.cloud_cover
    wind_speed: float = _DEFAULT_PARAMS.wind_speed
    solar_panel_capacity: float = _DEFAULT_PARAMS.solar_panel_capacity
    battery_capacity: float = _DEFAULT_PARAMS.battery_capacity
    battery_soc: float = _DEFAULT_PARAMS.battery_soc
    number_of_ev_chargers: int = _DEFAULT_PARAMS.number_of_ev_chargers
    ev_charging_demand: float = _DEFAULT_PARAMS.ev_charging_demand
    grid_connection: bool = _DEFAULT_PARAMS.grid_connection
    ml_optimization: bool = _DEFAULT_PARAMS.ml_optimization
    duration: int = Field(_DEFAULT_PARAMS.duration, ge=1, le=MAX_DURATION_HOURS)
    use_duration_period: bool = _DEFAULT_PARAMS.use_duration_period

    def build(self, override_rows: Optional[List[OverrideRow]] = None) -> SimulationParameters:
        """Return validated :class:`SimulationParameters` or raise HTTP 400."""

        params = SimulationParameters(**self.model_dump(), override_rows=tuple(override_rows or ()))
        try:
            validate_parameters(params)
        except InvalidParameter as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return params


class OverrideSource(BaseModel):
    upload_id: Optional[str] = None
    rows: Optional[List[Dict[str, Any]]] = None

    @model_validator(mode="after")
    def _one_source(self) -> "OverrideSource":
        if self.upload_id and self.rows:
            raise ValueError("Provide either upload_id or rows, not both.")
        return self


class SimulationRequest(BaseModel):
    params: SimulationParamsPayload = Field(default_factory=SimulationParamsPayload)
    overrides: OverrideSource = Field(default_factory=OverrideSource)
    include_snapshot: bool = False


class BatchRun(BaseModel):
    name: Optional[str] = None
    params: SimulationParamsPayload


class BatchRequest(BaseModel):
    overrides: OverrideSource = Field(default_factory=OverrideSource)
    runs: List[BatchRun]

    @model_validator(mode="after")
    def _require_runs(self) -> "BatchRequest":
        if not self.runs:
            raise ValueError("Provide at least one run in 'runs'.")
        return self


class UploadPayload(BaseModel):
    name: Optional[str] = None
    rows: List[Dict[str, Any]]

    @model_validator(mode="after")
    def _require_rows(self) -> "UploadPayload":
        if not self.rows:
            raise ValueError("rows cannot be empty.")
        return self


class UploadStore:
    """In-memory cache of parsed override tables.

    Holds at most ``max_entries`` uploads; the oldest is evicted first.
    """

    def __init__(self, max_entries: int = MAX_CACHED_UPLOADS) -> None:
        self._rows: OrderedDict[str, List[OverrideRow]] = OrderedDict()
        self._lock = Lock()
        self.max_entries = max_entries

    def store(self, rows: List[OverrideRow], name: Optional[str] = None) -> str:
        upload_id = name or str(uuid.uuid4())
        with self._lock:
            self._rows.pop(upload_id, None)
            self._rows[upload_id] = list(rows)
            while len(self._rows) > self.max_entries:
                evicted, _ = self._rows.popitem(last=False)
                logger.info("Evicted cached upload %s", evicted)
        return upload_id

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def get(self, upload_id: str) -> List[OverrideRow]:
        with self._lock:
            if upload_id not in self._rows:
                raise HTTPException(status_code=404, detail=f"Upload '{upload_id}' not found.")
            return list(self._rows[upload_id])


def _resolve_overrides(source: OverrideSource, store: UploadStore) -> List[OverrideRow]:
    if source.rows:
        return override_rows_from_records(source.rows)
    if source.upload_id:
        return store.get(source.upload_id)
    return []


def _serialize_result(result: SimulationResult) -> Dict[str, Any]:
    data = asdict(result)
    data["hourly"] = [asdict(record) for record in result.hourly]
    data["recommendations"] = list(result.recommendations)
    return data


uploads = UploadStore()
app = FastAPI(
    title="EV Solar Station API",
    description="REST API for running charging-station energy simulations outside Streamlit.",
    version="0.1.0",
)


_default_cors_origins = [
    # Vite dev/preview servers
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:4173",
    "http://127.0.0.1:4173",
]
_allowed_origins_env = os.getenv("EVSTATION_CORS_ORIGINS", "")
_allowed_origins = [
    origin.strip()
    for origin in _allowed_origins_env.split(",")
    if origin.strip()
] or _default_cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health() -> Dict[str, str]:
    """Simple liveness probe for container orchestrators."""
    return {"status": "ok"}


@app.post("/uploads")
def create_upload(payload: UploadPayload) -> Dict[str, Any]:
    """Accept hourly override rows as JSON and cache them for reuse."""

    rows = override_rows_from_records(payload.rows)
    upload_id = uploads.store(rows, payload.name)
    return {"upload_id": upload_id, "rows": len(rows)}


@app.post("/simulate")
def simulate(request: SimulationRequest) -> Dict[str, Any]:
    """Run a single simulation and return the full result."""

    override_rows = _resolve_overrides(request.overrides, uploads)
    params = request.params.build(override_rows)
    result = run_simulation(params)

    response: Dict[str, Any] = {"result": _serialize_result(result)}
    if request.include_snapshot:
        response["snapshot"] = asdict(compute_station_snapshot(params))
    if override_rows and len(override_rows) < params.duration:
        response["warnings"] = [
            f"Override rows cover {len(override_rows)} of {params.duration} hours; base model used for the rest."
        ]
    return response


@app.post("/batch")
def batch(request: BatchRequest) -> Dict[str, Any]:
    """Run multiple station configurations against the same override rows."""

    override_rows = _resolve_overrides(request.overrides, uploads)
    # Validate every run before any of them starts.
    param_sets = [run.params.build(override_rows) for run in request.runs]
    results = run_simulation_batch(param_sets)
    responses: List[Dict[str, Any]] = [
        {"name": run.name or f"scenario-{idx + 1}", "result": _serialize_result(result)}
        for idx, (run, result) in enumerate(zip(request.runs, results))
    ]
    logger.info("Batch finished with %d runs", len(responses))
    return {"runs": responses}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.server:app", host="0.0.0.0", port=8000, reload=False)
