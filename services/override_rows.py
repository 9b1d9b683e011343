"""Typed per-hour override records for imported station data.

Imported tables arrive as loosely keyed rows (CSV headers, spreadsheet columns,
JSON objects). ``OverrideRow`` keeps only the recognised fields and resolves
aliases with an explicit precedence list per logical quantity, so the engine
never probes arbitrary keys.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# Applied in order; the last present alias wins.
IRRADIANCE_FIELDS: Tuple[str, ...] = ("irradiance", "solar_irradiance", "GHI")
TEMPERATURE_FIELDS: Tuple[str, ...] = ("temperature",)
CLOUD_COVER_FIELDS: Tuple[str, ...] = ("cloud_cover",)
# Applied in order; the first present alias wins.
DEMAND_FIELDS: Tuple[str, ...] = ("ev_demand", "demand", "consumption")

RECOGNIZED_FIELDS: Tuple[str, ...] = (
    IRRADIANCE_FIELDS + TEMPERATURE_FIELDS + CLOUD_COVER_FIELDS + DEMAND_FIELDS
)


class MalformedOverrideRow(ValueError):
    """A recognised override field holds a value that is not a finite number."""

    def __init__(self, field_name: str, value: Any) -> None:
        super().__init__(f"Override field '{field_name}' is not numeric: {value!r}")
        self.field_name = field_name
        self.value = value


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return isinstance(value, float) and math.isnan(value)


def coerce_override_value(field_name: str, value: Any) -> float:
    """Return ``value`` as a finite float or raise :class:`MalformedOverrideRow`."""

    if isinstance(value, bool):
        raise MalformedOverrideRow(field_name, value)
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise MalformedOverrideRow(field_name, value) from None
    if not math.isfinite(number):
        raise MalformedOverrideRow(field_name, value)
    return number


def _resolve_last(values: Mapping[str, float], fields: Sequence[str]) -> Optional[float]:
    resolved: Optional[float] = None
    for name in fields:
        if name in values:
            resolved = values[name]
    return resolved


def _resolve_first(values: Mapping[str, float], fields: Sequence[str]) -> Optional[float]:
    for name in fields:
        if name in values:
            return values[name]
    return None


@dataclass(frozen=True)
class OverrideRow:
    """Per-hour replacement values; ``None`` means fall back to the base model."""

    irradiance: Optional[float] = None  # W/m²
    temperature: Optional[float] = None  # °C
    cloud_cover: Optional[float] = None  # %
    ev_demand: Optional[float] = None  # kW

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any], hour: Optional[int] = None) -> "OverrideRow":
        """Build a row from arbitrary keys, dropping malformed fields individually."""

        values: Dict[str, float] = {}
        for name in RECOGNIZED_FIELDS:
            if name not in row or _is_blank(row[name]):
                continue
            try:
                values[name] = coerce_override_value(name, row[name])
            except MalformedOverrideRow as exc:
                logger.warning("Skipping override field for hour %s: %s", hour, exc)

        return cls(
            irradiance=_resolve_last(values, IRRADIANCE_FIELDS),
            temperature=_resolve_last(values, TEMPERATURE_FIELDS),
            cloud_cover=_resolve_last(values, CLOUD_COVER_FIELDS),
            ev_demand=_resolve_first(values, DEMAND_FIELDS),
        )

    def is_empty(self) -> bool:
        return all(
            value is None for value in (self.irradiance, self.temperature, self.cloud_cover, self.ev_demand)
        )


def override_rows_from_records(records: Iterable[Mapping[str, Any]]) -> List[OverrideRow]:
    """Convert JSON-like records into positional override rows (index = hour)."""

    return [OverrideRow.from_mapping(record, hour=idx) for idx, record in enumerate(records)]


def override_for_hour(rows: Sequence[OverrideRow], hour: int) -> Optional[OverrideRow]:
    """Return the row for ``hour`` or ``None`` when the table is shorter than the run."""

    if 0 <= hour < len(rows):
        return rows[hour]
    return None
