"""Input parsing utilities for per-hour override tables."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional

import pandas as pd

from services.override_rows import RECOGNIZED_FIELDS, OverrideRow, override_rows_from_records

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = (".xlsx", ".xls")


def _candidate_suffix(candidate: Any) -> str:
    name = getattr(candidate, "name", None) or (candidate if isinstance(candidate, (str, Path)) else "")
    return Path(str(name)).suffix.lower()


def _read_table(candidate: Any) -> pd.DataFrame:
    if _candidate_suffix(candidate) in EXCEL_SUFFIXES:
        return pd.read_excel(candidate)
    return pd.read_csv(candidate)


def clean_override_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Keep recognised columns only, in file order, one row per hour.

    Values are left as read so malformed cells can be reported per field when
    rows are built; fully empty rows stay in place to preserve hour positions.
    """

    df = df.rename(columns=lambda col: str(col).strip())
    recognised = [col for col in df.columns if col in RECOGNIZED_FIELDS]
    if not recognised:
        raise ValueError(f"Table must contain at least one of: {', '.join(RECOGNIZED_FIELDS)}")

    ignored = [col for col in df.columns if col not in RECOGNIZED_FIELDS]
    if ignored:
        logger.info("Ignoring unrecognised override columns: %s", ignored)

    return df[recognised].reset_index(drop=True)


def override_rows_from_frame(df: pd.DataFrame) -> List[OverrideRow]:
    """Convert a cleaned table into positional override rows."""

    cleaned = clean_override_frame(df)
    records = cleaned.astype(object).where(cleaned.notna(), None).to_dict(orient="records")
    rows = override_rows_from_records(records)
    empty_rows = sum(1 for row in rows if row.is_empty())
    if empty_rows:
        logger.warning("%d override rows carry no usable values; base model applies to those hours.", empty_rows)
    return rows


def read_override_table(path_candidates: List[Any], limit: Optional[int] = None) -> List[OverrideRow]:
    """Read the first readable CSV/Excel candidate into override rows.

    ``limit`` truncates the table to the run duration when provided.
    """

    last_err = None
    for candidate in path_candidates:
        try:
            df = _read_table(candidate)
            if limit is not None:
                df = df.head(limit)
            return override_rows_from_frame(df)
        except Exception as e:  # pragma: no cover - errors handled via last_err
            last_err = e
            if hasattr(candidate, "seek"):
                candidate.seek(0)
    raise RuntimeError(
        "Failed to read override table. "
        f"Looked for: {path_candidates}. Last error: {last_err}"
    )
