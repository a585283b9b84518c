from __future__ import annotations

from typing import Any, List, Mapping, Sequence

import pandas as pd

from .attestation import Attestation

MAX_REPORTED_ROWS = 10


def require_columns(frame: pd.DataFrame, columns: Sequence[str], *, source: str) -> None:
    """Raise if any of `columns` is absent from `frame`."""
    missing = [column for column in columns if column not in frame.columns]
    if missing:
        present = ", ".join(str(column) for column in frame.columns) or "<none>"
        raise ValueError(
            f"{source}: missing required column(s) {', '.join(missing)} (found: {present})"
        )


def blank_rows(frame: pd.DataFrame, column: str) -> List[int]:
    """Return 1-based data row numbers where `column` is missing or whitespace-only."""
    values = frame[column]
    blank = values.isna() | values.astype(str).str.strip().eq("")
    return [int(pos) + 1 for pos in blank.to_numpy().nonzero()[0]]


def format_rows(rows: Sequence[int]) -> str:
    """Render row numbers for error messages, truncating long lists."""
    shown = ", ".join(str(row) for row in rows[:MAX_REPORTED_ROWS])
    if len(rows) > MAX_REPORTED_ROWS:
        shown += f", ... ({len(rows)} rows total)"
    return shown


def row_to_attestation(row: Mapping[str, Any]) -> Attestation:
    """Build an Attestation from a validated table row."""
    return Attestation(
        id=str(row["id"]),
        construction=str(row["construction"]),
        type=str(row["type"]),
        category=str(row["category"]),
    )
