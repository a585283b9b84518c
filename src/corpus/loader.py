from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Optional

import pandas as pd

from .attestation import Attestation
from .config import (
    DEFAULT_DELIMITER,
    DEFAULT_ENCODING,
    REQUIRED_ATTESTATION_COLUMNS,
    MeasurementSchema,
)
from .helpers import blank_rows, format_rows, require_columns, row_to_attestation


def _read_table(path: Path, delimiter: str, encoding: str, *, as_text: bool) -> pd.DataFrame:
    try:
        frame = pd.read_csv(
            path,
            sep=delimiter,
            encoding=encoding,
            skipinitialspace=True,
            dtype=str if as_text else None,
            keep_default_na=not as_text,
        )
    except pd.errors.ParserError as exc:
        raise ValueError(f"{path}: malformed delimited text ({exc})") from exc
    except pd.errors.EmptyDataError as exc:
        raise ValueError(f"{path}: file is empty or has no header row") from exc
    frame.columns = [str(column).strip() for column in frame.columns]
    return frame


def validate_attestations(frame: pd.DataFrame, *, source: str = "attestations") -> pd.DataFrame:
    """Check the required columns and trim every required field.

    Rows with a blank required field abort validation; type labels are kept
    verbatim otherwise (they are free-form, so "NA" is a legitimate label).
    """
    require_columns(frame, REQUIRED_ATTESTATION_COLUMNS, source=source)

    cleaned = frame.copy()
    for column in REQUIRED_ATTESTATION_COLUMNS:
        rows = blank_rows(cleaned, column)
        if rows:
            raise ValueError(f"{source}: column '{column}' is empty in row(s) {format_rows(rows)}")
        cleaned[column] = cleaned[column].astype(str).str.strip()
    return cleaned.reset_index(drop=True)


def load_attestations(
    path: Path,
    delimiter: str = DEFAULT_DELIMITER,
    encoding: str = DEFAULT_ENCODING,
) -> pd.DataFrame:
    """Load an attestation table (one token per row) in file order."""
    frame = _read_table(path, delimiter, encoding, as_text=True)
    return validate_attestations(frame, source=str(path))


def iter_attestations(
    path: Path,
    delimiter: str = DEFAULT_DELIMITER,
    encoding: str = DEFAULT_ENCODING,
) -> Iterator[Attestation]:
    """Yield Attestation records from a delimited attestation table."""
    frame = load_attestations(path, delimiter=delimiter, encoding=encoding)
    for row in frame.to_dict(orient="records"):
        yield row_to_attestation(row)


def validate_measurements(
    frame: pd.DataFrame,
    schema: Optional[MeasurementSchema] = None,
    *,
    source: str = "measurements",
) -> pd.DataFrame:
    """Return the measurement table indexed by construction with numeric measure columns."""
    layout = schema or MeasurementSchema()
    layout.validate()
    require_columns(frame, [layout.id_column, layout.group_column], source=source)

    if layout.measures is not None:
        require_columns(frame, layout.measures, source=source)
        measures: List[str] = list(layout.measures)
    else:
        measures = [column for column in frame.columns if column not in (layout.id_column, layout.group_column)]
    if not measures:
        raise ValueError(f"{source}: no measure columns besides '{layout.id_column}' and '{layout.group_column}'")

    for column in (layout.id_column, layout.group_column):
        rows = blank_rows(frame, column)
        if rows:
            raise ValueError(f"{source}: column '{column}' is empty in row(s) {format_rows(rows)}")

    ids = frame[layout.id_column].astype(str).str.strip()
    duplicated = ids[ids.duplicated()].unique().tolist()
    if duplicated:
        raise ValueError(f"{source}: duplicate construction identifier(s) {', '.join(duplicated)}")

    table = pd.DataFrame(index=pd.Index(ids, name=layout.id_column))
    for column in measures:
        numeric = pd.to_numeric(frame[column], errors="coerce")
        bad = [int(pos) + 1 for pos in numeric.isna().to_numpy().nonzero()[0]]
        if bad:
            raise ValueError(f"{source}: column '{column}' has missing or non-numeric values in row(s) {format_rows(bad)}")
        table[column] = numeric.to_numpy(dtype=float)
    table[layout.group_column] = pd.Categorical(frame[layout.group_column].astype(str).str.strip().to_numpy())
    return table


def load_measurements(
    path: Path,
    schema: Optional[MeasurementSchema] = None,
    delimiter: str = DEFAULT_DELIMITER,
    encoding: str = DEFAULT_ENCODING,
) -> pd.DataFrame:
    """Load a construction-level productivity table."""
    frame = _read_table(path, delimiter, encoding, as_text=False)
    return validate_measurements(frame, schema, source=str(path))
