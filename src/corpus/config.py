"""Static configuration for input tables and default data paths."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple, TypedDict


class AttestationColumns(TypedDict):
    id: str
    construction: str
    type: str
    category: str


# Default directories used by the Typer CLI; callers may override these.
DEFAULT_DATA_ROOT = Path("data")
DEFAULT_ATTESTATIONS_PATH = DEFAULT_DATA_ROOT / "attestations.csv"
DEFAULT_MEASUREMENTS_PATH = DEFAULT_DATA_ROOT / "productivity_measures.csv"

# ---------------------------------------------------------------------------
# Attestation table (one row per observed token).

ATTESTATION_COLUMNS: AttestationColumns = {
    "id": "id",
    "construction": "construction",
    "type": "type",
    "category": "category",
}
REQUIRED_ATTESTATION_COLUMNS: Tuple[str, ...] = tuple(ATTESTATION_COLUMNS.values())

DEFAULT_DELIMITER = ","
DEFAULT_ENCODING = "utf-8"


@dataclass(frozen=True)
class MeasurementSchema:
    """Describe the columns of a construction-level productivity table."""

    id_column: str = "construction"
    group_column: str = "group"
    outcome: str = "hapaxes"
    measures: Optional[Tuple[str, ...]] = None

    def validate(self) -> None:
        if self.id_column == self.group_column:
            raise ValueError("id_column and group_column must differ.")
        if self.measures is not None:
            if not self.measures:
                raise ValueError("measures must list at least one column when provided.")
            reserved = {self.id_column, self.group_column}
            clash = reserved.intersection(self.measures)
            if clash:
                raise ValueError(f"Measure list overlaps identifier/group columns: {', '.join(sorted(clash))}")

    def with_measures(self, measures: Sequence[str]) -> "MeasurementSchema":
        return MeasurementSchema(
            id_column=self.id_column,
            group_column=self.group_column,
            outcome=self.outcome,
            measures=tuple(measures),
        )


__all__ = [
    "ATTESTATION_COLUMNS",
    "AttestationColumns",
    "DEFAULT_ATTESTATIONS_PATH",
    "DEFAULT_DATA_ROOT",
    "DEFAULT_DELIMITER",
    "DEFAULT_ENCODING",
    "DEFAULT_MEASUREMENTS_PATH",
    "MeasurementSchema",
    "REQUIRED_ATTESTATION_COLUMNS",
]
