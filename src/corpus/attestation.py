from dataclasses import dataclass


@dataclass(frozen=True)
class Attestation:
    """Single observed token of a construction slot."""

    id: str
    construction: str
    type: str
    category: str
