from .attestation import Attestation
from .config import MeasurementSchema
from .loader import (
    iter_attestations,
    load_attestations,
    load_measurements,
    validate_attestations,
    validate_measurements,
)

__all__ = [
    "Attestation",
    "MeasurementSchema",
    "iter_attestations",
    "load_attestations",
    "load_measurements",
    "validate_attestations",
    "validate_measurements",
]
