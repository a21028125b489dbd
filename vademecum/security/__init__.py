"""
Vademecum Security Module

Input validation and sanitization for the query and ingestion surfaces.
"""

from vademecum.security.input_validation import (
    InvalidInputError,
    MedicationListRequest,
    validate_limit,
    validate_medication_names,
    validate_query,
)

__all__ = [
    "InvalidInputError",
    "MedicationListRequest",
    "validate_limit",
    "validate_medication_names",
    "validate_query",
]
