"""
Input Validation for Vademecum

Validates caller input before any embedding or store call:
- Minimum query length for semantic search
- Minimum number of medications for interaction checks and context
- Control-character stripping on free-text names
"""

import logging
import re

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 500
MAX_SEARCH_LIMIT = 50
MAX_MEDICATIONS = 20

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


class InvalidInputError(ValueError):
    """Caller input rejected before any downstream call."""


def sanitize(text: str) -> str:
    """Strip control characters and surrounding whitespace."""
    return _CONTROL_CHARS.sub("", text).strip()


def validate_query(query: str, min_length: int) -> str:
    """Return the sanitized query or raise InvalidInputError."""
    query = sanitize(query or "")
    if len(query) < min_length:
        raise InvalidInputError(f"Query must be at least {min_length} characters")
    if len(query) > MAX_QUERY_LENGTH:
        raise InvalidInputError(f"Query must be at most {MAX_QUERY_LENGTH} characters")
    return query


def validate_limit(limit: int) -> int:
    if limit < 1 or limit > MAX_SEARCH_LIMIT:
        raise InvalidInputError(f"limit must be between 1 and {MAX_SEARCH_LIMIT}")
    return limit


def validate_medication_names(names: list[str] | None, minimum: int) -> list[str]:
    """Sanitize names, drop blanks, and enforce the minimum count."""
    cleaned = [sanitize(n) for n in (names or []) if isinstance(n, str)]
    cleaned = [n for n in cleaned if n]
    if len(cleaned) < minimum:
        noun = "medication" if minimum == 1 else "medications"
        raise InvalidInputError(f"At least {minimum} {noun} required")
    if len(cleaned) > MAX_MEDICATIONS:
        raise InvalidInputError(f"At most {MAX_MEDICATIONS} medications allowed")
    return cleaned


class MedicationListRequest(BaseModel):
    """Body of the interaction-check and context endpoints."""

    medicamentos: list[str] = Field(default_factory=list)
