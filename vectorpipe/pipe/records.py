"""Decoding and validation of vector records read from the pipe.

Wire format: one JSON object per line, mapping field names to arrays of
numbers. Only the ``vector`` field is interpreted.
"""

import json
from enum import Enum
from typing import Dict, List, Optional, Sequence

import numpy as np
from pydantic import TypeAdapter, ValidationError

VECTOR_FIELD = "vector"

VectorRecord = Dict[str, List[float]]

_record_adapter = TypeAdapter(VectorRecord)


class RecordParseError(ValueError):
    """A line is not a JSON object of number arrays."""


class ValidationOutcome(Enum):
    """Per-line outcome reported by the consumer loop."""
    VALID = "valid"
    INVALID = "invalid"
    NO_VECTOR = "no_vector"
    PARSE_ERROR = "parse_error"
    READ_ERROR = "read_error"


def parse_record(line: str) -> VectorRecord:
    """Decode one line into a ``VectorRecord``.

    ``Infinity``, ``-Infinity`` and ``NaN`` literals are accepted so that
    non-finite components reach the validator instead of failing here.
    Values are validated strictly: strings and booleans are not coerced.
    Over-deep nesting and integers past the interpreter's digit limit are
    parse errors too.
    """
    try:
        payload = json.loads(line)
    except (ValueError, RecursionError) as e:
        raise RecordParseError(f"Invalid JSON: {e}") from e

    try:
        return _record_adapter.validate_python(payload, strict=True)
    except ValidationError as e:
        raise RecordParseError(
            f"Expected an object of number arrays ({e.error_count()} errors)"
        ) from e


def extract_vector(record: VectorRecord) -> Optional[List[float]]:
    """Return the ``vector`` field of a record, or None if absent."""
    return record.get(VECTOR_FIELD)


def is_valid_vector(vector: Sequence[float]) -> bool:
    """True iff every component is finite (neither infinite nor NaN)."""
    return bool(np.isfinite(np.asarray(vector, dtype=np.float64)).all())
