"""JSON record codec shared by every backend."""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict

from manifest_garden.core.exceptions import GardenInfrastructureException


class RecordDecodeError(GardenInfrastructureException):
    """Raised when a stored record is not valid JSON."""

    def __init__(self, key: str, original_error: Exception) -> None:
        super().__init__(
            f"Stored record '{key}' could not be decoded: {original_error}",
            details={"key": key, "error_type": type(original_error).__name__},
            error_code="RECORD_DECODE_ERROR",
        )


def _default(value: Any) -> Any:
    # Money stays exact: Decimals round-trip as strings
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_record(record: Dict[str, Any]) -> bytes:
    return json.dumps(record, default=_default, sort_keys=True, separators=(",", ":")).encode("utf-8")


def decode_record(key: str, raw: bytes) -> Any:
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise RecordDecodeError(key, e) from e
