"""General utility helpers shared across modules."""

from __future__ import annotations

import json
from datetime import datetime, date
from decimal import Decimal
from hashlib import sha256
from typing import Any


def mask_token(value: str | None, visible: int = 4) -> str:
    """Mask all but the last ``visible`` characters of a secret for logging."""

    if not value:
        return ""
    tail = value[-visible:]
    return f"****{tail}" if len(value) > visible else "****" + tail


def _normalise_value(value: Any) -> Any:
    """Convert objects to JSON-friendly representations."""

    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="ignore")
    if isinstance(value, set):
        return sorted(_normalise_value(item) for item in value)
    if isinstance(value, (list, tuple)):
        return [_normalise_value(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _normalise_value(val) for key, val in value.items()}
    return value


def json_dumps_sorted(value: Any) -> str:
    """Return canonical JSON for hashing / comparisons."""

    normalised = _normalise_value(value)
    return json.dumps(normalised, sort_keys=True, separators=(",", ":"))


def content_hash(value: Any) -> str:
    """Stable sha256 hex digest of ``value``'s canonical JSON form."""

    return sha256(json_dumps_sorted(value).encode("utf-8")).hexdigest()
