"""Shared HTTP response helpers for Supabase (PostgREST / GoTrue) calls."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from ..errors import PathShareError, StorageError, UnauthorizedError

LOGGER = logging.getLogger(__name__)

__all__ = [
    "classify_response_status",
    "extract_error",
    "parse_json",
]


def classify_response_status(
    response: requests.Response,
    context: str,
) -> Optional[PathShareError]:
    """Return the error matching a non-success status, or None when it succeeded.

    PostgREST answers an unmatched filter with an empty list, so a 404 here
    means the table or endpoint is missing and is reported as a storage
    failure rather than a row lookup miss.
    """

    status = response.status_code
    if status < 400:
        return None
    detail = extract_error(response)

    def with_detail(message: str) -> str:
        return f"{message} | {detail}" if detail else message

    if status in (401, 403):
        message = with_detail(f"{context} rejected (status {status})")
        LOGGER.warning(message)
        return UnauthorizedError(message)

    message = with_detail(f"{context} failed (status {status})")
    LOGGER.error(message)
    return StorageError(message)


def parse_json(response: requests.Response, context: str) -> Any:
    """Decode a success body, raising StorageError when it is not JSON."""

    if not response.content:
        return None
    try:
        return response.json()
    except (ValueError, requests.exceptions.JSONDecodeError) as exc:
        LOGGER.error("%s returned invalid JSON: %s", context, exc)
        raise StorageError(f"{context} returned invalid JSON") from exc


def extract_error(resp: Optional[requests.Response]) -> Optional[str]:
    """Return compact string with PostgREST/GoTrue error info if present."""

    if resp is None:
        return None
    data = _safe_json(resp)
    if data is None:
        return _extract_error_text(resp)
    if not isinstance(data, dict):
        return None
    parts = _collect_error_parts(data)
    return " | ".join(parts) if parts else None


def _safe_json(resp: requests.Response) -> Optional[Any]:
    """Safely parse JSON; return None if parsing fails."""

    try:
        return resp.json()
    except (
        ValueError,
        requests.exceptions.JSONDecodeError,
    ) as exc:  # pragma: no cover - logging path
        LOGGER.debug(
            "Failed to decode JSON from %s: %s", getattr(resp, "url", "?"), exc
        )
        return None


def _extract_error_text(resp: requests.Response) -> Optional[str]:
    """Best-effort plain-text extraction when JSON parsing fails."""

    text = getattr(resp, "text", "")
    if not isinstance(text, str):
        return None
    trimmed = text.strip()
    if not trimmed:
        return None
    return (trimmed[:297] + "...") if len(trimmed) > 300 else trimmed


def _collect_error_parts(data: Dict[str, Any]) -> List[str]:
    """Build error snippets from PostgREST (message/code/details/hint) or
    GoTrue (msg/error_description) payloads."""

    parts: List[str] = []
    for key in ("message", "msg", "error_description"):
        value = data.get(key)
        if value:
            parts.append(str(value))
            break
    code = data.get("code") or data.get("error_code")
    if code:
        parts.append(f"code={code}")
    for key in ("details", "hint"):
        value = data.get(key)
        if value:
            parts.append(f"{key}={value}")
    return parts
