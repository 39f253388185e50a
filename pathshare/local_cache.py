"""Device-local cache of paths and reports recorded before sign-in.

The cache is a flat key-value map persisted as one JSON file. It uses the same
key scheme as the browser build's localStorage so an exported localStorage
dump can be migrated directly:

* ``correctit_path_<path_id>`` holds one path (``coordinates``,
  ``userLocation``, ``vertexData``, ``createdAt``).
* ``correctit_all_reports`` holds a list of reports (``defaultLocation``,
  ``correctedLocation``, ``timestamp`` and, for reports written here, a stable
  ``clientReportId``).

Values may be stored either as objects or as JSON-encoded strings, which is
how localStorage keeps them.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .config import LOCAL_CACHE_FILE, LOCAL_PATH_KEY_PREFIX, LOCAL_REPORTS_KEY
from .identifiers import new_path_id
from .models import to_coordinates, to_latlon

_LOGGER = logging.getLogger(__name__)


def _decode(value: Any) -> Any:
    if isinstance(value, str):
        return json.loads(value)
    return value


class LocalCache:
    """JSON-file key-value store with atomic writes."""

    def __init__(self, path: str | Path = LOCAL_CACHE_FILE) -> None:
        base = Path(path)
        self.path = base if base.is_absolute() else Path.cwd() / base
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, Any]:
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except FileNotFoundError:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Local cache {self.path} is not a JSON object")
        return data

    def _write(self, payload: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(".tmp")
        with temp_path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, ensure_ascii=True, indent=2)
        temp_path.replace(self.path)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._read())

    def get(self, key: str) -> Any:
        with self._lock:
            value = self._read().get(key)
        return None if value is None else _decode(value)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------
    def save_path_locally(
        self,
        coordinates: List[Any],
        user_location: Any = None,
        vertex_data: Optional[Dict[str, Any]] = None,
    ) -> str:
        path_id = new_path_id()
        location = to_latlon(user_location)
        self.set(
            f"{LOCAL_PATH_KEY_PREFIX}{path_id}",
            {
                "coordinates": [list(p) for p in to_coordinates(coordinates)],
                "userLocation": list(location) if location else None,
                "vertexData": dict(vertex_data or {}),
                "createdAt": datetime.now(timezone.utc).isoformat(),
            },
        )
        _LOGGER.info("Path saved locally with ID: %s", path_id)
        return path_id

    def get_path_locally(self, path_id: str) -> Dict[str, Any] | None:
        data = self.get(f"{LOCAL_PATH_KEY_PREFIX}{path_id}")
        if data is None:
            _LOGGER.info("No local path found for ID: %s", path_id)
        return data

    def iter_cached_paths(self) -> Iterator[Tuple[str, str]]:
        """Yield ``(key, path_id)`` for every cached path key."""

        for key in self.keys():
            if key.startswith(LOCAL_PATH_KEY_PREFIX):
                yield key, key[len(LOCAL_PATH_KEY_PREFIX) :]

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------
    def cached_reports(self) -> List[Any]:
        reports = self.get(LOCAL_REPORTS_KEY)
        if reports is None:
            return []
        if not isinstance(reports, list):
            raise ValueError(f"{LOCAL_REPORTS_KEY} does not hold a list")
        return reports

    def append_report(
        self,
        default_location: Any,
        corrected_location: Any,
        timestamp: datetime | None = None,
    ) -> str:
        """Cache a report with a locally generated stable id and return it."""

        client_report_id = str(uuid.uuid4())
        with self._lock:
            data = self._read()
            reports = _decode(data.get(LOCAL_REPORTS_KEY)) or []
            reports.append(
                {
                    "clientReportId": client_report_id,
                    "defaultLocation": list(to_latlon(default_location)),
                    "correctedLocation": list(to_latlon(corrected_location)),
                    "timestamp": (timestamp or datetime.now(timezone.utc)).isoformat(),
                }
            )
            data[LOCAL_REPORTS_KEY] = reports
            self._write(data)
        return client_report_id


__all__ = ["LocalCache"]
