"""Dataclasses for shared paths, user paths and location reports.

Rows travel to and from the store as plain dicts using the column names of the
Supabase tables; ``from_row`` / ``to_row`` are the only places that know about
those names.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .errors import ValidationError

LatLon = Tuple[float, float]
Row = Dict[str, Any]


class _Unset:
    """Marker for "field not part of this partial update"."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def to_latlon(value: Any) -> LatLon | None:
    """Coerce ``[lat, lon]`` / ``{"lat", "lng"}`` payloads into a tuple."""

    if value is None:
        return None
    if isinstance(value, dict):
        lat = value.get("lat")
        lon = value.get("lng", value.get("lon"))
        if lat is None or lon is None:
            return None
        return (float(lat), float(lon))
    lat, lon = value
    return (float(lat), float(lon))


def to_coordinates(values: Sequence[Any] | None) -> List[LatLon]:
    """Convert every point, raising ValueError for one without lat/lng."""

    points: List[LatLon] = []
    for index, value in enumerate(values or []):
        point = to_latlon(value)
        if point is None:
            raise ValueError(f"coordinate {index} has no usable lat/lng: {value!r}")
        points.append(point)
    return points


def _coords_json(coordinates: Sequence[LatLon]) -> List[List[float]]:
    return [[lat, lon] for lat, lon in coordinates]


def _point_json(point: LatLon | None) -> List[float] | None:
    return None if point is None else [point[0], point[1]]


def parse_timestamp(value: Any) -> datetime | None:
    """Parse ISO-8601 strings from PostgREST (``Z`` suffix included)."""

    if value is None or isinstance(value, datetime):
        return value
    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime | None) -> str | None:
    """ISO-8601 in UTC so stored timestamps sort as text."""

    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, resolved once per request at the boundary."""

    user_id: str
    email: str | None = None
    access_token: str | None = field(default=None, repr=False, compare=False)


@dataclass
class SharedPath:
    path_id: str
    coordinates: List[LatLon]
    user_location: LatLon | None = None
    vertex_data: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    source_user_path_id: str | None = None

    @classmethod
    def from_row(cls, row: Row) -> "SharedPath":
        return cls(
            path_id=str(row["path_id"]),
            coordinates=to_coordinates(row.get("coordinates")),
            user_location=to_latlon(row.get("user_location")),
            vertex_data=dict(row.get("vertex_data") or {}),
            created_at=parse_timestamp(row.get("created_at")),
            source_user_path_id=row.get("source_user_path_id"),
        )

    def to_row(self) -> Row:
        row: Row = {
            "path_id": self.path_id,
            "coordinates": _coords_json(self.coordinates),
            "vertex_data": self.vertex_data,
            "user_location": _point_json(self.user_location),
        }
        if self.source_user_path_id is not None:
            row["source_user_path_id"] = self.source_user_path_id
        return row


@dataclass
class UserPath:
    id: str
    owner_id: str
    name: str
    coordinates: List[LatLon]
    description: str = ""
    vertex_data: Dict[str, Any] = field(default_factory=dict)
    user_location: LatLon | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Row) -> "UserPath":
        return cls(
            id=str(row["id"]),
            owner_id=str(row["user_id"]),
            name=row.get("name") or "",
            description=row.get("description") or "",
            coordinates=to_coordinates(row.get("coordinates")),
            vertex_data=dict(row.get("vertex_data") or {}),
            user_location=to_latlon(row.get("user_location")),
            created_at=parse_timestamp(row.get("created_at")),
        )


@dataclass
class UserPathUpdate:
    """Partial update; fields left as ``UNSET`` are not written.

    An explicit ``""`` description or ``{}`` vertex data is a real update,
    unlike a truthiness check which would drop it.
    """

    name: Any = UNSET
    description: Any = UNSET
    coordinates: Any = UNSET
    vertex_data: Any = UNSET
    user_location: Any = UNSET

    def present_fields(self) -> Dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    def to_row(self) -> Row:
        row: Row = {}
        for name, value in self.present_fields().items():
            if name == "coordinates":
                try:
                    row["coordinates"] = _coords_json(to_coordinates(value))
                except (TypeError, ValueError) as exc:
                    raise ValidationError(f"Invalid path coordinates: {exc}") from exc
            elif name == "user_location":
                row["user_location"] = _point_json(to_latlon(value))
            elif name == "description":
                row["description"] = value if value is not None else ""
            elif name == "vertex_data":
                row["vertex_data"] = dict(value or {})
            else:
                row[name] = value
        return row


@dataclass
class LocationReport:
    default_location: LatLon
    corrected_location: LatLon
    timestamp: datetime
    id: str | None = None
    reporter_id: str | None = None
    client_report_id: str | None = None

    @classmethod
    def from_row(cls, row: Row) -> "LocationReport":
        default = to_latlon(row.get("default_location"))
        corrected = to_latlon(row.get("corrected_location"))
        if default is None or corrected is None:
            raise ValueError("location report row is missing a location")
        timestamp = parse_timestamp(row.get("timestamp"))
        if timestamp is None:
            raise ValueError("location report row is missing a timestamp")
        return cls(
            id=None if row.get("id") is None else str(row["id"]),
            reporter_id=row.get("user_id"),
            default_location=default,
            corrected_location=corrected,
            timestamp=timestamp,
            client_report_id=row.get("client_report_id"),
        )

    def to_row(self) -> Row:
        return {
            "user_id": self.reporter_id,
            "default_location": _point_json(self.default_location),
            "corrected_location": _point_json(self.corrected_location),
            "timestamp": format_timestamp(self.timestamp),
            "client_report_id": self.client_report_id,
        }


@dataclass(frozen=True)
class AccuracyStatistics:
    count: int
    average_error_meters: float
    max_error_meters: float
