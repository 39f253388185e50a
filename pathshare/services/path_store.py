"""Shared and user path persistence.

Shared paths are anonymous and addressed by an opaque ``path_id``. User paths
belong to one identity; every read, update, delete and share filters on the
caller's ``user_id`` as well as the row id, and an owner mismatch is reported
as ``UnauthorizedError`` without touching the row.

Updates are last-write-wins: no version token is exchanged, so two concurrent
updates to the same user path may overwrite each other.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.parse import urlencode

from ..config import (
    PATH_ID_MAX_ATTEMPTS,
    SHARE_BASE_URL,
    SHARED_PATHS_TABLE,
    SHORT_PATH_IDS_ENABLED,
    USER_PATHS_TABLE,
)
from ..errors import NotFoundError, UnauthorizedError, ValidationError
from ..identifiers import allocate_path_id, new_path_id, new_short_path_id
from ..models import (
    Identity,
    LatLon,
    SharedPath,
    UserPath,
    UserPathUpdate,
    to_coordinates,
    to_latlon,
)
from ..supabase_client.tables import Table, TableProvider


def share_url(path_id: str, base_url: str | None = None) -> str:
    """Return the public link for a shared path (``<base>?path=<id>``)."""

    base = (base_url or SHARE_BASE_URL).rstrip("?")
    separator = "&" if "?" in base else "?"
    return f"{base}{separator}{urlencode({'path': path_id})}"


@dataclass(slots=True)
class PathStoreConfig:
    id_generator: Callable[[], str] | None = None
    short_ids: bool = SHORT_PATH_IDS_ENABLED
    id_attempts: int = PATH_ID_MAX_ATTEMPTS
    logger: logging.Logger | None = None


def _require_identity(identity: Identity | None, action: str) -> Identity:
    if identity is None:
        raise UnauthorizedError(f"User must be authenticated to {action}")
    return identity


def _require_coordinates(coordinates: Sequence[Any]) -> List[LatLon]:
    try:
        points = to_coordinates(coordinates)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid path coordinates: {exc}") from exc
    if not points:
        raise ValidationError("A path needs at least one coordinate")
    return points


def _require_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Path name is required")
    return name


class PathStore:
    def __init__(
        self,
        client: TableProvider,
        config: PathStoreConfig | None = None,
    ) -> None:
        self._client = client
        self.config = config or PathStoreConfig()
        self._log = self.config.logger or logging.getLogger(self.__class__.__name__)

    def _shared(self, identity: Identity | None = None) -> Table:
        return self._client.table(SHARED_PATHS_TABLE, identity)

    def _user_paths(self, identity: Identity) -> Table:
        return self._client.table(USER_PATHS_TABLE, identity)

    def _next_path_id(self, table: Table) -> str:
        if self.config.id_generator is not None:
            generator = self.config.id_generator
        elif self.config.short_ids:
            generator = new_short_path_id
        else:
            return new_path_id()
        return allocate_path_id(
            lambda candidate: table.select_one({"path_id": candidate}) is not None,
            generator,
            self.config.id_attempts,
        )

    # ------------------------------------------------------------------
    # Shared paths
    # ------------------------------------------------------------------
    def save_shared_path(
        self,
        coordinates: Sequence[Any],
        user_location: Any = None,
        vertex_data: Optional[Dict[str, Any]] = None,
        *,
        source_user_path_id: str | None = None,
        identity: Identity | None = None,
    ) -> str:
        """Persist an anonymous path and return its id.

        Raises:
            ValidationError: no coordinates were given.
            StorageError: the insert did not succeed; no id is returned.
        """

        points = _require_coordinates(coordinates)
        table = self._shared(identity)
        path = SharedPath(
            path_id=self._next_path_id(table),
            coordinates=points,
            user_location=to_latlon(user_location),
            vertex_data=copy.deepcopy(dict(vertex_data or {})),
            source_user_path_id=source_user_path_id,
        )
        table.insert(path.to_row())
        self._log.info("Path saved with ID: %s (%d points)", path.path_id, len(points))
        return path.path_id

    def import_shared_path(
        self,
        path_id: str,
        coordinates: Sequence[Any],
        user_location: Any = None,
        vertex_data: Optional[Dict[str, Any]] = None,
        *,
        identity: Identity | None = None,
    ) -> None:
        """Insert a shared path under an id that was assigned elsewhere."""

        if not path_id:
            raise ValidationError("A path id is required")
        path = SharedPath(
            path_id=path_id,
            coordinates=_require_coordinates(coordinates),
            user_location=to_latlon(user_location),
            vertex_data=copy.deepcopy(dict(vertex_data or {})),
        )
        self._shared(identity).insert(path.to_row())

    def get_shared_path(self, path_id: str) -> SharedPath | None:
        """Return the shared path, or None when no row has ``path_id``."""

        if not path_id:
            return None
        row = self._shared().select_one({"path_id": path_id})
        if row is None:
            self._log.info("No path found for ID: %s", path_id)
            return None
        return SharedPath.from_row(row)

    # ------------------------------------------------------------------
    # User paths
    # ------------------------------------------------------------------
    def save_user_path(
        self,
        identity: Identity | None,
        name: str,
        coordinates: Sequence[Any],
        description: str | None = None,
        vertex_data: Optional[Dict[str, Any]] = None,
        user_location: Any = None,
    ) -> str:
        caller = _require_identity(identity, "save paths")
        location = to_latlon(user_location)
        row = {
            "user_id": caller.user_id,
            "name": _require_name(name),
            "description": description or "",
            "coordinates": [list(p) for p in _require_coordinates(coordinates)],
            "vertex_data": copy.deepcopy(dict(vertex_data or {})),
            "user_location": list(location) if location is not None else None,
        }
        stored = self._user_paths(caller).insert(row)
        self._log.info("User path saved with ID: %s", stored["id"])
        return str(stored["id"])

    def list_user_paths(self, identity: Identity | None) -> List[UserPath]:
        """Caller's paths, newest first; empty when nobody is signed in."""

        if identity is None:
            return []
        rows = self._user_paths(identity).select(
            {"user_id": identity.user_id}, order_by="created_at", descending=True
        )
        self._log.debug("Retrieved %d user paths", len(rows))
        return [UserPath.from_row(row) for row in rows]

    def get_user_path(
        self, identity: Identity | None, user_path_id: str
    ) -> UserPath | None:
        if identity is None:
            return None
        row = self._user_paths(identity).select_one(
            {"id": user_path_id, "user_id": identity.user_id}
        )
        return UserPath.from_row(row) if row is not None else None

    def _owned_row(
        self, table: Table, caller: Identity, user_path_id: str
    ) -> Dict[str, Any] | None:
        """Return the row when it exists and is owned by ``caller``, else None.

        Raises UnauthorizedError when the row belongs to someone else. With
        row level security on, another user's row is invisible and this falls
        through to "missing".
        """

        row = table.select_one({"id": user_path_id})
        if row is None:
            return None
        if str(row.get("user_id")) != caller.user_id:
            self._log.warning(
                "User %s denied access to path %s", caller.user_id, user_path_id
            )
            raise UnauthorizedError("Path not found or access denied")
        return row

    def update_user_path(
        self,
        identity: Identity | None,
        user_path_id: str,
        update: UserPathUpdate,
    ) -> None:
        caller = _require_identity(identity, "update paths")
        table = self._user_paths(caller)
        if self._owned_row(table, caller, user_path_id) is None:
            raise NotFoundError(f"User path {user_path_id} not found")
        values = update.to_row()
        if "name" in values:
            _require_name(values["name"])
        if "coordinates" in values and not values["coordinates"]:
            raise ValidationError("A path needs at least one coordinate")
        if not values:
            self._log.debug("Nothing to update for path %s", user_path_id)
            return
        updated = table.update(values, {"id": user_path_id, "user_id": caller.user_id})
        if not updated:
            raise NotFoundError(f"User path {user_path_id} not found")
        self._log.info(
            "User path updated with ID: %s fields=%s", user_path_id, sorted(values)
        )

    def delete_user_path(self, identity: Identity | None, user_path_id: str) -> None:
        """Delete the caller's path; deleting a missing path is not an error."""

        caller = _require_identity(identity, "delete paths")
        table = self._user_paths(caller)
        if self._owned_row(table, caller, user_path_id) is None:
            self._log.debug("User path %s already absent", user_path_id)
            return
        table.delete({"id": user_path_id, "user_id": caller.user_id})
        self._log.info("User path deleted with ID: %s", user_path_id)

    def share_user_path(self, identity: Identity | None, user_path_id: str) -> str:
        """Copy the caller's path into a new shared path and return its id.

        The shared copy is a snapshot: later edits or deletion of the user
        path leave it untouched.
        """

        caller = _require_identity(identity, "share paths")
        table = self._user_paths(caller)
        row = self._owned_row(table, caller, user_path_id)
        if row is None:
            raise NotFoundError("Path not found or access denied")
        user_path = UserPath.from_row(row)
        path_id = self.save_shared_path(
            list(user_path.coordinates),
            user_location=user_path.user_location,
            vertex_data=user_path.vertex_data,
            source_user_path_id=user_path.id,
            identity=caller,
        )
        self._log.info("Shared path created with ID: %s", path_id)
        return path_id


__all__ = ["PathStore", "PathStoreConfig", "share_url"]
