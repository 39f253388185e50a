"""Table access over the Supabase PostgREST endpoint.

Only the handful of statements the stores need are exposed: insert returning
the row, select filtered by equality (optionally ordered), update and delete
filtered by equality. Every call is one HTTP round trip; nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import requests

from ..config import (
    REQUEST_TIMEOUT,
    SUPABASE_ANON_KEY,
    SUPABASE_URL,
    supabase_configured,
)
from ..errors import ConfigurationError, StorageError
from ..models import Identity, Row
from .response_handling import classify_response_status, parse_json
from .session import get_default_session

LOGGER = logging.getLogger(__name__)

Filters = Mapping[str, Any]


class Table:
    """Interface shared by the HTTP-backed and in-memory tables."""

    name: str

    def insert(self, row: Row) -> Row:
        raise NotImplementedError

    def select(
        self,
        filters: Optional[Filters] = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> List[Row]:
        raise NotImplementedError

    def update(self, values: Row, filters: Filters) -> List[Row]:
        raise NotImplementedError

    def delete(self, filters: Filters) -> List[Row]:
        raise NotImplementedError

    def select_one(self, filters: Filters) -> Row | None:
        rows = self.select(filters, limit=1)
        return rows[0] if rows else None


class TableProvider:
    """Hands out tables bound to the caller's credentials."""

    def table(self, name: str, identity: Identity | None = None) -> Table:
        raise NotImplementedError


def _filter_params(filters: Optional[Filters]) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for column, value in (filters or {}).items():
        if value is None:
            params[column] = "is.null"
        else:
            params[column] = f"eq.{value}"
    return params


class PostgrestTable(Table):
    def __init__(
        self,
        name: str,
        *,
        base_url: str,
        api_key: str,
        access_token: str | None = None,
        session: requests.Session | None = None,
        timeout: int = REQUEST_TIMEOUT,
    ) -> None:
        self.name = name
        self._url = f"{base_url.rstrip('/')}/rest/v1/{name}"
        self._api_key = api_key
        self._access_token = access_token
        self._session = session or get_default_session()
        self._timeout = timeout

    def _headers(self, *, returning: bool = False) -> Dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._access_token or self._api_key}",
        }
        if returning:
            headers["Prefer"] = "return=representation"
        return headers

    def _request(
        self,
        method: str,
        context: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json_body: Any = None,
        returning: bool = False,
    ) -> List[Row]:
        try:
            response = self._session.request(
                method,
                self._url,
                headers=self._headers(returning=returning),
                params=params,
                json=json_body,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            LOGGER.error("%s transport error: %s", context, exc)
            raise StorageError(f"{context} transport failure") from exc
        error = classify_response_status(response, context)
        if error is not None:
            raise error
        data = parse_json(response, context)
        if data is None:
            return []
        if isinstance(data, dict):
            return [data]
        if not isinstance(data, list):
            raise StorageError(f"{context} returned unexpected payload")
        return data

    def insert(self, row: Row) -> Row:
        context = f"insert into {self.name}"
        rows = self._request("POST", context, json_body=row, returning=True)
        if not rows:
            raise StorageError(f"{context} returned no row")
        return rows[0]

    def select(
        self,
        filters: Optional[Filters] = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> List[Row]:
        params = {"select": "*", **_filter_params(filters)}
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        if limit is not None:
            params["limit"] = str(limit)
        return self._request("GET", f"select from {self.name}", params=params)

    def update(self, values: Row, filters: Filters) -> List[Row]:
        return self._request(
            "PATCH",
            f"update {self.name}",
            params=_filter_params(filters),
            json_body=values,
            returning=True,
        )

    def delete(self, filters: Filters) -> List[Row]:
        return self._request(
            "DELETE",
            f"delete from {self.name}",
            params=_filter_params(filters),
            returning=True,
        )


class SupabaseClient(TableProvider):
    """PostgREST tables authorised with the anon key or a user's token."""

    def __init__(
        self,
        url: str = SUPABASE_URL,
        api_key: str = SUPABASE_ANON_KEY,
        *,
        session: requests.Session | None = None,
        timeout: int = REQUEST_TIMEOUT,
    ) -> None:
        if not supabase_configured(url, api_key):
            raise ConfigurationError(
                "Supabase not configured. Set SUPABASE_URL and SUPABASE_ANON_KEY."
            )
        self.url = url.rstrip("/")
        self.api_key = api_key
        self._session = session or get_default_session()
        self._timeout = timeout

    def table(self, name: str, identity: Identity | None = None) -> Table:
        return PostgrestTable(
            name,
            base_url=self.url,
            api_key=self.api_key,
            access_token=identity.access_token if identity else None,
            session=self._session,
            timeout=self._timeout,
        )


__all__ = [
    "Filters",
    "PostgrestTable",
    "SupabaseClient",
    "Table",
    "TableProvider",
]
