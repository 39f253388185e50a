"""HTTP session factory for Supabase REST and auth calls."""

from __future__ import annotations

import requests
from requests import Session
from requests.adapters import HTTPAdapter

from ..config import HTTP_POOL_CONNECTIONS, HTTP_POOL_MAXSIZE

__all__ = ["create_default_session", "get_default_session"]


def create_default_session() -> Session:
    # A failed call surfaces to the caller straight away; nothing is retried.
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=HTTP_POOL_CONNECTIONS,
        pool_maxsize=HTTP_POOL_MAXSIZE,
        max_retries=0,
    )
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update(
        {
            "Accept-Encoding": "gzip, deflate",
            "Accept": "application/json",
        }
    )
    return session


_DEFAULT_SESSION = create_default_session()


def get_default_session() -> Session:
    """Return the shared default Supabase session."""

    return _DEFAULT_SESSION
