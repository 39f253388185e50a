"""Identifier generation for anonymous shared paths."""

from __future__ import annotations

import logging
import secrets
import string
import uuid
from typing import Callable

from .config import PATH_ID_MAX_ATTEMPTS, SHORT_PATH_ID_LENGTH
from .errors import StorageError

LOGGER = logging.getLogger(__name__)

_SHORT_ALPHABET = string.digits + string.ascii_lowercase


def new_path_id() -> str:
    """Return a 32-character hex id backed by a random uuid4 (122 random bits)."""

    return uuid.uuid4().hex


def new_short_path_id(length: int = SHORT_PATH_ID_LENGTH) -> str:
    """Return a short base-36 id; callers must check it is unused."""

    if length <= 0:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(_SHORT_ALPHABET) for _ in range(length))


def allocate_path_id(
    exists: Callable[[str], bool],
    generator: Callable[[], str] = new_short_path_id,
    attempts: int = PATH_ID_MAX_ATTEMPTS,
) -> str:
    """Draw ids from ``generator`` until ``exists`` reports one as free.

    Raises:
        StorageError: when every attempt collided with an existing id.
    """

    for attempt in range(1, max(1, attempts) + 1):
        candidate = generator()
        if not exists(candidate):
            return candidate
        LOGGER.warning("Path id collision on attempt %s; drawing again", attempt)
    raise StorageError(f"Could not allocate a free path id after {attempts} attempts")
