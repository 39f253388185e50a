"""Global pytest fixtures & helpers.

Adds project root to path and provides memory-backed stores plus a couple of
signed-in identities so store, migration and CLI tests share one setup.
"""
from __future__ import annotations

import os
import sys
from datetime import datetime, timezone

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from pathshare.local_cache import LocalCache
from pathshare.models import Identity, LocationReport
from pathshare.services import AccuracyReportStore, MigrationService, PathStore
from pathshare.supabase_client import MemoryClient


# --- Factory helpers -------------------------------------------------
DELHI = (28.6139, 77.2090)
KOLKATA = (22.5726, 88.3639)


def make_report(default, corrected, iso="2025-01-01T10:00:00+00:00", report_id=None):
    return LocationReport(
        id=report_id,
        default_location=default,
        corrected_location=corrected,
        timestamp=datetime.fromisoformat(iso).astimezone(timezone.utc),
    )


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def memory_client():
    return MemoryClient()


@pytest.fixture
def path_store(memory_client):
    return PathStore(memory_client)


@pytest.fixture
def report_store(memory_client):
    return AccuracyReportStore(memory_client)


@pytest.fixture
def alice():
    return Identity(user_id="user-alice", email="alice@example.com", access_token="tok-a")


@pytest.fixture
def bob():
    return Identity(user_id="user-bob", email="bob@example.com", access_token="tok-b")


@pytest.fixture
def local_cache(tmp_path):
    return LocalCache(tmp_path / "cache.json")


@pytest.fixture
def migration_service(local_cache, path_store, report_store):
    return MigrationService(local_cache, path_store, report_store)


@pytest.fixture
def report_factory():
    return make_report


@pytest.fixture
def sample_path():
    return [DELHI, (28.6150, 77.2100), (28.6162, 77.2125)]
