"""Central configuration for the path sharing backend.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Secrets are read from environment variables (optionally
via a local `.env`).
"""

from __future__ import annotations

import importlib
import os


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Supabase settings
# ---------------------------------------------------------------------------
# Project URL and public anon key. Do not hardcode secrets.
SUPABASE_URL = os.getenv("SUPABASE_URL", "").rstrip("/")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")

# Values shipped in the sample .env; treated the same as "not configured".
PLACEHOLDER_URLS = frozenset(
    {"https://your-project.supabase.co", "https://placeholder.supabase.co"}
)
PLACEHOLDER_KEYS = frozenset({"your-anon-key", "placeholder-key"})

# Where email magic links land after sign-in.
SUPABASE_REDIRECT_URL = os.getenv(
    "SUPABASE_REDIRECT_URL", "https://dotanddot.vercel.app"
)

# Table names in the public schema.
SHARED_PATHS_TABLE = "shared_paths"
USER_PATHS_TABLE = "user_paths"
LOCATION_REPORTS_TABLE = "location_reports"


# ---------------------------------------------------------------------------
# Sharing
# ---------------------------------------------------------------------------
# Base page used when building share links (``<base>?path=<id>``).
SHARE_BASE_URL = os.getenv("SHARE_BASE_URL", SUPABASE_REDIRECT_URL)

# Use short base-36 ids (checked for collisions before use) instead of
# 32-character uuid hex ids.
SHORT_PATH_IDS_ENABLED = _env_bool("SHORT_PATH_IDS_ENABLED", False)
SHORT_PATH_ID_LENGTH = _env_int("SHORT_PATH_ID_LENGTH", 9)

# Maximum attempts to find a free short id before giving up.
PATH_ID_MAX_ATTEMPTS = _env_int("PATH_ID_MAX_ATTEMPTS", 5)


# ---------------------------------------------------------------------------
# Local cache / migration
# ---------------------------------------------------------------------------
# JSON file holding paths and reports recorded before sign-in.
LOCAL_CACHE_FILE = os.getenv("LOCAL_CACHE_FILE", "pathshare_local_cache.json")

# Key scheme shared with the browser build (localStorage keys).
LOCAL_PATH_KEY_PREFIX = "correctit_path_"
LOCAL_REPORTS_KEY = "correctit_all_reports"


# ---------------------------------------------------------------------------
# HTTP tuning
# ---------------------------------------------------------------------------
# Request timeout in seconds.
REQUEST_TIMEOUT = _env_int("REQUEST_TIMEOUT", 15)

# HTTP session pool sizes.
HTTP_POOL_CONNECTIONS = 10
HTTP_POOL_MAXSIZE = 10

# Seconds a resolved identity stays cached per access token.
IDENTITY_CACHE_TTL_SECONDS = _env_int("IDENTITY_CACHE_TTL_SECONDS", 60)
IDENTITY_CACHE_SIZE = _env_int("IDENTITY_CACHE_SIZE", 256)


# ---------------------------------------------------------------------------
# Report export
# ---------------------------------------------------------------------------
REPORTS_EXPORT_FILE = os.getenv("REPORTS_EXPORT_FILE", "location_reports.xlsx")
EXPORT_AUTOSIZE_MAX_WIDTH = 40  # characters
EXPORT_AUTOSIZE_MIN_WIDTH = 8  # characters


def supabase_configured(url: str | None = None, key: str | None = None) -> bool:
    """Return True when real (non-placeholder) Supabase credentials are set."""

    url = SUPABASE_URL if url is None else url
    key = SUPABASE_ANON_KEY if key is None else key
    if not url or not key:
        return False
    return url.rstrip("/") not in PLACEHOLDER_URLS and key not in PLACEHOLDER_KEYS
