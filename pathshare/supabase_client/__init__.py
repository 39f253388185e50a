"""Supabase client components (session, tables, auth)."""

from .auth import SupabaseAuth  # noqa: F401
from .memory import MemoryClient, MemoryTable  # noqa: F401
from .session import create_default_session, get_default_session  # noqa: F401
from .tables import PostgrestTable, SupabaseClient, Table, TableProvider  # noqa: F401
