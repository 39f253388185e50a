"""Central error types used across the application."""

from __future__ import annotations


class PathShareError(RuntimeError):
    """Base error for path and report persistence failures."""


class NotFoundError(PathShareError):
    """Raised when a lookup by id or ownership matches no row."""


class UnauthorizedError(PathShareError):
    """Raised when the caller identity is missing or does not own the row."""


class ValidationError(PathShareError):
    """Raised when a required field is missing or empty."""


class StorageError(PathShareError):
    """Raised when the durable store rejects or fails an operation."""


class IdentityProviderError(PathShareError):
    """Raised when the identity lookup itself fails (not just "signed out")."""


class ConfigurationError(PathShareError):
    """Raised when Supabase credentials are missing or still placeholders."""


__all__ = [
    "PathShareError",
    "NotFoundError",
    "UnauthorizedError",
    "ValidationError",
    "StorageError",
    "IdentityProviderError",
    "ConfigurationError",
]
