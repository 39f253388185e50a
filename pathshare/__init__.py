"""Shareable path and location accuracy report backend."""

from .errors import (
    IdentityProviderError,
    NotFoundError,
    PathShareError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)
from .geo import distance_meters
from .models import (
    UNSET,
    AccuracyStatistics,
    Identity,
    LocationReport,
    SharedPath,
    UserPath,
    UserPathUpdate,
)

__all__ = [
    "UNSET",
    "AccuracyStatistics",
    "Identity",
    "IdentityProviderError",
    "LocationReport",
    "NotFoundError",
    "PathShareError",
    "SharedPath",
    "StorageError",
    "UnauthorizedError",
    "UserPath",
    "UserPathUpdate",
    "ValidationError",
    "distance_meters",
]
