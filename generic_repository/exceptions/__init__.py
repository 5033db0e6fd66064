"""
Error taxonomy raised by repositories, units of work and the binder.
"""

from .handler import (
    CancelledError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    RepositoryException,
    StateError,
    ValidationError,
)

__all__ = [
    "CancelledError",
    "ConfigurationError",
    "ConflictError",
    "NotFoundError",
    "RepositoryException",
    "StateError",
    "ValidationError",
]
