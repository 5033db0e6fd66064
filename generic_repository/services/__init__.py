"""
Service wiring: registry with per-request scopes and repository discovery.
"""

from .binder import add_generic_repository, discover_bindings
from .options import RepositoryOptions
from .registry import Lifetime, ServiceRegistry, ServiceScope

__all__ = [
    "Lifetime",
    "RepositoryOptions",
    "ServiceRegistry",
    "ServiceScope",
    "add_generic_repository",
    "discover_bindings",
]
