"""
Binder: discovers repository interfaces and implementations at startup and
registers them with per-request lifetime.

    services = ServiceRegistry()
    services.add_data_context(CatalogContext, driver.context_factory(CatalogContext))
    add_generic_repository(
        services,
        lambda options: options.register_services_from_module("apps.catalog.repository")
                               .use_data_context(CatalogContext),
    )
"""

import importlib
import inspect
import pkgutil
import sys
from types import ModuleType
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple
from loguru import logger

from generic_repository.exceptions import ConfigurationError
from generic_repository.repository.base import IRepository, Repository
from generic_repository.repository.generics import is_bound, is_generic_definition, resolve_type_arguments
from generic_repository.repository.unit_of_work import IUnitOfWork, UnitOfWork
from .options import RepositoryOptions
from .registry import ServiceRegistry


def add_generic_repository(
    services: ServiceRegistry,
    configure: Optional[Callable[[RepositoryOptions], None]] = None,
) -> ServiceRegistry:
    """Register every discovered repository binding plus the unit of work.

    Raises ConfigurationError, before anything is registered, when an interface
    has no implementation or more than one.
    """
    options = RepositoryOptions()
    if configure is not None:
        configure(options)
    if not options.modules and not options.bindings:
        options.register_services_from_module(_caller_module())

    bindings = discover_bindings(options.modules)
    bindings.update(_validate_explicit(options.bindings))

    services.add_singleton(RepositoryOptions, options)
    for interface, implementation in bindings.items():
        services.add_scoped(interface, _repository_factory(implementation), implementation)
        logger.info(f"Registered {interface.__name__} -> {implementation.__name__} (scoped)")

    context_type = options.data_context_type
    services.add_scoped(
        IUnitOfWork, lambda scope: UnitOfWork(scope.resolve(context_type)), UnitOfWork
    )
    logger.info(f"Registered IUnitOfWork -> UnitOfWork[{context_type.__name__}] (scoped)")
    return services


def discover_bindings(modules: Iterable[ModuleType]) -> Dict[type, type]:
    """Match each repository interface declared in modules to its single implementation."""
    types = list(_declared_classes(modules))
    interfaces = [t for t in types if is_repository_interface(t)]
    implementations = [t for t in types if is_repository_implementation(t)]

    bindings: Dict[type, type] = {}
    for interface in interfaces:
        matches = [impl for impl in implementations if issubclass(impl, interface)]
        if not matches:
            raise ConfigurationError(f"There is no implementation for {interface.__name__}")
        if len(matches) > 1:
            names = ", ".join(sorted(impl.__name__ for impl in matches))
            raise ConfigurationError(
                f"Multiple implementations for {interface.__name__}: {names}"
            )
        bindings[interface] = matches[0]
    return bindings


def is_repository_interface(cls: type) -> bool:
    """Abstract, non-generic extension of IRepository for a concrete entity type."""
    return (
        issubclass(cls, IRepository)
        and not issubclass(cls, Repository)
        and inspect.isabstract(cls)
        and not is_generic_definition(cls)
        and is_bound(resolve_type_arguments(cls, IRepository))
    )


def is_repository_implementation(cls: type) -> bool:
    """Concrete, non-generic Repository subclass with both type arguments bound."""
    return (
        issubclass(cls, Repository)
        and not inspect.isabstract(cls)
        and not is_generic_definition(cls)
        and is_bound(resolve_type_arguments(cls, Repository))
    )


def _validate_explicit(pairs: List[Tuple[type, type]]) -> Dict[type, type]:
    bindings: Dict[type, type] = {}
    for interface, implementation in pairs:
        if not (isinstance(interface, type) and issubclass(interface, IRepository)):
            raise ConfigurationError(f"{interface!r} is not a repository interface")
        if not (isinstance(implementation, type) and is_repository_implementation(implementation)):
            raise ConfigurationError(f"{implementation!r} is not a concrete repository implementation")
        if not issubclass(implementation, interface):
            raise ConfigurationError(
                f"{implementation.__name__} does not implement {interface.__name__}"
            )
        bindings[interface] = implementation
    return bindings


def _repository_factory(implementation: type):
    context_type = implementation.context_type
    return lambda scope: implementation(scope.resolve(context_type))


def _declared_classes(modules: Iterable[ModuleType]) -> Iterator[type]:
    seen = set()
    for module in _walk(modules):
        for _, cls in inspect.getmembers(module, inspect.isclass):
            if cls.__module__ == module.__name__ and cls not in seen:
                seen.add(cls)
                yield cls


def _walk(modules: Iterable[ModuleType]) -> Iterator[ModuleType]:
    """Yield each module and, for packages, every submodule beneath it."""
    for module in modules:
        yield module
        if hasattr(module, "__path__"):
            for info in pkgutil.walk_packages(module.__path__, prefix=f"{module.__name__}."):
                yield importlib.import_module(info.name)


def _caller_module() -> ModuleType:
    # Frame 0 is here, 1 is add_generic_repository, 2 is its caller
    return sys.modules[sys._getframe(2).f_globals["__name__"]]
