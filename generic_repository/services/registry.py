"""
Service registry: the host-side container repositories are registered into.

Two lifetimes exist: singletons live as long as the registry, scoped services
are created once per scope (one scope per request) and disposed with it.
"""

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Callable, Dict, List, Type, TypeVar
from loguru import logger

from generic_repository.database.context import DataContext
from generic_repository.exceptions import ConfigurationError

S = TypeVar("S")


class Lifetime(str, Enum):
    SINGLETON = "singleton"
    SCOPED = "scoped"


@dataclass(frozen=True)
class ServiceDescriptor:
    service_type: type
    factory: Callable[["ServiceScope"], Any]
    lifetime: Lifetime
    implementation: Any = None


class ServiceRegistry:
    """Maps service types to factories; resolution happens through a ServiceScope."""

    def __init__(self):
        self._descriptors: Dict[type, ServiceDescriptor] = {}
        self._singletons: Dict[type, Any] = {}

        async def open_scope() -> AsyncIterator["ServiceScope"]:
            scope = self.create_scope()
            try:
                yield scope
            finally:
                await scope.aclose()

        # One function object, so FastAPI caches the scope per request
        self.scope_dependency = open_scope

    def add_singleton(self, service_type: type, instance: Any) -> "ServiceRegistry":
        self._descriptors[service_type] = ServiceDescriptor(
            service_type, lambda scope: instance, Lifetime.SINGLETON, type(instance)
        )
        self._singletons[service_type] = instance
        return self

    def add_scoped(self, service_type: type, factory: Callable[["ServiceScope"], Any],
                   implementation: Any = None) -> "ServiceRegistry":
        self._descriptors[service_type] = ServiceDescriptor(
            service_type, factory, Lifetime.SCOPED, implementation
        )
        return self

    def add_data_context(self, context_type: Type[DataContext],
                         session_factory: Callable[[], DataContext]) -> "ServiceRegistry":
        """Register a data context per scope; also answers for DataContext when that is free."""
        self.add_scoped(context_type, lambda scope: session_factory(), context_type)
        if context_type is not DataContext and DataContext not in self._descriptors:
            self.add_scoped(DataContext, lambda scope: scope.resolve(context_type), context_type)
        return self

    def is_registered(self, service_type: type) -> bool:
        return service_type in self._descriptors

    def descriptor(self, service_type: type) -> ServiceDescriptor:
        try:
            return self._descriptors[service_type]
        except KeyError:
            raise ConfigurationError(f"No service registered for {service_type.__name__}") from None

    @property
    def descriptors(self) -> List[ServiceDescriptor]:
        return list(self._descriptors.values())

    def create_scope(self) -> "ServiceScope":
        return ServiceScope(self)

    def provide(self, service_type: Type[S]) -> Callable[..., S]:
        """FastAPI dependency resolving service_type from the request's scope.

        Usage:
            repo: IWidgetRepository = Depends(services.provide(IWidgetRepository))
        """
        self.descriptor(service_type)
        # Imported here so the registry itself has no web framework dependency
        from fastapi import Depends

        def resolve(scope: ServiceScope = Depends(self.scope_dependency)) -> S:
            return scope.resolve(service_type)

        return resolve


class ServiceScope:
    """Per-request container; scoped instances are created once and disposed on close."""

    def __init__(self, registry: ServiceRegistry):
        self.registry = registry
        self._instances: Dict[type, Any] = {}
        self._created: List[Any] = []
        self._closed = False

    def resolve(self, service_type: Type[S]) -> S:
        if self._closed:
            raise ConfigurationError("Service scope is already closed")

        descriptor = self.registry.descriptor(service_type)
        if descriptor.lifetime is Lifetime.SINGLETON:
            return self.registry._singletons[service_type]

        if service_type not in self._instances:
            instance = descriptor.factory(self)
            self._instances[service_type] = instance
            if all(instance is not created for created in self._created):
                self._created.append(instance)
        return self._instances[service_type]

    async def aclose(self) -> None:
        """Dispose scoped instances in reverse creation order; safe to call twice."""
        if self._closed:
            return
        self._closed = True

        for instance in reversed(self._created):
            close = getattr(instance, "close", None)
            if close is None:
                continue
            result = close()
            if inspect.isawaitable(result):
                await result
        logger.debug(f"Service scope closed ({len(self._created)} instance(s))")
        self._created.clear()
        self._instances.clear()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
