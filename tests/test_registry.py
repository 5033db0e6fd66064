"""Service registry and scope test cases."""
import pytest
from apps.catalog.context import CatalogContext
from apps.catalog.repository import IWidgetRepository, WidgetRepository
from generic_repository.database.context import DataContext
from generic_repository.exceptions import ConfigurationError
from generic_repository.repository import IUnitOfWork
from generic_repository.services import ServiceRegistry, add_generic_repository


class Closable:
    def __init__(self, name, log):
        self.name = name
        self.log = log

    async def close(self):
        self.log.append(self.name)


@pytest.fixture
def catalog_services(context_factory) -> ServiceRegistry:
    services = ServiceRegistry().add_data_context(CatalogContext, context_factory)
    return add_generic_repository(
        services,
        lambda options: options.register_services_from_module("apps.catalog.repository")
                               .use_data_context(CatalogContext),
    )


class TestLifetimes:
    """Singleton and scoped resolution."""

    @pytest.mark.asyncio
    async def test_singleton_is_shared_across_scopes(self):
        marker = object()
        services = ServiceRegistry().add_singleton(object, marker)

        async with services.create_scope() as first, services.create_scope() as second:
            assert first.resolve(object) is marker
            assert second.resolve(object) is marker

    @pytest.mark.asyncio
    async def test_scoped_is_created_once_per_scope(self):
        services = ServiceRegistry().add_scoped(list, lambda scope: [])

        async with services.create_scope() as first, services.create_scope() as second:
            assert first.resolve(list) is first.resolve(list)
            assert first.resolve(list) is not second.resolve(list)

    @pytest.mark.asyncio
    async def test_unregistered_service(self):
        services = ServiceRegistry()

        with pytest.raises(ConfigurationError, match="No service registered for dict"):
            services.create_scope().resolve(dict)
        with pytest.raises(ConfigurationError):
            services.provide(dict)


class TestScopeClose:
    """Disposal of scoped instances."""

    @pytest.mark.asyncio
    async def test_close_in_reverse_creation_order(self):
        log = []
        services = (
            ServiceRegistry()
            .add_scoped(int, lambda scope: Closable("first", log))
            .add_scoped(str, lambda scope: Closable("second", log))
        )
        scope = services.create_scope()
        scope.resolve(int)
        scope.resolve(str)

        await scope.aclose()
        await scope.aclose()

        assert log == ["second", "first"]

    @pytest.mark.asyncio
    async def test_resolve_after_close(self):
        services = ServiceRegistry().add_scoped(list, lambda scope: [])
        scope = services.create_scope()
        await scope.aclose()

        with pytest.raises(ConfigurationError, match="already closed"):
            scope.resolve(list)


class TestCatalogScope:
    """Repositories and unit of work resolved per scope."""

    @pytest.mark.asyncio
    async def test_repositories_share_the_scope_context(self, catalog_services):
        assert catalog_services.is_registered(DataContext)
        assert not catalog_services.is_registered(dict)

        async with catalog_services.create_scope() as scope:
            widgets = scope.resolve(IWidgetRepository)
            uow = scope.resolve(IUnitOfWork)

            assert isinstance(widgets, WidgetRepository)
            assert widgets.context is scope.resolve(CatalogContext)
            assert uow.context is widgets.context
            assert scope.resolve(DataContext) is widgets.context

    @pytest.mark.asyncio
    async def test_each_scope_gets_its_own_context(self, catalog_services):
        async with catalog_services.create_scope() as first, catalog_services.create_scope() as second:
            assert first.resolve(IWidgetRepository).context is not second.resolve(IWidgetRepository).context
