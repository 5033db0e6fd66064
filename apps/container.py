"""
Application service registry: data context plus every discovered repository.
Built once at import time, before the app serves requests.
"""
from generic_repository.config import settings
from generic_repository.database.manager import DatabaseManager
from generic_repository.services import ServiceRegistry, add_generic_repository
from .catalog.context import CatalogContext

services = ServiceRegistry()

services.add_data_context(
    CatalogContext,
    DatabaseManager.get_instance().sql.context_factory(CatalogContext),
)

add_generic_repository(
    services,
    lambda options: options.register_services_from_modules(*settings.REPOSITORY_MODULES)
                           .use_data_context(CatalogContext),
)
