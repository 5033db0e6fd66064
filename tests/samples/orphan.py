"""Declares an interface nobody implements."""
from generic_repository.repository import IRepository
from apps.catalog.models import Widget


class IGadgetRepository(IRepository[Widget]):
    pass
