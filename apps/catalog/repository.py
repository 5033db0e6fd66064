"""Catalog repository interfaces and implementations (discovered by the binder)."""

from abc import abstractmethod
from typing import List, Optional
from generic_repository.repository import IRepository, Repository
from .context import CatalogContext
from .models import Part, Widget


class IWidgetRepository(IRepository[Widget]):
    """Widget repository contract."""

    @abstractmethod
    async def get_by_name(self, name: str) -> Optional[Widget]:
        """Find widget by name."""

    @abstractmethod
    async def list_active(self, offset: int = 0, limit: int = 20) -> List[Widget]:
        """Active widgets ordered by name (untracked)."""


class IPartRepository(IRepository[Part]):
    """Part repository contract."""

    @abstractmethod
    async def list_for_widget(self, widget_id: int) -> List[Part]:
        """Parts of one widget (untracked)."""


class WidgetRepository(Repository[Widget, CatalogContext], IWidgetRepository):
    """Widget repository."""

    async def get_by_name(self, name: str) -> Optional[Widget]:
        return await self.first_or_default(Widget.name == name)

    async def list_active(self, offset: int = 0, limit: int = 20) -> List[Widget]:
        spec = (
            self.query(Widget.active == True, lambda q: q.include(Widget.parts))  # noqa: E712
            .order_by(Widget.name)
            .offset(offset)
            .limit(limit)
        )
        return await self.to_list(spec)


class PartRepository(Repository[Part, CatalogContext], IPartRepository):
    """Part repository."""

    async def list_for_widget(self, widget_id: int) -> List[Part]:
        return await self.get_list(Part.widget_id == widget_id)
