from typing import Dict, List, Optional
from loguru import logger
from generic_repository.exceptions import ConflictError
from generic_repository.repository import IUnitOfWork
from .models import Part, Widget
from .repository import IPartRepository, IWidgetRepository


def widget_to_dict(widget: Widget, parts: Optional[List[Part]] = None) -> Dict:
    data = widget.model_dump(mode="json")
    if parts is not None:
        data["parts"] = [part.model_dump(mode="json", exclude={"widget_id"}) for part in parts]
    return data


class CatalogService:
    def __init__(self, uow: IUnitOfWork, widgets: IWidgetRepository, parts: IPartRepository):
        """Initialize Catalog Service with UnitOfWork and the request's repositories."""
        self.uow = uow
        self.widgets = widgets
        self.parts = parts

    async def create_widget(self, name: str, price: float, parts: Dict[str, int]) -> Dict:
        """Create widget and its parts in one transaction."""
        if await self.widgets.any(Widget.name == name):
            raise ConflictError("Widget name already registered")

        async with self.uow:
            widget = Widget(name=name, price=price)
            self.widgets.add(widget)
            await self.uow.flush()
            if parts:
                self.parts.add_range(
                    [Part(sku=sku, quantity=quantity, widget_id=widget.id) for sku, quantity in parts.items()]
                )

        logger.info(f"Widget {name} created with {len(parts)} part(s)")
        return widget_to_dict(widget, await self.parts.list_for_widget(widget.id))

    async def get_widget(self, widget_id: int) -> Dict:
        """Get widget with parts; NotFoundError when missing."""
        widget = await self.widgets.first(Widget.id == widget_id, tracking=False)
        return widget_to_dict(widget, await self.parts.list_for_widget(widget_id))

    async def list_widgets(self, offset: int, limit: int) -> Dict:
        """Page of active widgets plus the active total."""
        widgets = await self.widgets.list_active(offset, limit)
        counts = await self.widgets.count_by(Widget.active == True)  # noqa: E712
        return {
            "items": [widget_to_dict(widget, widget.parts) for widget in widgets],
            "total": counts[True],
        }

    async def update_widget(self, widget_id: int, name: Optional[str], price: Optional[float]) -> Dict:
        """Load tracked, mutate, save."""
        widget = await self.widgets.first(Widget.id == widget_id)
        if name is not None:
            widget.name = name
        if price is not None:
            widget.price = price
        self.widgets.update(widget)
        await self.uow.save_changes()
        return widget_to_dict(widget)

    async def reprice(self, factor: float, min_price: float = 0.0) -> int:
        """Multiply the price of active widgets priced at or above min_price."""
        affected = await self.widgets.update_by_expression(
            (Widget.active == True) & (Widget.price >= min_price),  # noqa: E712
            {Widget.price: Widget.price * factor},
        )
        await self.uow.save_changes()
        logger.info(f"Repriced {affected} widget(s) by x{factor}")
        return affected

    async def delete_widget(self, widget_id: int) -> None:
        await self.widgets.delete_by_id(widget_id)
        await self.uow.save_changes()

    async def stats(self) -> Dict:
        counts = await self.widgets.count_by(Widget.active == True)  # noqa: E712
        return {"active": counts[True], "inactive": counts[False]}
