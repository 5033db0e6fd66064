from fastapi import APIRouter, Depends, Query
from typing import Dict, Optional
from pydantic import BaseModel, Field
from generic_repository.repository import IUnitOfWork
from generic_repository.response import ResponseModel
from apps.container import services
from ..repository import IPartRepository, IWidgetRepository
from ..service import CatalogService

router = APIRouter()

class WidgetCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    price: float = Field(default=0.0, ge=0)
    parts: Dict[str, int] = Field(default_factory=dict)

class WidgetUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    price: Optional[float] = Field(default=None, ge=0)

class RepriceRequest(BaseModel):
    factor: float = Field(gt=0)
    min_price: float = Field(default=0.0, ge=0)

def get_catalog_service(
    uow: IUnitOfWork = Depends(services.provide(IUnitOfWork)),
    widgets: IWidgetRepository = Depends(services.provide(IWidgetRepository)),
    parts: IPartRepository = Depends(services.provide(IPartRepository)),
) -> CatalogService:
    """Dependency: create CatalogService from the request's scope."""
    return CatalogService(uow, widgets, parts)

@router.post("/widgets")
async def create_widget(payload: WidgetCreate, service: CatalogService = Depends(get_catalog_service)):
    widget = await service.create_widget(payload.name, payload.price, payload.parts)
    return ResponseModel.success(data=widget)

@router.get("/widgets")
async def list_widgets(
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    service: CatalogService = Depends(get_catalog_service),
):
    page = await service.list_widgets(offset, limit)
    return ResponseModel.page(page["items"], page["total"], offset, limit)

@router.get("/widgets/stats")
async def widget_stats(service: CatalogService = Depends(get_catalog_service)):
    return ResponseModel.success(data=await service.stats())

@router.get("/widgets/{widget_id}")
async def get_widget(widget_id: int, service: CatalogService = Depends(get_catalog_service)):
    return ResponseModel.success(data=await service.get_widget(widget_id))

@router.patch("/widgets/{widget_id}")
async def update_widget(
    widget_id: int,
    payload: WidgetUpdate,
    service: CatalogService = Depends(get_catalog_service),
):
    widget = await service.update_widget(widget_id, payload.name, payload.price)
    return ResponseModel.success(data=widget)

@router.post("/widgets/reprice")
async def reprice_widgets(payload: RepriceRequest, service: CatalogService = Depends(get_catalog_service)):
    affected = await service.reprice(payload.factor, payload.min_price)
    return ResponseModel.success(data={"affected": affected})

@router.delete("/widgets/{widget_id}")
async def delete_widget(widget_id: int, service: CatalogService = Depends(get_catalog_service)):
    await service.delete_widget(widget_id)
    return ResponseModel.success(message="deleted")
