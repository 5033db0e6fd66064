from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime, timezone

class Widget(SQLModel, table=True):
    """Catalog widget."""
    __tablename__ = "widgets"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True, max_length=120)
    price: float = Field(default=0.0, ge=0)
    active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    parts: List["Part"] = Relationship(
        back_populates="widget",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )

class Part(SQLModel, table=True):
    """Part a widget is assembled from."""
    __tablename__ = "parts"

    id: Optional[int] = Field(default=None, primary_key=True)
    sku: str = Field(index=True, max_length=64)
    quantity: int = Field(default=1, ge=1)
    widget_id: int = Field(foreign_key="widgets.id", index=True)

    widget: Optional[Widget] = Relationship(back_populates="parts")
