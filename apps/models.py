"""
Model registration: import every table model here so SQLModel.metadata knows it
(used by create_all at startup and by the test fixtures).
"""
from apps.catalog.models import Part, Widget

__all__ = ["Part", "Widget"]
