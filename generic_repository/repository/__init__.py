"""
Repository pattern: generic data access over a SQLModel data context.
"""

from .base import IRepository, Repository
from .query import QuerySpec
from .unit_of_work import IUnitOfWork, UnitOfWork

__all__ = ["IRepository", "IUnitOfWork", "QuerySpec", "Repository", "UnitOfWork"]
