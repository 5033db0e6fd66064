"""
Query specification: a composable, not yet executed description of a read.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Generic, Optional, Tuple, Type, TypeVar
from sqlalchemy.orm import QueryableAttribute, selectinload
from sqlmodel import SQLModel, select

T = TypeVar("T", bound=SQLModel)


def as_loader_option(path: Any) -> Any:
    """Relationship attributes become selectin loads; loader options pass through."""
    if isinstance(path, QueryableAttribute):
        return selectinload(path)
    return path


@dataclass(frozen=True, eq=False)
class QuerySpec(Generic[T]):
    """Immutable read description; every builder method returns a new spec.

    Example:
        spec = repo.query(Widget.price > 10).include(Widget.parts).order_by(Widget.name).limit(20)
        widgets = await repo.to_list(spec)
    """

    entity_type: Type[T]
    criteria: Tuple[Any, ...] = ()
    includes: Tuple[Any, ...] = ()
    tracking: bool = False
    ordering: Tuple[Any, ...] = ()
    skip: Optional[int] = None
    take: Optional[int] = None
    projection: Optional[Callable[[T], Any]] = None

    def where(self, *criteria: Any) -> "QuerySpec[T]":
        """Add filter predicates (ANDed); None entries are ignored."""
        return replace(self, criteria=self.criteria + tuple(c for c in criteria if c is not None))

    def include(self, *paths: Any) -> "QuerySpec[T]":
        """Eagerly load relations, applied in the order given."""
        return replace(self, includes=self.includes + paths)

    def as_tracking(self) -> "QuerySpec[T]":
        return replace(self, tracking=True)

    def as_no_tracking(self) -> "QuerySpec[T]":
        return replace(self, tracking=False)

    def order_by(self, *columns: Any) -> "QuerySpec[T]":
        return replace(self, ordering=self.ordering + columns)

    def offset(self, count: int) -> "QuerySpec[T]":
        return replace(self, skip=count)

    def limit(self, count: int) -> "QuerySpec[T]":
        return replace(self, take=count)

    def select(self, projection: Callable[[T], Any]) -> "QuerySpec[T]":
        """Shape each materialized entity with projection."""
        return replace(self, projection=projection)

    def to_statement(self):
        """Build the SQLModel select handed to the data context."""
        statement = select(self.entity_type)
        for criterion in self.criteria:
            statement = statement.where(criterion)
        for path in self.includes:
            statement = statement.options(as_loader_option(path))
        if self.ordering:
            statement = statement.order_by(*self.ordering)
        if self.skip is not None:
            statement = statement.offset(self.skip)
        if self.take is not None:
            statement = statement.limit(self.take)
        return statement
