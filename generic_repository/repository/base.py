"""
Repository abstract base class and generic implementation.

Staging operations (add, update) are plain methods; everything that round-trips
to the store is a coroutine. Filters are SQLAlchemy column expressions over the
entity, e.g. ``Widget.price > 10``.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Collection, Dict, Generic, List, Mapping, Optional, Type, TypeVar
from loguru import logger
from sqlalchemy import case, exists, func, update
from sqlmodel import SQLModel, select

from generic_repository.database.context import DataContext
from generic_repository.exceptions import ConflictError, NotFoundError, ValidationError
from .generics import is_bound, resolve_type_arguments
from .query import QuerySpec

T = TypeVar("T", bound=SQLModel)
TContext = TypeVar("TContext", bound=DataContext)

IncludeFunc = Callable[[QuerySpec], QuerySpec]


class IRepository(ABC, Generic[T]):
    """Repository interface; defines the standard data access API for one entity type.

    Declare an application interface by extending it for a concrete entity:

        class IWidgetRepository(IRepository[Widget]):
            ...
    """

    entity_type: Optional[type] = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        args = resolve_type_arguments(cls, IRepository)
        if is_bound(args):
            cls.entity_type = args[0]

    # --- Add ---

    @abstractmethod
    def add(self, entity: T) -> None:
        """Stage entity for insertion on the next save."""

    @abstractmethod
    async def add_async(self, entity: T) -> None:
        """Stage entity for insertion on the next save."""

    @abstractmethod
    def add_range(self, entities: Collection[T]) -> None:
        """Stage entities for insertion on the next save."""

    @abstractmethod
    async def add_range_async(self, entities: Collection[T]) -> None:
        """Stage entities for insertion on the next save."""

    # --- Update ---

    @abstractmethod
    def update(self, entity: T) -> None:
        """Stage a full update of a tracked entity."""

    @abstractmethod
    def update_range(self, entities: Collection[T]) -> None:
        """Stage updates for entities."""

    @abstractmethod
    async def update_by_expression(self, filter: Any, mutation: Mapping[Any, Any]) -> int:
        """Set-based update at the store; return the affected row count."""

    # --- Delete ---

    @abstractmethod
    async def delete(self, entity: T) -> None:
        """Stage removal of entity."""

    @abstractmethod
    async def delete_range(self, entities: Collection[T]) -> None:
        """Stage removal of entities."""

    @abstractmethod
    async def delete_by_id(self, id: Any) -> None:
        """Load by primary key and stage its removal."""

    @abstractmethod
    async def delete_by_expression(self, filter: Any) -> None:
        """Stage removal of the first entity matching filter."""

    # --- Query ---

    @abstractmethod
    def as_queryable(self, tracking: bool = False) -> QuerySpec[T]:
        """Query over all entities."""

    @abstractmethod
    def query(self, filter: Any = None, include_func: Optional[IncludeFunc] = None,
              tracking: bool = False) -> QuerySpec[T]:
        """Query with optional filter and include shaping."""

    @abstractmethod
    def where(self, filter: Any, tracking: bool = True) -> QuerySpec[T]:
        """Query restricted to filter."""

    @abstractmethod
    def get_query_by_expression(self, filter: Any = None, *includes: Any,
                                tracking: bool = False) -> QuerySpec[T]:
        """Query with optional filter and eager-load directives."""

    @abstractmethod
    async def to_list(self, query: QuerySpec[T]) -> List[Any]:
        """Materialize a composed query."""

    @abstractmethod
    async def get_all(self, tracking: bool = False) -> List[T]:
        """Get all entities."""

    @abstractmethod
    async def get_list(self, filter: Any = None, include_func: Optional[IncludeFunc] = None,
                       select: Optional[Callable[[T], Any]] = None, tracking: bool = False) -> List[Any]:
        """Materialize matching entities, optionally projected."""

    # --- Get ---

    @abstractmethod
    async def first(self, filter: Any, tracking: bool = True) -> T:
        """First match; raises NotFoundError when nothing matches."""

    @abstractmethod
    async def first_or_default(self, filter: Any, tracking: bool = True) -> Optional[T]:
        """First match or None."""

    @abstractmethod
    async def get_by_expression(self, filter: Any, *includes: Any, tracking: bool = True) -> Optional[T]:
        """First match with eager-loaded relations, or None."""

    @abstractmethod
    async def get_first(self, tracking: bool = True) -> T:
        """First entity in store order; raises NotFoundError on an empty set."""

    @abstractmethod
    async def any(self, filter: Any) -> bool:
        """Whether at least one entity matches."""

    @abstractmethod
    async def count_by(self, filter: Any) -> Dict[bool, int]:
        """Partition count: {True: matching, False: not matching}."""


class Repository(IRepository[T], Generic[T, TContext]):
    """Generic repository implementation over one entity type and one data context type.

    Subclasses bind both type arguments and usually implement an application interface:

        class WidgetRepository(Repository[Widget, CatalogContext], IWidgetRepository):
            ...
    """

    context_type: Optional[type] = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        args = resolve_type_arguments(cls, Repository)
        if is_bound(args):
            cls.entity_type, cls.context_type = args

    def __init__(self, context: TContext, model: Optional[Type[T]] = None):
        """Initialize repository with a data context; model overrides the bound entity type."""
        if context is None:
            raise ValidationError("Data context cannot be None.")
        self.context = context
        self.model = model or self.entity_type
        if self.model is None:
            raise ValidationError(f"{type(self).__name__} has no entity type; bind Repository[Entity, Context] or pass model.")

    # --- Add ---

    def add(self, entity: T) -> None:
        """Stage entity for insertion."""
        self._require_entity(entity)
        self.context.add(entity)

    async def add_async(self, entity: T) -> None:
        """Stage entity for insertion."""
        self.add(entity)

    def add_range(self, entities: Collection[T]) -> None:
        """Stage entities for insertion."""
        self._require_entities(entities, "add")
        self.context.add_all(list(entities))

    async def add_range_async(self, entities: Collection[T]) -> None:
        """Stage entities for insertion."""
        self.add_range(entities)

    # --- Update ---

    def update(self, entity: T) -> None:
        """Stage update (the context tracks attribute changes)."""
        self._require_entity(entity)
        if entity not in self.context:
            logger.warning(f"Rejected update of detached {self.model.__name__}")
            raise ConflictError("Cannot update a detached entity.")
        self.context.add(entity)

    def update_range(self, entities: Collection[T]) -> None:
        """Stage updates; rejected as a whole when any entity is detached."""
        self._require_entities(entities, "update")
        entities = list(entities)
        detached = [entity for entity in entities if entity not in self.context]
        if detached:
            logger.warning(f"Rejected update of {len(detached)} detached {self.model.__name__}(s)")
            raise ConflictError("Cannot update a detached entity.")
        self.context.add_all(entities)

    async def update_by_expression(self, filter: Any, mutation: Mapping[Any, Any]) -> int:
        """Apply mutation to every row matching filter without loading entities."""
        if filter is None:
            raise ValidationError("Filter expression cannot be None.")
        if not mutation:
            raise ValidationError("Update expression cannot be empty.")

        statement = update(self.model).where(filter).values(dict(mutation))
        result = await self.context.execute_statement(statement)
        if result.rowcount == 0:
            raise NotFoundError("No entities matched the filter expression to update.")
        logger.debug(f"Updated {result.rowcount} {self.model.__name__} row(s) by expression")
        return result.rowcount

    # --- Delete ---

    async def delete(self, entity: T) -> None:
        """Stage removal of entity."""
        self._require_entity(entity)
        await self.context.delete(entity)

    async def delete_range(self, entities: Collection[T]) -> None:
        """Stage removal of entities."""
        self._require_entities(entities, "delete")
        for entity in list(entities):
            await self.context.delete(entity)

    async def delete_by_id(self, id: Any) -> None:
        """Load by primary key and stage removal."""
        entity = await self.context.find(self.model, id)
        if entity is None:
            raise NotFoundError(f"Entity with Id {id} not found.")
        await self.context.delete(entity)

    async def delete_by_expression(self, filter: Any) -> None:
        """Stage removal of the first match in store order; other matches are left alone.

        The match is loaded tracked (not untracked) so the context can delete it
        and cascade to its children directly.
        """
        entity = await self.first_or_default(filter)
        if entity is None:
            raise NotFoundError("Entity not found with the given expression.")
        await self.context.delete(entity)

    # --- Query ---

    def as_queryable(self, tracking: bool = False) -> QuerySpec[T]:
        """Query over all entities."""
        return QuerySpec(self.model, tracking=tracking)

    def query(self, filter: Any = None, include_func: Optional[IncludeFunc] = None,
              tracking: bool = False) -> QuerySpec[T]:
        """Query with optional filter; include_func shapes the query (e.g. lambda q: q.include(...))."""
        spec = self.as_queryable(tracking).where(filter)
        if include_func is not None:
            spec = include_func(spec)
        return spec

    def where(self, filter: Any, tracking: bool = True) -> QuerySpec[T]:
        """Query restricted to filter."""
        if filter is None:
            raise ValidationError("Filter expression cannot be None.")
        return self.as_queryable(tracking).where(filter)

    def get_query_by_expression(self, filter: Any = None, *includes: Any,
                                tracking: bool = False) -> QuerySpec[T]:
        """Query with optional filter and eager-load directives."""
        return self.as_queryable(tracking).where(filter).include(*includes)

    async def to_list(self, query: QuerySpec[T]) -> List[Any]:
        """Materialize a composed query, applying its projection if any."""
        entities = await self.context.fetch(query.to_statement(), tracking=query.tracking)
        if query.projection is not None:
            return [query.projection(entity) for entity in entities]
        return entities

    async def get_all(self, tracking: bool = False) -> List[T]:
        """Get all entities."""
        return await self.to_list(self.as_queryable(tracking))

    async def get_list(self, filter: Any = None, include_func: Optional[IncludeFunc] = None,
                       select: Optional[Callable[[T], Any]] = None, tracking: bool = False) -> List[Any]:
        """Materialize matching entities; select projects each one into another shape."""
        spec = self.query(filter, include_func, tracking)
        if select is not None:
            spec = spec.select(select)
        return await self.to_list(spec)

    # --- Get ---

    async def first(self, filter: Any, tracking: bool = True) -> T:
        """First match; raises NotFoundError when nothing matches."""
        entity = await self.first_or_default(filter, tracking)
        if entity is None:
            raise NotFoundError(f"No {self.model.__name__} matched the given expression.")
        return entity

    async def first_or_default(self, filter: Any, tracking: bool = True) -> Optional[T]:
        """First match or None."""
        if filter is None:
            raise ValidationError("Filter expression cannot be None.")
        return await self._first(self.where(filter, tracking))

    async def get_by_expression(self, filter: Any, *includes: Any, tracking: bool = True) -> Optional[T]:
        """First match with includes eagerly loaded, or None."""
        if filter is None:
            raise ValidationError("Filter expression cannot be None.")
        return await self._first(self.get_query_by_expression(filter, *includes, tracking=tracking))

    async def get_first(self, tracking: bool = True) -> T:
        """First entity in store order."""
        entity = await self._first(self.as_queryable(tracking))
        if entity is None:
            raise NotFoundError(f"No {self.model.__name__} entities exist.")
        return entity

    async def any(self, filter: Any) -> bool:
        """Whether at least one entity matches."""
        if filter is None:
            raise ValidationError("Filter expression cannot be None.")
        result = await self.context.exec(select(exists().where(filter)))
        return bool(result.one())

    async def count_by(self, filter: Any) -> Dict[bool, int]:
        """Tally entities on each side of filter in one round trip."""
        if filter is None:
            raise ValidationError("Filter expression cannot be None.")
        outcome = case((filter, True), else_=False).label("outcome")
        statement = select(outcome, func.count()).select_from(self.model).group_by(outcome)
        result = await self.context.exec(statement)

        counts = {True: 0, False: 0}
        for matched, total in result.all():
            counts[bool(matched)] += total
        return counts

    # --- Helpers ---

    async def _first(self, spec: QuerySpec[T]) -> Optional[T]:
        rows = await self.to_list(spec.limit(1))
        return rows[0] if rows else None

    @staticmethod
    def _require_entity(entity: Any) -> None:
        if entity is None:
            raise ValidationError("Entity cannot be None.")

    @staticmethod
    def _require_entities(entities: Any, action: str) -> None:
        if entities is None or len(entities) == 0:
            raise ValidationError(f"No entities provided to {action}.")
