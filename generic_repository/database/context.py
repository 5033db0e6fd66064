"""
Data context: the async session repositories and units of work run against.

SQLAlchemy owns SQL generation, the identity map and the change set; this
class only narrows the session to the operations the data access layer needs.
"""

from typing import Any, List, Optional, Type, TypeVar
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession as _SAAsyncSession
from sqlalchemy.ext.asyncio import AsyncSessionTransaction
from sqlalchemy.sql import Executable
from sqlmodel import Session, SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

T = TypeVar("T", bound=SQLModel)


class DataContext(AsyncSession):
    """Base data context; applications subclass it to get a distinct context type."""

    def __init__(self, bind=None, **kwargs):
        # Staged entities stay invisible to reads until saved; sessionmaker
        # always passes autoflush, so it is overridden rather than defaulted
        kwargs["autoflush"] = False
        kwargs.setdefault("expire_on_commit", False)
        super().__init__(bind=bind, **kwargs)

    async def find(self, entity_type: Type[T], key: Any) -> Optional[T]:
        """Find entity by primary key (scalar, tuple or dict for composite keys)."""
        return await self.get(entity_type, key)

    async def fetch(self, statement: Executable, tracking: bool = True) -> List[Any]:
        """Execute a select.

        Untracked results are loaded by a scratch session on this context's
        connection: they reflect the stored rows (unsaved edits to tracked
        instances do not leak in), carry their eager-loaded relations and are
        never part of this context.
        """
        if tracking:
            result = await self.exec(statement)
            return list(result.all())
        return await self.run_sync(_fetch_untracked, statement)

    async def execute_statement(self, statement: Executable):
        """Run a set-based statement (bulk UPDATE/DELETE) and return the cursor result."""
        return await _SAAsyncSession.execute(self, statement)

    def count_changes(self) -> int:
        """Number of staged inserts, real modifications and deletions."""
        modified = [instance for instance in self.dirty if self.is_modified(instance)]
        return len(self.new) + len(modified) + len(self.deleted)

    async def save_changes(self) -> int:
        """Flush and commit the change set; return the number of affected entities."""
        affected = self.count_changes()
        await self.commit()
        logger.debug(f"{type(self).__name__} saved {affected} change(s)")
        return affected

    async def begin_transaction(self) -> AsyncSessionTransaction:
        """Return the running transaction, starting one if the session is idle."""
        transaction = self.get_transaction()
        if transaction is not None:
            return transaction
        return await self.begin()


def _fetch_untracked(session, statement: Executable) -> List[Any]:
    # Joins the context's transaction without owning it: closing the scratch
    # session neither commits nor rolls back the connection
    with Session(bind=session.connection(), autoflush=False, expire_on_commit=False) as scratch:
        rows = list(scratch.exec(statement).all())
        scratch.expunge_all()
    return rows
