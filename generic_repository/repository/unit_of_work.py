"""
Unit of Work: transaction boundaries and batched persistence over one data context.
"""

from abc import ABC, abstractmethod
from typing import Dict, Generic, Optional, Type, TypeVar
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSessionTransaction

from generic_repository.database.context import DataContext
from generic_repository.exceptions import StateError, ValidationError
from .base import Repository

TContext = TypeVar("TContext", bound=DataContext)
R = TypeVar("R", bound=Repository)


class IUnitOfWork(ABC):
    """Unit of Work interface; what application services depend on."""

    @abstractmethod
    async def begin_transaction(self) -> None:
        """Open a transaction; no-op when one is already open."""

    @abstractmethod
    async def commit(self) -> None:
        """Persist staged changes and commit the open transaction."""

    @abstractmethod
    async def rollback(self) -> None:
        """Discard the open transaction."""

    @abstractmethod
    async def save_changes(self) -> int:
        """Persist staged changes; return the number of affected entities."""

    @abstractmethod
    async def close(self) -> None:
        """Release the transaction (if any) and the data context."""


class UnitOfWork(IUnitOfWork, Generic[TContext]):
    """Owns one data context and at most one transaction handle.

    Idle -> begin_transaction -> Open -> commit | rollback -> Idle.
    save_changes works in both states: idle it commits, open it only flushes
    into the running transaction.
    """

    def __init__(self, context: Optional[TContext] = None):
        """Initialize UnitOfWork; context must be provided."""
        if context is None:
            raise ValidationError("Data context must be provided.")

        self.context = context
        self._transaction: Optional[AsyncSessionTransaction] = None
        self._repositories: Dict[Type[Repository], Repository] = {}
        self._closed = False

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None

    def get_repository(self, repo_class: Type[R]) -> R:
        """Get or create a repository instance sharing this unit's context (cached)."""
        if repo_class not in self._repositories:
            self._repositories[repo_class] = repo_class(self.context)
        return self._repositories[repo_class]

    async def begin_transaction(self) -> None:
        if self._transaction is not None:
            return

        self._transaction = await self.context.begin_transaction()
        logger.info("Transaction started")

    async def commit(self) -> None:
        if self._transaction is None:
            raise StateError("Transaction not started")

        await self.context.flush()
        await self._transaction.commit()
        self._transaction = None
        logger.info("Transaction committed")

    async def rollback(self) -> None:
        if self._transaction is None:
            raise StateError("Transaction not started")

        await self._transaction.rollback()
        self._transaction = None
        logger.info("Transaction rolled back")

    async def save_changes(self) -> int:
        if self._transaction is None:
            return await self.context.save_changes()

        affected = self.context.count_changes()
        await self.context.flush()
        return affected

    async def flush(self) -> None:
        """Flush session (e.g. to get auto-increment IDs)."""
        await self.context.flush()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        try:
            if self._transaction is not None:
                await self._transaction.rollback()
                logger.warning("Unit of work closed with an open transaction; rolled back")
        finally:
            self._transaction = None
            self._repositories.clear()
            await self.context.close()

    async def __aenter__(self):
        await self.begin_transaction()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._transaction is None:
            return
        if exc_type is not None:
            await self.rollback()
        else:
            await self.commit()
