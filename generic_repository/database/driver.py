from typing import Type
from sqlmodel import SQLModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from .context import DataContext

class SQLDriver:
    def __init__(self, url: str, echo: bool = False, **engine_kwargs):
        self.engine = create_async_engine(url, echo=echo, future=True, **engine_kwargs)

    def context_factory(self, context_class: Type[DataContext] = DataContext) -> sessionmaker:
        """Session factory producing contexts of the given DataContext subclass."""
        return sessionmaker(
            self.engine, class_=context_class, expire_on_commit=False, autoflush=False
        )

    async def connect(self):
        """Check the database answers (the engine manages connections)."""
        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_all(self):
        """Create tables for every imported SQLModel table class."""
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def disconnect(self):
        """Dispose the engine and its pool."""
        await self.engine.dispose()
