"""Unit of work test cases."""
import pytest
from apps.catalog.models import Widget
from apps.catalog.repository import PartRepository, WidgetRepository
from generic_repository.exceptions import StateError, ValidationError
from generic_repository.repository import UnitOfWork


class TestTransactions:
    """Explicit transaction boundaries."""

    @pytest.mark.asyncio
    async def test_commit_persists_staged_changes(self, widgets, uow, context_factory):
        await uow.begin_transaction()
        assert uow.in_transaction

        widgets.add(Widget(name="committed", price=1.0))
        await uow.commit()

        assert not uow.in_transaction
        async with context_factory() as fresh:
            assert await WidgetRepository(fresh).any(Widget.name == "committed")

    @pytest.mark.asyncio
    async def test_rollback_discards_flushed_changes(self, widgets, uow):
        await uow.begin_transaction()
        widgets.add(Widget(name="discarded"))

        assert await uow.save_changes() == 1
        assert uow.in_transaction

        await uow.rollback()

        assert not uow.in_transaction
        assert not await widgets.any(Widget.name == "discarded")

    @pytest.mark.asyncio
    async def test_commit_and_rollback_require_open_transaction(self, uow):
        with pytest.raises(StateError):
            await uow.commit()
        with pytest.raises(StateError):
            await uow.rollback()

    @pytest.mark.asyncio
    async def test_begin_twice_keeps_one_transaction(self, uow):
        await uow.begin_transaction()
        await uow.begin_transaction()

        assert uow.in_transaction
        await uow.rollback()
        assert not uow.in_transaction

    @pytest.mark.asyncio
    async def test_begin_after_read_joins_running_transaction(self, widgets, uow, sample_widgets):
        await widgets.first(Widget.name == "alpha")
        await uow.begin_transaction()

        widgets.add(Widget(name="joined"))
        await uow.commit()

        assert await widgets.any(Widget.name == "joined")


class TestSaveChanges:
    """save_changes outside a transaction."""

    @pytest.mark.asyncio
    async def test_idle_save_commits_and_counts(self, widgets, uow, context_factory):
        widgets.add_range([Widget(name="a"), Widget(name="b"), Widget(name="c")])

        assert await uow.save_changes() == 3
        assert not uow.in_transaction

        async with context_factory() as fresh:
            assert len(await WidgetRepository(fresh).get_all()) == 3

    @pytest.mark.asyncio
    async def test_nothing_staged_saves_zero(self, uow):
        assert await uow.save_changes() == 0


class TestContextManager:
    """async with UnitOfWork."""

    @pytest.mark.asyncio
    async def test_block_commits_on_success(self, widgets, uow):
        async with uow:
            widgets.add(Widget(name="inside"))

        assert not uow.in_transaction
        assert await widgets.any(Widget.name == "inside")

    @pytest.mark.asyncio
    async def test_block_rolls_back_on_error(self, widgets, uow):
        with pytest.raises(RuntimeError):
            async with uow:
                widgets.add(Widget(name="failed"))
                await uow.flush()
                raise RuntimeError("boom")

        assert not uow.in_transaction
        assert not await widgets.any(Widget.name == "failed")


class TestLifecycle:
    """Construction, repository cache and close."""

    @pytest.mark.asyncio
    async def test_requires_context(self):
        with pytest.raises(ValidationError):
            UnitOfWork(None)

    @pytest.mark.asyncio
    async def test_get_repository_is_cached_and_shares_context(self, uow, context):
        first = uow.get_repository(WidgetRepository)

        assert uow.get_repository(WidgetRepository) is first
        assert first.context is context
        assert uow.get_repository(PartRepository).context is context

    @pytest.mark.asyncio
    async def test_close_rolls_back_open_transaction(self, uow, context_factory):
        await uow.begin_transaction()
        uow.get_repository(WidgetRepository).add(Widget(name="abandoned"))
        await uow.flush()

        await uow.close()
        await uow.close()

        assert not uow.in_transaction
        async with context_factory() as fresh:
            assert not await WidgetRepository(fresh).any(Widget.name == "abandoned")
