"""
Tests for ComponentIndexReconciler: replaying pending index operations and
rebuilding the index from the datastore.
"""

from unittest.mock import AsyncMock, patch

import pytest

from innvo.db.models import Component, IndexOperation
from innvo.exceptions import PartialWriteError, PersistenceError
from innvo.index.reconciler import ComponentIndexReconciler
from innvo.service.component_service import ComponentService
from tests.unit_test.fakes import DEFAULT_NAME, UPDATED_NAME, InMemorySearchIndex


@pytest.fixture
def reconciler(db_ops, search_index):
    return ComponentIndexReconciler(db_ops, search_index)


class TestReconcilePending:
    @pytest.mark.asyncio
    async def test_nothing_pending(self, reconciler):
        result = await reconciler.reconcile_pending()

        assert result.processed == 0

    @pytest.mark.asyncio
    async def test_partial_write_converges_after_reconcile(self, db_ops, search_index, reconciler):
        service = ComponentService(
            db_ops, search_index, pending_recorder=db_ops, retry_attempts=1, retry_wait=0, retry_max_wait=0
        )
        search_index.failures = -1
        with pytest.raises(PartialWriteError) as exc_info:
            await service.create(Component(name=DEFAULT_NAME))
        component_id = exc_info.value.entity_id
        assert component_id not in search_index.documents

        search_index.failures = 0
        result = await reconciler.reconcile_pending()

        assert (result.processed, result.succeeded, result.failed) == (1, 1, 0)
        assert search_index.documents[component_id] == {"id": component_id, "name": DEFAULT_NAME}
        assert await db_ops.query_pending_index_operations() == []

    @pytest.mark.asyncio
    async def test_reconcile_uses_current_datastore_state(self, db_ops, search_index, reconciler):
        """A pending index entry for a row deleted since then removes the document instead."""
        created = await db_ops.insert(Component(name=DEFAULT_NAME))
        search_index.documents[created.id] = created.to_document()
        await db_ops.record_pending_index(created.id, IndexOperation.INDEX, "timeout")
        await db_ops.delete_by_id(created.id)

        await reconciler.reconcile_pending()

        assert created.id not in search_index.documents

    @pytest.mark.asyncio
    async def test_failed_reconcile_keeps_entry(self, db_ops, search_index, reconciler):
        created = await db_ops.insert(Component(name=UPDATED_NAME))
        await db_ops.record_pending_index(created.id, IndexOperation.INDEX, "timeout")
        search_index.failures = -1

        result = await reconciler.reconcile_pending()

        assert result.failed == 1
        pending = await db_ops.query_pending_index_operations()
        assert len(pending) == 1
        assert pending[0].attempts == 1

    @pytest.mark.asyncio
    async def test_bookkeeping_failure_does_not_stop_the_batch(self, db_ops, search_index, reconciler):
        for name in [DEFAULT_NAME, UPDATED_NAME]:
            created = await db_ops.insert(Component(name=name))
            await db_ops.record_pending_index(created.id, IndexOperation.INDEX, "timeout")
        search_index.failures = -1

        with patch.object(
            db_ops, "mark_pending_index_failed", AsyncMock(side_effect=PersistenceError("datastore unavailable"))
        ) as mark_failed:
            result = await reconciler.reconcile_pending()

        assert (result.processed, result.succeeded, result.failed) == (2, 0, 2)
        assert mark_failed.await_count == 2

    @pytest.mark.asyncio
    async def test_clearing_failure_keeps_entry_for_next_run(self, db_ops, search_index, reconciler):
        ids = []
        for name in [DEFAULT_NAME, UPDATED_NAME]:
            created = await db_ops.insert(Component(name=name))
            await db_ops.record_pending_index(created.id, IndexOperation.INDEX, "timeout")
            ids.append(created.id)

        with patch.object(
            db_ops, "delete_pending_index_operation", AsyncMock(side_effect=PersistenceError("datastore unavailable"))
        ):
            result = await reconciler.reconcile_pending()

        assert (result.processed, result.succeeded, result.failed) == (2, 2, 0)
        assert sorted(search_index.documents) == sorted(ids)
        assert len(await db_ops.query_pending_index_operations()) == 2


class TestReindexAll:
    @pytest.mark.asyncio
    async def test_reindex_all_mirrors_every_row(self, db_ops):
        search_index = InMemorySearchIndex()
        reconciler = ComponentIndexReconciler(db_ops, search_index)
        ids = [(await db_ops.insert(Component(name=f"component-{i}"))).id for i in range(5)]

        indexed = await reconciler.reindex_all(batch_size=2)

        assert indexed == 5
        assert sorted(search_index.documents) == sorted(ids)

    @pytest.mark.asyncio
    async def test_reindex_empty_datastore(self, reconciler, search_index):
        assert await reconciler.reindex_all() == 0
        assert search_index.documents == {}
