import asyncio
import logging
from dataclasses import asdict
from typing import Optional

from innvo.config import new_async_engine, new_session_factory, settings
from innvo.db.ops import ComponentDatabaseOps
from innvo.index.fulltext import ComponentSearchIndex
from innvo.index.reconciler import ComponentIndexReconciler
from innvo.tasks.celery_app import app

logger = logging.getLogger(__name__)


async def _run_with_reconciler(operation):
    # each task run gets its own event loop, so it needs its own engine and client
    engine = new_async_engine()
    search_index = ComponentSearchIndex()
    try:
        reconciler = ComponentIndexReconciler(ComponentDatabaseOps(new_session_factory(engine)), search_index)
        return await operation(reconciler)
    finally:
        await search_index.close()
        await engine.dispose()


@app.task
def reconcile_component_index_task(limit: Optional[int] = None):
    """Replay search index writes that failed after their datastore write committed"""
    try:
        logger.info("Starting component index reconciliation")
        batch = limit or settings.reconcile_batch_size
        result = asyncio.run(_run_with_reconciler(lambda r: r.reconcile_pending(batch)))
        logger.info("Component index reconciliation completed")
        return asdict(result)
    except Exception as e:
        logger.error(f"Component index reconciliation failed: {e}")
        raise


@app.task
def reindex_components_task(batch_size: Optional[int] = None):
    """Rebuild the search index from every datastore row"""
    try:
        logger.info("Starting full component reindex")
        size = batch_size or settings.reconcile_batch_size

        async def _reindex(reconciler):
            await reconciler.search_index.ensure_index()
            return await reconciler.reindex_all(size)

        indexed = asyncio.run(_run_with_reconciler(_reindex))
        logger.info(f"Full component reindex completed, {indexed} components indexed")
        return indexed
    except Exception as e:
        logger.error(f"Full component reindex failed: {e}")
        raise
