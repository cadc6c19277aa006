# Copyright 2025 ApeCloud, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import logging
from dataclasses import dataclass

from innvo.exceptions import PersistenceError, SearchIndexError
from innvo.schema.pagination import SortOrder

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    processed: int = 0
    succeeded: int = 0
    failed: int = 0


class ComponentIndexReconciler:
    """
    Converges the search index with the datastore.

    Pending operations recorded after partial writes are replayed against
    the current datastore state: a component that still exists is indexed,
    one that is gone is removed from the index. The datastore is never
    written to except for the pending bookkeeping rows.
    """

    def __init__(self, datastore, search_index):
        self.datastore = datastore
        self.search_index = search_index

    async def reconcile_pending(self, limit: int = 100) -> ReconcileResult:
        result = ReconcileResult()
        pending_ops = await self.datastore.query_pending_index_operations(limit)
        if not pending_ops:
            logger.debug("No component index operations need reconciliation")
            return result

        logger.info(f"Reconciling {len(pending_ops)} stale component index entries")
        for pending in pending_ops:
            result.processed += 1
            try:
                await self._converge(pending.component_id)
            except (SearchIndexError, PersistenceError) as e:
                logger.error(f"Failed to reconcile component {pending.component_id}: {e}")
                result.failed += 1
                try:
                    await self.datastore.mark_pending_index_failed(pending.id, str(e))
                except PersistenceError as mark_error:
                    logger.error(f"Could not mark pending entry {pending.id} as failed: {mark_error}")
                continue

            result.succeeded += 1
            try:
                if not await self.datastore.delete_pending_index_operation(pending):
                    logger.debug(f"Pending entry for component {pending.component_id} changed during reconciliation")
            except PersistenceError as e:
                # the entry stays and is replayed again next run
                logger.error(f"Could not clear pending entry {pending.id}: {e}")

        logger.info(
            f"Index reconciliation finished: {result.succeeded} succeeded, {result.failed} failed"
        )
        return result

    async def _converge(self, component_id: int):
        component = await self.datastore.find_by_id(component_id)
        if component is None:
            await self.search_index.delete_by_id(component_id)
        else:
            await self.search_index.index(component)

    async def reindex_all(self, batch_size: int = 100) -> int:
        """Re-mirror every datastore row into the search index. Returns the number indexed."""
        indexed = 0
        page_number = 0
        while True:
            page = await self.datastore.find_all(page_number, batch_size, [SortOrder("id")])
            for component in page.items:
                await self.search_index.index(component)
                indexed += 1
            if not page.has_next:
                break
            page_number += 1
        logger.info(f"Reindexed {indexed} components")
        return indexed
