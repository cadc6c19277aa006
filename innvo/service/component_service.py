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
from typing import Callable, Optional

from tenacity import AsyncRetrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential

from innvo.config import settings
from innvo.db.models import Component, IndexOperation
from innvo.exceptions import ConflictError, PartialWriteError, PersistenceError, SearchIndexError
from innvo.schema.validation import ENTITY_NAME

logger = logging.getLogger(__name__)


def trigger_index_reconciliation():
    """Ask the worker to replay pending index operations now instead of waiting for the next beat"""
    try:
        from innvo.tasks.reconcile_tasks import reconcile_component_index_task

        reconcile_component_index_task.delay()
        logger.debug("Component index reconciliation task triggered")
    except ImportError:
        logger.warning("Celery not available, skipping index reconciliation trigger")
    except Exception as e:
        logger.warning(f"Failed to trigger index reconciliation task: {e}")


class ComponentService:
    """
    Writes components to the datastore and mirrors them into the search index.

    The datastore write always comes first and is never retried. The index
    write only happens once the datastore write succeeded, and is retried
    with exponential backoff. When the index write still fails the stale
    component is handed to ``pending_recorder`` and PartialWriteError is
    raised; the datastore change is kept.
    """

    def __init__(
        self,
        datastore,
        search_index,
        pending_recorder=None,
        reconcile_trigger: Optional[Callable[[], None]] = None,
        retry_attempts: Optional[int] = None,
        retry_wait: Optional[float] = None,
        retry_max_wait: Optional[float] = None,
    ):
        self.datastore = datastore
        self.search_index = search_index
        self.pending_recorder = pending_recorder
        self.reconcile_trigger = reconcile_trigger
        if retry_attempts is None:
            retry_attempts = settings.search_index_retry_attempts
        self.retry_attempts = max(1, retry_attempts)
        self.retry_wait = retry_wait if retry_wait is not None else settings.search_index_retry_wait
        self.retry_max_wait = retry_max_wait if retry_max_wait is not None else settings.search_index_retry_max_wait

    async def create(self, component: Component) -> Component:
        if component.id is not None:
            raise ConflictError("A new component cannot already have an ID", ENTITY_NAME)

        result = await self.datastore.insert(component)
        logger.info(f"Saved component {result.id}")
        await self._mirror(IndexOperation.INDEX, result.id, self.search_index.index, result, component=result)
        return result

    async def update(self, component: Component) -> Component:
        # an update without an id is treated as a create
        if component.id is None:
            return await self.create(component)

        result = await self.datastore.replace(component)
        logger.info(f"Updated component {result.id}")
        await self._mirror(IndexOperation.INDEX, result.id, self.search_index.index, result, component=result)
        return result

    async def delete(self, component_id: int) -> None:
        removed = await self.datastore.delete_by_id(component_id)
        if removed:
            logger.info(f"Deleted component {component_id}")
        else:
            logger.debug(f"Component {component_id} was already absent from the datastore")
        # the index delete runs regardless so a retried delete still converges the index
        await self._mirror(IndexOperation.DELETE, component_id, self.search_index.delete_by_id, component_id)

    async def _mirror(self, operation: IndexOperation, component_id: int, write, *args, component=None):
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.retry_attempts),
                wait=wait_exponential(multiplier=self.retry_wait, max=self.retry_max_wait),
                retry=retry_if_exception_type(SearchIndexError),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    await write(*args)
        except SearchIndexError as e:
            logger.error(
                f"Search index {operation.value} of component {component_id} failed after "
                f"{self.retry_attempts} attempts: {e}"
            )
            await self._record_pending(component_id, operation, str(e))
            raise PartialWriteError(operation.value, component_id, str(e), ENTITY_NAME, component=component) from e

    async def _record_pending(self, component_id: int, operation: IndexOperation, error: str):
        if self.pending_recorder is not None:
            try:
                await self.pending_recorder.record_pending_index(component_id, operation, error)
            except PersistenceError as e:
                logger.error(f"Could not record stale index entry for component {component_id}: {e}")
        if self.reconcile_trigger is not None:
            self.reconcile_trigger()
