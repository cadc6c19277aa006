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

import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import asc, delete, desc, func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from innvo.config import async_session_factory
from innvo.db.models import Component, IndexOperation, PendingIndexOperation
from innvo.exceptions import PersistenceError
from innvo.schema.pagination import Page, SortDirection, SortOrder
from innvo.schema.validation import ENTITY_NAME

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {"id", "name"}

# asyncpg connect failures reach us unwrapped by SQLAlchemy
DATASTORE_ERRORS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


class ComponentDatabaseOps:
    """Datastore for components; every write commits before returning"""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_factory = session_factory or async_session_factory

    async def _execute_query(self, query_func):
        """Run a read-only query in its own session"""
        try:
            async with self._session_factory() as session:
                return await query_func(session)
        except DATASTORE_ERRORS as e:
            logger.error(f"Datastore query failed: {e}")
            raise PersistenceError(f"datastore query failed: {e}", ENTITY_NAME) from e

    async def execute_with_transaction(self, operation):
        """Run operation in a session and commit; rolled back on error"""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    return await operation(session)
        except DATASTORE_ERRORS as e:
            logger.error(f"Datastore write failed: {e}")
            raise PersistenceError(f"datastore write failed: {e}", ENTITY_NAME) from e

    # Component Operations
    async def insert(self, component: Component) -> Component:
        """Insert a new row; the datastore assigns the id"""

        async def _operation(session):
            instance = Component(name=component.name)
            session.add(instance)
            await session.flush()
            await session.refresh(instance)
            return instance

        return await self.execute_with_transaction(_operation)

    async def replace(self, component: Component) -> Component:
        """Overwrite the row with component.id, inserting it if absent"""

        async def _operation(session):
            instance = await session.get(Component, component.id)
            if instance is None:
                instance = Component(id=component.id, name=component.name)
                session.add(instance)
                await session.flush()
                await self._advance_id_sequence(session, component.id)
            else:
                instance.name = component.name
                session.add(instance)
                await session.flush()
            await session.refresh(instance)
            return instance

        return await self.execute_with_transaction(_operation)

    async def _advance_id_sequence(self, session, component_id: int):
        """Keep the postgres id sequence ahead of an id written explicitly by replace"""
        if session.bind.dialect.name != "postgresql":
            # sqlite assigns max(rowid) + 1
            return
        await session.execute(
            text(
                "SELECT setval(pg_get_serial_sequence('component', 'id'), "
                "GREATEST(:component_id, COALESCE("
                "pg_sequence_last_value(pg_get_serial_sequence('component', 'id')::regclass), 0)))"
            ),
            {"component_id": component_id},
        )

    async def delete_by_id(self, component_id: int) -> bool:
        """Delete the row if present. Returns whether a row was removed."""

        async def _operation(session):
            result = await session.execute(delete(Component).where(Component.id == component_id))
            return result.rowcount > 0

        return await self.execute_with_transaction(_operation)

    async def find_by_id(self, component_id: int) -> Optional[Component]:
        async def _query(session):
            return await session.get(Component, component_id)

        return await self._execute_query(_query)

    async def find_all(self, page: int, size: int, sort: Optional[List[SortOrder]] = None) -> Page[Component]:
        async def _query(session):
            total = await session.scalar(select(func.count()).select_from(Component))
            stmt = select(Component)
            for order in sort or []:
                column = getattr(Component, order.property)
                stmt = stmt.order_by(desc(column) if order.direction == SortDirection.DESC else asc(column))
            # stable paging when the caller's sort leaves ties
            stmt = stmt.order_by(asc(Component.id)).offset(page * size).limit(size)
            result = await session.execute(stmt)
            return Page(items=list(result.scalars().all()), total=total or 0, page=page, size=size)

        return await self._execute_query(_query)

    async def count(self) -> int:
        async def _query(session):
            return await session.scalar(select(func.count()).select_from(Component)) or 0

        return await self._execute_query(_query)

    async def ping(self) -> bool:
        async def _query(session):
            await session.execute(text("SELECT 1"))
            return True

        return await self._execute_query(_query)

    # Pending Index Operations
    async def record_pending_index(self, component_id: int, operation: IndexOperation, error: str = None):
        """Remember that the index copy of component_id is stale; one row per component"""

        async def _operation(session):
            stmt = select(PendingIndexOperation).where(PendingIndexOperation.component_id == component_id)
            instance = (await session.execute(stmt)).scalars().first()
            if instance is None:
                instance = PendingIndexOperation(component_id=component_id, operation=operation, error=error)
            else:
                instance.operation = operation
                instance.error = error
                instance.gmt_updated = datetime.utcnow()
            session.add(instance)
            await session.flush()
            await session.refresh(instance)
            return instance

        return await self.execute_with_transaction(_operation)

    async def query_pending_index_operations(self, limit: int = 100) -> List[PendingIndexOperation]:
        async def _query(session):
            stmt = (
                select(PendingIndexOperation)
                .order_by(
                    asc(PendingIndexOperation.attempts),
                    asc(PendingIndexOperation.gmt_updated),
                    asc(PendingIndexOperation.id),
                )
                .limit(limit)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

        return await self._execute_query(_query)

    async def delete_pending_index_operation(self, pending: PendingIndexOperation) -> bool:
        """Remove a pending row unless a newer partial write has touched it since it was read"""

        async def _operation(session):
            result = await session.execute(
                delete(PendingIndexOperation).where(
                    PendingIndexOperation.id == pending.id,
                    PendingIndexOperation.gmt_updated == pending.gmt_updated,
                )
            )
            return result.rowcount > 0

        return await self.execute_with_transaction(_operation)

    async def mark_pending_index_failed(self, pending_id: int, error: str):
        async def _operation(session):
            instance = await session.get(PendingIndexOperation, pending_id)
            if instance:
                instance.attempts += 1
                instance.error = error
                session.add(instance)
            return instance

        return await self.execute_with_transaction(_operation)


# Global instance wired into the API dependencies
component_db_ops = ComponentDatabaseOps()
