"""
In-memory stand-ins for the datastore and the search index.

They follow the same async interface as ComponentDatabaseOps and
ComponentSearchIndex so they can be injected into ComponentService
and into the API dependencies.
"""

from typing import Dict, List, Optional

from innvo.db.models import Component, IndexOperation
from innvo.exceptions import PersistenceError, SearchIndexError
from innvo.schema.pagination import Page, SortDirection, SortOrder

DEFAULT_NAME = "AAAAAAAAAA"
UPDATED_NAME = "BBBBBBBBBB"


class InMemoryDatastore:
    def __init__(self):
        self.rows: Dict[int, Component] = {}
        self.fail_writes = False
        self.pending: Dict[int, IndexOperation] = {}
        self._next_id = 1

    def _check_writable(self):
        if self.fail_writes:
            raise PersistenceError("datastore unavailable")

    async def insert(self, component: Component) -> Component:
        self._check_writable()
        instance = Component(id=self._next_id, name=component.name)
        self._next_id += 1
        self.rows[instance.id] = instance
        return Component(id=instance.id, name=instance.name)

    async def replace(self, component: Component) -> Component:
        self._check_writable()
        self.rows[component.id] = Component(id=component.id, name=component.name)
        self._next_id = max(self._next_id, component.id + 1)
        return Component(id=component.id, name=component.name)

    async def delete_by_id(self, component_id: int) -> bool:
        self._check_writable()
        return self.rows.pop(component_id, None) is not None

    async def find_by_id(self, component_id: int) -> Optional[Component]:
        row = self.rows.get(component_id)
        return Component(id=row.id, name=row.name) if row else None

    async def find_all(self, page: int, size: int, sort: Optional[List[SortOrder]] = None) -> Page[Component]:
        items = sorted(self.rows.values(), key=lambda c: c.id)
        for order in reversed(sort or []):
            items.sort(key=lambda c: getattr(c, order.property), reverse=order.direction == SortDirection.DESC)
        return Page(items=items[page * size:(page + 1) * size], total=len(items), page=page, size=size)

    async def count(self) -> int:
        return len(self.rows)

    async def ping(self) -> bool:
        return True

    async def record_pending_index(self, component_id: int, operation: IndexOperation, error: str = None):
        self._check_writable()
        self.pending[component_id] = operation


class InMemorySearchIndex:
    """
    Understands ``field:value`` queries and bare terms matched against name.

    ``failures`` makes the next N writes raise SearchIndexError; a negative
    value makes every write fail.
    """

    def __init__(self):
        self.documents: Dict[int, dict] = {}
        self.calls: List[tuple] = []
        self.failures = 0

    def _maybe_fail(self):
        if self.failures < 0:
            raise SearchIndexError("search index unavailable")
        if self.failures > 0:
            self.failures -= 1
            raise SearchIndexError("search index unavailable")

    async def index(self, component: Component):
        self.calls.append(("index", component.id))
        self._maybe_fail()
        self.documents[component.id] = component.to_document()

    async def delete_by_id(self, component_id: int) -> bool:
        self.calls.append(("delete", component_id))
        self._maybe_fail()
        return self.documents.pop(component_id, None) is not None

    async def exists(self, component_id: int) -> bool:
        return component_id in self.documents

    async def search(self, query: str, page: int, size: int) -> Page[Component]:
        if ":" in query:
            field, value = query.split(":", 1)
        else:
            field, value = "name", query
        matches = [
            Component(**doc)
            for _, doc in sorted(self.documents.items())
            if str(doc.get(field)) == value
        ]
        return Page(items=matches[page * size:(page + 1) * size], total=len(matches), page=page, size=size)

    async def ping(self) -> bool:
        return True
