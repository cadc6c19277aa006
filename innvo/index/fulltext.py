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
from typing import Optional

from elasticsearch import ApiError, AsyncElasticsearch, NotFoundError, TransportError

from innvo.config import settings
from innvo.db.models import Component
from innvo.exceptions import SearchIndexError
from innvo.schema.pagination import Page

logger = logging.getLogger(__name__)

COMPONENT_MAPPINGS = {
    "properties": {
        "id": {"type": "long"},
        "name": {"type": "text", "fields": {"keyword": {"type": "keyword", "ignore_above": 256}}},
    }
}


class ComponentSearchIndex:
    """Elasticsearch mirror of the component table"""

    def __init__(
        self,
        client: Optional[AsyncElasticsearch] = None,
        index_name: Optional[str] = None,
        refresh: Optional[str] = None,
    ):
        self._client = client
        self.index_name = index_name or settings.es_index_name
        self.refresh = refresh or settings.es_refresh

    @property
    def client(self) -> AsyncElasticsearch:
        if self._client is None:
            self._client = AsyncElasticsearch(settings.es_host, request_timeout=settings.es_request_timeout)
        return self._client

    async def ensure_index(self):
        """Create the index with its mapping if it does not exist yet"""
        try:
            if await self.client.indices.exists(index=self.index_name):
                return
            await self.client.indices.create(index=self.index_name, mappings=COMPONENT_MAPPINGS)
            logger.info(f"Created search index {self.index_name}")
        except ApiError as e:
            # another instance may have created it concurrently
            if getattr(e, "error", None) == "resource_already_exists_exception":
                return
            raise SearchIndexError(f"failed to create index {self.index_name}: {e}") from e
        except TransportError as e:
            raise SearchIndexError(f"failed to create index {self.index_name}: {e}") from e

    async def index(self, component: Component):
        """Write the full document for component, replacing any existing one"""
        try:
            await self.client.index(
                index=self.index_name,
                id=str(component.id),
                document=component.to_document(),
                refresh=self.refresh,
            )
        except (ApiError, TransportError) as e:
            raise SearchIndexError(f"failed to index component {component.id}: {e}") from e
        logger.debug(f"Indexed component {component.id}")

    async def delete_by_id(self, component_id: int) -> bool:
        """Remove the document; an absent document is not an error"""
        try:
            await self.client.delete(index=self.index_name, id=str(component_id), refresh=self.refresh)
        except NotFoundError:
            logger.debug(f"Component {component_id} was not in the search index")
            return False
        except (ApiError, TransportError) as e:
            raise SearchIndexError(f"failed to delete component {component_id} from index: {e}") from e
        logger.debug(f"Deleted component {component_id} from search index")
        return True

    async def exists(self, component_id: int) -> bool:
        try:
            return bool(await self.client.exists(index=self.index_name, id=str(component_id)))
        except (ApiError, TransportError) as e:
            raise SearchIndexError(f"failed to look up component {component_id}: {e}") from e

    async def search(self, query: str, page: int, size: int) -> Page[Component]:
        """Run query as an Elasticsearch query_string query; its syntax is passed through untouched"""
        try:
            resp = await self.client.search(
                index=self.index_name,
                query={"query_string": {"query": query}},
                from_=page * size,
                size=size,
                track_total_hits=True,
            )
        except NotFoundError:
            # nothing has been indexed yet
            return Page(items=[], total=0, page=page, size=size)
        except (ApiError, TransportError) as e:
            raise SearchIndexError(f"search for '{query}' failed: {e}") from e

        hits = resp["hits"]
        items = [Component(id=hit["_source"]["id"], name=hit["_source"]["name"]) for hit in hits["hits"]]
        return Page(items=items, total=hits["total"]["value"], page=page, size=size)

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    async def close(self):
        if self._client is not None:
            await self._client.close()
            self._client = None


# Global instance wired into the API dependencies
component_search_index = ComponentSearchIndex()
