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
from http import HTTPStatus
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from innvo.config import settings
from innvo.db import models as db_models
from innvo.db.ops import SORTABLE_FIELDS, ComponentDatabaseOps
from innvo.exceptions import NotFoundError
from innvo.index.fulltext import ComponentSearchIndex
from innvo.schema import view_models
from innvo.schema.pagination import parse_sort
from innvo.schema.validation import ENTITY_NAME, validate_component
from innvo.service.component_service import ComponentService
from innvo.views.deps import get_component_service, get_datastore, get_search_index
from innvo.views.utils import (
    entity_creation_alert,
    entity_deletion_alert,
    entity_update_alert,
    pagination_headers,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def to_db_component(body: view_models.ComponentBody) -> db_models.Component:
    validate_component(body)
    return db_models.Component(id=body.id, name=body.name)


def to_view_component(component: db_models.Component) -> view_models.Component:
    return view_models.Component(id=component.id, name=component.name)


def page_size_query():
    return Query(settings.default_page_size, ge=1, le=settings.max_page_size)


@router.post("/components", status_code=HTTPStatus.CREATED, tags=["components"])
async def create_component_view(
    body: view_models.ComponentBody,
    response: Response,
    service: ComponentService = Depends(get_component_service),
) -> view_models.Component:
    logger.debug(f"REST request to save Component : {body}")
    result = await service.create(to_db_component(body))
    response.headers["Location"] = f"/api/components/{result.id}"
    response.headers.update(entity_creation_alert(ENTITY_NAME, str(result.id)))
    return to_view_component(result)


@router.put("/components", tags=["components"])
async def update_component_view(
    body: view_models.ComponentBody,
    response: Response,
    service: ComponentService = Depends(get_component_service),
) -> view_models.Component:
    logger.debug(f"REST request to update Component : {body}")
    component = to_db_component(body)
    created = component.id is None
    result = await service.update(component)
    if created:
        response.status_code = HTTPStatus.CREATED
        response.headers["Location"] = f"/api/components/{result.id}"
        response.headers.update(entity_creation_alert(ENTITY_NAME, str(result.id)))
    else:
        response.headers.update(entity_update_alert(ENTITY_NAME, str(result.id)))
    return to_view_component(result)


@router.get("/components", tags=["components"])
async def list_components_view(
    response: Response,
    page: int = Query(0, ge=0),
    size: int = page_size_query(),
    sort: Optional[List[str]] = Query(None),
    datastore: ComponentDatabaseOps = Depends(get_datastore),
) -> List[view_models.Component]:
    logger.debug("REST request to get a page of Components")
    orders = parse_sort(sort, SORTABLE_FIELDS, ENTITY_NAME)
    result = await datastore.find_all(page, size, orders)
    response.headers.update(pagination_headers(result, "/api/components"))
    return [to_view_component(item) for item in result.items]


@router.get("/components/{component_id}", tags=["components"])
async def get_component_view(
    component_id: int,
    datastore: ComponentDatabaseOps = Depends(get_datastore),
) -> view_models.Component:
    logger.debug(f"REST request to get Component : {component_id}")
    component = await datastore.find_by_id(component_id)
    if component is None:
        raise NotFoundError(ENTITY_NAME, component_id)
    return to_view_component(component)


@router.delete("/components/{component_id}", tags=["components"])
async def delete_component_view(
    component_id: int,
    service: ComponentService = Depends(get_component_service),
) -> Response:
    logger.debug(f"REST request to delete Component : {component_id}")
    await service.delete(component_id)
    return Response(status_code=HTTPStatus.OK, headers=entity_deletion_alert(ENTITY_NAME, str(component_id)))


@router.get("/_search/components", tags=["components"])
async def search_components_view(
    response: Response,
    query: str,
    page: int = Query(0, ge=0),
    size: int = page_size_query(),
    search_index: ComponentSearchIndex = Depends(get_search_index),
) -> List[view_models.Component]:
    logger.debug(f"REST request to search for a page of Components for query {query}")
    result = await search_index.search(query, page, size)
    response.headers.update(pagination_headers(result, "/api/_search/components", query=query))
    return [to_view_component(item) for item in result.items]
