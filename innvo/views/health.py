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

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from innvo.db.ops import ComponentDatabaseOps
from innvo.exceptions import PersistenceError
from innvo.index.fulltext import ComponentSearchIndex
from innvo.schema.view_models import Health, HealthComponent
from innvo.views.deps import get_datastore, get_search_index

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_view(
    datastore: ComponentDatabaseOps = Depends(get_datastore),
    search_index: ComponentSearchIndex = Depends(get_search_index),
):
    try:
        await datastore.ping()
        datastore_health = HealthComponent(status="UP")
    except PersistenceError as e:
        logger.warning(f"Datastore health check failed: {e}")
        datastore_health = HealthComponent(status="DOWN", detail=str(e))

    # ping() reports an unreachable cluster as False rather than raising
    if await search_index.ping():
        search_health = HealthComponent(status="UP")
    else:
        search_health = HealthComponent(status="DOWN", detail="search index unreachable")

    healthy = datastore_health.status == "UP" and search_health.status == "UP"
    health = Health(status="UP" if healthy else "DOWN", datastore=datastore_health, search_index=search_health)
    return JSONResponse(
        status_code=HTTPStatus.OK if healthy else HTTPStatus.SERVICE_UNAVAILABLE,
        content=health.model_dump(),
    )
