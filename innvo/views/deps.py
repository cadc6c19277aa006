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

from fastapi import Depends

from innvo.db.ops import ComponentDatabaseOps, component_db_ops
from innvo.index.fulltext import ComponentSearchIndex, component_search_index
from innvo.service.component_service import ComponentService, trigger_index_reconciliation


def get_datastore() -> ComponentDatabaseOps:
    return component_db_ops


def get_search_index() -> ComponentSearchIndex:
    return component_search_index


def get_component_service(
    datastore: ComponentDatabaseOps = Depends(get_datastore),
    search_index: ComponentSearchIndex = Depends(get_search_index),
) -> ComponentService:
    return ComponentService(
        datastore,
        search_index,
        pending_recorder=datastore,
        reconcile_trigger=trigger_index_reconciliation,
    )
