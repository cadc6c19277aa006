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

from typing import Optional

from pydantic import BaseModel, ConfigDict


class ComponentBody(BaseModel):
    """Request body for create and update; constraints are checked by schema.validation"""

    id: Optional[int] = None
    name: Optional[str] = None


class Component(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class ErrorResponse(BaseModel):
    code: str
    message: str


class HealthComponent(BaseModel):
    status: str
    detail: Optional[str] = None


class Health(BaseModel):
    status: str
    datastore: HealthComponent
    search_index: HealthComponent
