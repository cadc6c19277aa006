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

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from innvo.exceptions import invalid_param

T = TypeVar("T")


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortOrder:
    property: str
    direction: SortDirection = SortDirection.ASC


@dataclass
class Page(Generic[T]):
    """One page of a result set; ``page`` is zero-based"""

    items: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 0
    size: int = 0

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return math.ceil(self.total / self.size)

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 0


def parse_sort(values: Optional[List[str]], allowed: set, entity_name: Optional[str] = None) -> List[SortOrder]:
    """
    Parse ``property[,asc|desc]`` sort parameters.

    Each value may also carry several properties before the direction,
    e.g. ``name,id,desc``.
    """
    orders = []
    for value in values or []:
        parts = [p.strip() for p in value.split(",") if p.strip()]
        if not parts:
            continue
        direction = SortDirection.ASC
        if parts[-1].lower() in (SortDirection.ASC.value, SortDirection.DESC.value):
            direction = SortDirection(parts.pop().lower())
        if not parts:
            raise invalid_param("sort", f"sort parameter '{value}' names no property", entity_name)
        for prop in parts:
            if prop not in allowed:
                raise invalid_param("sort", f"cannot sort by '{prop}'", entity_name)
            orders.append(SortOrder(prop, direction))
    return orders
