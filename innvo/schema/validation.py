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

from dataclasses import dataclass
from typing import Any, Dict, Optional

from innvo.exceptions import ValidationError

ENTITY_NAME = "component"

NAME_MAX_LENGTH = 50
NAME_REQUIRED = True


@dataclass(frozen=True)
class FieldConstraint:
    required: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None


COMPONENT_FIELD_CONSTRAINTS: Dict[str, FieldConstraint] = {
    "name": FieldConstraint(required=NAME_REQUIRED, min_length=1, max_length=NAME_MAX_LENGTH),
}


def check_field(field: str, value: Any, constraint: FieldConstraint, entity_name: str = ENTITY_NAME):
    if value is None:
        if constraint.required:
            raise ValidationError(field, f"{field} is required", entity_name)
        return
    if not isinstance(value, str):
        raise ValidationError(field, f"{field} must be a string", entity_name)
    if constraint.min_length is not None and len(value) < constraint.min_length:
        raise ValidationError(field, f"{field} must not be empty", entity_name)
    if constraint.max_length is not None and len(value) > constraint.max_length:
        raise ValidationError(field, f"{field} must be at most {constraint.max_length} characters", entity_name)


def validate_component(component) -> None:
    """Check a component against COMPONENT_FIELD_CONSTRAINTS, raising ValidationError on the first violation"""
    for field, constraint in COMPONENT_FIELD_CONSTRAINTS.items():
        check_field(field, getattr(component, field, None), constraint)
