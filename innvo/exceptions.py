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

from http import HTTPStatus
from typing import Any, Optional


class BusinessException(Exception):
    """Base class of errors reported to API callers"""

    http_status = HTTPStatus.BAD_REQUEST

    def __init__(self, error_code: str, message: str, entity_name: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.entity_name = entity_name


class ValidationError(BusinessException):
    """Entity fails a field constraint; raised before any write"""

    def __init__(self, field: str, message: str, entity_name: Optional[str] = None):
        super().__init__("validation", message, entity_name)
        self.field = field


class ConflictError(BusinessException):
    """Client supplied an id where the datastore is expected to assign one"""

    def __init__(self, message: str, entity_name: Optional[str] = None, error_code: str = "idexists"):
        super().__init__(error_code, message, entity_name)


class NotFoundError(BusinessException):
    http_status = HTTPStatus.NOT_FOUND

    def __init__(self, entity_name: str, entity_id: Any):
        super().__init__("notfound", f"{entity_name} {entity_id} not found", entity_name)
        self.entity_id = entity_id


class PersistenceError(BusinessException):
    """Datastore read or write failed; the search index has not been touched"""

    http_status = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str, entity_name: Optional[str] = None):
        super().__init__("persistence", message, entity_name)


class PartialWriteError(BusinessException):
    """
    Datastore write committed but the search index write did not.

    The datastore row is the accepted truth; ``component`` carries it when
    the failed operation was an index write.
    """

    http_status = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        operation: str,
        entity_id: Any,
        message: str,
        entity_name: Optional[str] = None,
        component: Any = None,
    ):
        super().__init__(
            "partialwrite",
            f"{operation} of {entity_name or 'entity'} {entity_id} committed but search index is stale: {message}",
            entity_name,
        )
        self.operation = operation
        self.entity_id = entity_id
        self.component = component


class SearchIndexError(Exception):
    """Search index request failed (transport or API error)"""


def invalid_param(field: str, message: str, entity_name: Optional[str] = None) -> ValidationError:
    return ValidationError(field, message, entity_name)
