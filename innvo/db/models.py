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

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import BigInteger, Column, Integer
from sqlmodel import Field, SQLModel, UniqueConstraint

from innvo.schema.validation import NAME_MAX_LENGTH

# sqlite only autoincrements INTEGER PRIMARY KEY
IdType = BigInteger().with_variant(Integer, "sqlite")


class IndexOperation(str, Enum):
    INDEX = "index"
    DELETE = "delete"


class Component(SQLModel, table=True):
    __tablename__ = "component"

    id: Optional[int] = Field(default=None, sa_column=Column(IdType, primary_key=True, autoincrement=True))
    name: str = Field(max_length=NAME_MAX_LENGTH)

    def to_document(self) -> dict:
        """Search index document; keyed by the datastore id"""
        return {"id": self.id, "name": self.name}


class PendingIndexOperation(SQLModel, table=True):
    """A component whose search index copy is known to be stale after a partial write"""

    __tablename__ = "component_index_pending"
    __table_args__ = (UniqueConstraint("component_id", name="uq_component_index_pending_component_id"),)

    id: Optional[int] = Field(default=None, sa_column=Column(IdType, primary_key=True, autoincrement=True))
    component_id: int = Field(sa_column=Column(BigInteger, nullable=False))
    operation: IndexOperation
    error: Optional[str] = Field(default=None)
    attempts: int = Field(default=0)
    gmt_created: datetime = Field(default_factory=datetime.utcnow)
    gmt_updated: datetime = Field(default_factory=datetime.utcnow)
