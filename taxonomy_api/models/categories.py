from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime

from pydantic import BaseModel, Field

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 500


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    parent_id: uuid.UUID | None = None
    order: int = Field(0, ge=0)


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    parent_id: uuid.UUID | None = None
    order: int | None = Field(None, ge=0)
    is_active: bool | None = None


class CategoryResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    parent_id: uuid.UUID | None
    level: int
    order: int
    path: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
    resource_count: int | None = None


class CategoryTreeResponse(CategoryResponse):
    children: list[CategoryTreeResponse] = []


class RepairResponse(BaseModel):
    updated: int


@dataclass(frozen=True, slots=True)
class Category:
    id: uuid.UUID
    name: str
    description: str | None
    parent_id: uuid.UUID | None
    level: int
    order: int
    path: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
    resource_count: int | None = None


@dataclass(slots=True)
class CategoryNode:
    """A category with its nested children, as assembled by ``build_forest``."""

    id: uuid.UUID
    name: str
    description: str | None
    parent_id: uuid.UUID | None
    level: int
    order: int
    path: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
    resource_count: int | None = None
    children: list[CategoryNode] = field(default_factory=list)

    @classmethod
    def from_category(cls, category: Category) -> CategoryNode:
        return cls(**asdict(category))


@dataclass(frozen=True, slots=True)
class Placement:
    level: int
    path: str


@dataclass(frozen=True, slots=True)
class DeletionCheck:
    allowed: bool
    blocking_children: list[Category]
    blocking_resource_count: int
