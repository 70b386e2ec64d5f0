from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class ResourceStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    TERMINATED = "terminated"


@dataclass(frozen=True, slots=True)
class CategoryReference:
    id: uuid.UUID


@dataclass(frozen=True, slots=True)
class LegacyCategoryLabel:
    text: str


CategoryRef = CategoryReference | LegacyCategoryLabel


@dataclass(frozen=True, slots=True)
class Resource:
    id: uuid.UUID
    title: str
    link: str
    status: ResourceStatus
    category: CategoryRef | None
    created_at: datetime


@dataclass(frozen=True, slots=True)
class ResourcePage:
    resources: list[Resource]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit)


class ResourceResponse(BaseModel):
    id: uuid.UUID
    title: str
    link: str
    status: ResourceStatus
    category_id: uuid.UUID | None
    category_label: str | None
    created_at: datetime

    @classmethod
    def from_resource(cls, resource: Resource) -> ResourceResponse:
        category_id = None
        category_label = None
        match resource.category:
            case CategoryReference(id=reference_id):
                category_id = reference_id
            case LegacyCategoryLabel(text=text):
                category_label = text
        return cls(
            id=resource.id,
            title=resource.title,
            link=resource.link,
            status=resource.status,
            category_id=category_id,
            category_label=category_label,
            created_at=resource.created_at,
        )


class PaginationResponse(BaseModel):
    current_page: int
    total_pages: int
    total_resources: int
    limit: int


class ResourcePageResponse(BaseModel):
    data: list[ResourceResponse]
    pagination: PaginationResponse

    @classmethod
    def from_page(cls, page: ResourcePage) -> ResourcePageResponse:
        return cls(
            data=[ResourceResponse.from_resource(resource) for resource in page.resources],
            pagination=PaginationResponse(
                current_page=page.page,
                total_pages=page.total_pages,
                total_resources=page.total,
                limit=page.limit,
            ),
        )
