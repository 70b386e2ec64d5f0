from __future__ import annotations

import uuid
from typing import Collection

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taxonomy_api.dependencies import get_session
from taxonomy_api.models import (
    CategoryRef,
    CategoryReference,
    LegacyCategoryLabel,
    Resource,
    ResourcePage,
    ResourceStatus,
)
from taxonomy_api.tables import ResourcesTable


class ResourcesDataAccess:
    """Read side of the resource store, as far as categories need it."""

    def __init__(self, session: AsyncSession = Depends(get_session)) -> None:
        self._session = session

    async def count_by_category(self, category_ids: Collection[uuid.UUID]) -> int:
        if not category_ids:
            return 0
        result = await self._session.execute(
            select(func.count(ResourcesTable.id)).where(
                ResourcesTable.category_id.in_(category_ids)
            )
        )
        return result.scalar_one()

    async def count_grouped_by_category(self) -> dict[uuid.UUID, int]:
        result = await self._session.execute(
            select(ResourcesTable.category_id, func.count(ResourcesTable.id))
            .where(ResourcesTable.category_id.is_not(None))
            .group_by(ResourcesTable.category_id)
        )
        return {category_id: count for category_id, count in result.all()}

    async def list_by_category(
        self,
        category_ids: Collection[uuid.UUID],
        *,
        page: int,
        limit: int,
        status: ResourceStatus = ResourceStatus.APPROVED,
    ) -> ResourcePage:
        conditions = (
            ResourcesTable.category_id.in_(category_ids),
            ResourcesTable.status == status.value,
        )
        total_result = await self._session.execute(
            select(func.count(ResourcesTable.id)).where(*conditions)
        )
        result = await self._session.execute(
            select(ResourcesTable)
            .where(*conditions)
            .order_by(ResourcesTable.created_at.desc(), ResourcesTable.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return ResourcePage(
            resources=[_to_resource(resource) for resource in result.scalars()],
            page=page,
            limit=limit,
            total=total_result.scalar_one(),
        )


def _category_ref(resource: ResourcesTable) -> CategoryRef | None:
    if resource.category_id is not None:
        return CategoryReference(id=resource.category_id)
    if resource.category_label:
        return LegacyCategoryLabel(text=resource.category_label)
    return None


def _to_resource(resource: ResourcesTable) -> Resource:
    return Resource(
        id=resource.id,
        title=resource.title,
        link=resource.link,
        status=ResourceStatus(resource.status),
        category=_category_ref(resource),
        created_at=resource.created_at,
    )
