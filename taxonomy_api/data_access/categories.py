from __future__ import annotations

import uuid
from typing import Iterable

from fastapi import Depends
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from taxonomy_api.dependencies import get_session
from taxonomy_api.errors import ConcurrentModificationError
from taxonomy_api.models import Category, Placement
from taxonomy_api.tables import CategoriesTable
from taxonomy_api.tree import PATH_SEPARATOR


class CategoriesDataAccess:
    def __init__(self, session: AsyncSession = Depends(get_session)) -> None:
        self._session = session

    async def _flush(self) -> None:
        try:
            await self._session.flush()
        except StaleDataError as exc:
            raise ConcurrentModificationError(
                "Category was modified concurrently; retry the request."
            ) from exc

    async def get_category(self, category_id: uuid.UUID) -> Category | None:
        category = await self._session.get(CategoriesTable, category_id)
        if category is None:
            return None
        return _to_category(category)

    async def list_categories(self, *, active_only: bool = False) -> list[Category]:
        statement = select(CategoriesTable).order_by(
            CategoriesTable.level,
            CategoriesTable.order,
            CategoriesTable.name,
            CategoriesTable.id,
        )
        if active_only:
            statement = statement.where(CategoriesTable.is_active.is_(True))
        result = await self._session.execute(statement)
        return [_to_category(category) for category in result.scalars()]

    async def list_children(self, category_id: uuid.UUID) -> list[Category]:
        result = await self._session.execute(
            select(CategoriesTable)
            .where(CategoriesTable.parent_id == category_id)
            .order_by(CategoriesTable.order, CategoriesTable.name, CategoriesTable.id)
        )
        return [_to_category(category) for category in result.scalars()]

    async def list_roots(self) -> list[Category]:
        result = await self._session.execute(
            select(CategoriesTable)
            .where(CategoriesTable.parent_id.is_(None))
            .order_by(CategoriesTable.order, CategoriesTable.name, CategoriesTable.id)
        )
        return [_to_category(category) for category in result.scalars()]

    async def list_subtree_ids(self, path: str) -> list[uuid.UUID]:
        """Ids of the category at ``path`` and everything below it."""
        # Exact prefix comparison: SQLite's LIKE ignores ASCII case.
        prefix = f"{path}{PATH_SEPARATOR}"
        result = await self._session.execute(
            select(CategoriesTable.id).where(
                or_(
                    CategoriesTable.path == path,
                    func.substr(CategoriesTable.path, 1, len(prefix)) == prefix,
                )
            )
        )
        return list(result.scalars())

    async def name_index(self) -> dict[str, uuid.UUID]:
        result = await self._session.execute(
            select(CategoriesTable.name, CategoriesTable.id).order_by(
                CategoriesTable.created_at
            )
        )
        index: dict[str, uuid.UUID] = {}
        for name, category_id in result.all():
            index.setdefault(name, category_id)
        return index

    async def create_category(
        self,
        *,
        name: str,
        description: str | None,
        parent_id: uuid.UUID | None,
        placement: Placement,
        order: int,
    ) -> Category:
        category = CategoriesTable(
            name=name,
            description=description,
            parent_id=parent_id,
            level=placement.level,
            path=placement.path,
            order=order,
            is_active=True,
        )
        self._session.add(category)
        await self._flush()
        await self._session.refresh(category)
        return _to_category(category)

    async def update_category(
        self, category_id: uuid.UUID, updates: dict[str, object]
    ) -> Category | None:
        category = await self._session.get(CategoriesTable, category_id)
        if category is None:
            return None
        for field, value in updates.items():
            setattr(category, field, value)
        await self._flush()
        await self._session.refresh(category)
        return _to_category(category)

    async def apply_placements(
        self, placements: Iterable[tuple[uuid.UUID, Placement]]
    ) -> int:
        """Write new level/path values for many categories in one flush."""
        count = 0
        for category_id, placement in placements:
            category = await self._session.get(CategoriesTable, category_id)
            if category is None:
                raise ConcurrentModificationError(
                    "Category was removed while its subtree was being updated."
                )
            category.level = placement.level
            category.path = placement.path
            count += 1
        await self._flush()
        return count

    async def delete_category(self, category_id: uuid.UUID) -> bool:
        category = await self._session.get(CategoriesTable, category_id)
        if category is None:
            return False
        await self._session.delete(category)
        await self._flush()
        return True


def _to_category(category: CategoriesTable) -> Category:
    return Category(
        id=category.id,
        name=category.name,
        description=category.description,
        parent_id=category.parent_id,
        level=category.level,
        order=category.order,
        path=category.path,
        is_active=category.is_active,
        created_at=category.created_at,
        updated_at=category.updated_at,
    )
