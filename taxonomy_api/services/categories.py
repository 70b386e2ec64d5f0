from __future__ import annotations

import dataclasses
import uuid

from fastapi import Depends

from taxonomy_api.data_access import CategoriesDataAccess, ResourcesDataAccess
from taxonomy_api.errors import (
    CycleDetectedError,
    NotFoundError,
    ReferentialIntegrityError,
    ValidationError,
)
from taxonomy_api.log import get_logger
from taxonomy_api.models import Category, CategoryNode, ResourcePage
from taxonomy_api.models.categories import (
    DESCRIPTION_MAX_LENGTH,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
)
from taxonomy_api.services.tree import DeletionGuard, TreeMaintainer
from taxonomy_api.tree import PATH_SEPARATOR, attach, build_forest, would_cycle

logger = get_logger(__name__)

UPDATABLE_FIELDS = frozenset({"name", "description", "parent_id", "order", "is_active"})


def _clean_name(name: object) -> str:
    if not isinstance(name, str):
        raise ValidationError("Category name is required.")
    name = name.strip()
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise ValidationError(
            f"Category name must be between {NAME_MIN_LENGTH} and "
            f"{NAME_MAX_LENGTH} characters."
        )
    if PATH_SEPARATOR in name:
        raise ValidationError(f'Category name cannot contain "{PATH_SEPARATOR}".')
    return name


def _clean_description(description: object) -> str | None:
    if description is None:
        return None
    if not isinstance(description, str):
        raise ValidationError("Category description must be text.")
    description = description.strip()
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(
            f"Category description cannot exceed {DESCRIPTION_MAX_LENGTH} characters."
        )
    return description or None


def _clean_order(order: object) -> int:
    if isinstance(order, bool) or not isinstance(order, int) or order < 0:
        raise ValidationError("Category order must be a non-negative integer.")
    return order


class CategoriesService:
    def __init__(
        self,
        categories_store: CategoriesDataAccess = Depends(),
        resources_store: ResourcesDataAccess = Depends(),
        tree_maintainer: TreeMaintainer = Depends(),
        deletion_guard: DeletionGuard = Depends(),
    ) -> None:
        self._categories_store = categories_store
        self._resources_store = resources_store
        self._tree_maintainer = tree_maintainer
        self._deletion_guard = deletion_guard

    async def _require_category(self, category_id: uuid.UUID) -> Category:
        category = await self._categories_store.get_category(category_id)
        if category is None:
            raise NotFoundError("Category not found.")
        return category

    async def _require_parent(self, parent_id: uuid.UUID | None) -> Category | None:
        if parent_id is None:
            return None
        parent = await self._categories_store.get_category(parent_id)
        if parent is None:
            raise NotFoundError("Parent category not found.")
        return parent

    async def create_category(
        self,
        *,
        name: str,
        description: str | None = None,
        parent_id: uuid.UUID | None = None,
        order: int | None = None,
    ) -> Category:
        name = _clean_name(name)
        description = _clean_description(description)
        order = _clean_order(0 if order is None else order)
        parent = await self._require_parent(parent_id)

        category = await self._categories_store.create_category(
            name=name,
            description=description,
            parent_id=parent_id,
            placement=attach(name, parent),
            order=order,
        )
        logger.info(
            "category_created",
            category_id=str(category.id),
            path=category.path,
            level=category.level,
        )
        return category

    async def list_categories(
        self, *, active_only: bool = False, with_resource_count: bool = False
    ) -> list[Category]:
        categories = await self._categories_store.list_categories(active_only=active_only)
        if not with_resource_count:
            return categories
        counts = await self._resources_store.count_grouped_by_category()
        return [
            dataclasses.replace(category, resource_count=counts.get(category.id, 0))
            for category in categories
        ]

    async def get_category_tree(
        self, *, active_only: bool = False, with_resource_count: bool = False
    ) -> list[CategoryNode]:
        categories = await self.list_categories(
            active_only=active_only, with_resource_count=with_resource_count
        )
        return build_forest(categories)

    async def get_category(self, category_id: uuid.UUID) -> Category:
        return await self._require_category(category_id)

    async def update_category(
        self, category_id: uuid.UUID, updates: dict[str, object]
    ) -> Category:
        category = await self._require_category(category_id)

        unknown_fields = set(updates) - UPDATABLE_FIELDS
        if unknown_fields:
            raise ValidationError(
                f"Fields cannot be updated: {', '.join(sorted(unknown_fields))}"
            )

        changes: dict[str, object] = {}
        if "name" in updates:
            changes["name"] = _clean_name(updates["name"])
        if "description" in updates:
            changes["description"] = _clean_description(updates["description"])
        if "order" in updates:
            changes["order"] = _clean_order(updates["order"])
        if "is_active" in updates:
            if not isinstance(updates["is_active"], bool):
                raise ValidationError("is_active must be a boolean.")
            changes["is_active"] = updates["is_active"]

        name = changes.get("name", category.name)
        parent_id = updates.get("parent_id", category.parent_id)
        parent_changed = parent_id != category.parent_id
        structural = parent_changed or name != category.name

        parent: Category | None = None
        if parent_changed:
            if parent_id is not None and not isinstance(parent_id, uuid.UUID):
                raise ValidationError("Parent id must be a UUID.")
            parent = await self._require_parent(parent_id)
            if parent is not None:
                # Paths are built from names, so the subtree of a same-named
                # twin shares this prefix and is refused as well.
                paths = {category.id: category.path, parent.id: parent.path}
                if would_cycle(parent.id, category.id, paths.__getitem__):
                    raise CycleDetectedError(
                        "A category cannot be moved under itself or one of its descendants."
                    )
            changes["parent_id"] = parent_id
        elif structural:
            parent = await self._require_parent(category.parent_id)

        if structural:
            placement = attach(str(name), parent)
            changes["level"] = placement.level
            changes["path"] = placement.path

        updated = await self._categories_store.update_category(category.id, changes)
        if updated is None:
            raise NotFoundError("Category not found.")

        if structural:
            logger.info(
                "category_moved",
                category_id=str(updated.id),
                old_path=category.path,
                new_path=updated.path,
            )
            await self._tree_maintainer.cascade(updated)
        return updated

    async def delete_category(self, category_id: uuid.UUID) -> None:
        category = await self._require_category(category_id)
        check = await self._deletion_guard.can_delete(category.id)
        if not check.allowed:
            if check.blocking_children:
                message = "Category has child categories and cannot be deleted."
            else:
                message = "Category is used by resources and cannot be deleted."
            raise ReferentialIntegrityError(
                message,
                blocking_children=[
                    {"id": str(child.id), "name": child.name}
                    for child in check.blocking_children
                ],
                blocking_resource_count=check.blocking_resource_count,
            )

        deleted = await self._categories_store.delete_category(category.id)
        if not deleted:
            raise NotFoundError("Category not found.")
        logger.info("category_deleted", category_id=str(category.id), path=category.path)

    async def get_category_resources(
        self, category_id: uuid.UUID, *, page: int, limit: int
    ) -> ResourcePage:
        category = await self._require_category(category_id)
        category_ids = await self._categories_store.list_subtree_ids(category.path)
        if category.id not in category_ids:
            category_ids.append(category.id)
        return await self._resources_store.list_by_category(
            category_ids, page=page, limit=limit
        )

    async def repair_tree(self) -> int:
        return await self._tree_maintainer.rebuild()
