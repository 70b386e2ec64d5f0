from __future__ import annotations

import uuid
from collections import deque

from fastapi import Depends

from taxonomy_api.data_access import CategoriesDataAccess, ResourcesDataAccess
from taxonomy_api.log import get_logger
from taxonomy_api.models import Category, DeletionCheck, Placement
from taxonomy_api.tree import attach

logger = get_logger(__name__)


class TreeMaintainer:
    """Keeps the denormalized level/path of every category consistent."""

    def __init__(
        self,
        categories_store: CategoriesDataAccess = Depends(),
    ) -> None:
        self._categories_store = categories_store

    async def _plan_subtree(
        self, root: Category | None, placement: Placement | None
    ) -> list[tuple[uuid.UUID, Placement]]:
        # Breadth-first, so every child is placed from its parent's new values.
        planned: list[tuple[uuid.UUID, Placement]] = []
        queue: deque[tuple[Category | None, Placement | None]] = deque([(root, placement)])
        while queue:
            parent, parent_placement = queue.popleft()
            if parent is None:
                children = await self._categories_store.list_roots()
            else:
                children = await self._categories_store.list_children(parent.id)
            for child in children:
                child_placement = attach(child.name, parent_placement)
                if (child.level, child.path) != (child_placement.level, child_placement.path):
                    planned.append((child.id, child_placement))
                queue.append((child, child_placement))
        return planned

    async def cascade(self, node: Category) -> int:
        """Re-place every descendant of ``node`` after its name or parent changed.

        ``node`` must already carry its new level and path. All updates are
        planned first and written together; any failure propagates so the
        surrounding transaction rolls back as a whole.
        """
        planned = await self._plan_subtree(node, Placement(level=node.level, path=node.path))
        updated = await self._categories_store.apply_placements(planned)
        logger.info(
            "category_cascade_applied",
            category_id=str(node.id),
            path=node.path,
            descendants_updated=updated,
        )
        return updated

    async def rebuild(self) -> int:
        """Recompute level and path for the whole forest from the roots down.

        Returns the number of categories whose stored values were wrong.
        """
        planned = await self._plan_subtree(None, None)
        updated = await self._categories_store.apply_placements(planned)
        if updated:
            logger.warning("category_tree_repaired", categories_updated=updated)
        else:
            logger.info("category_tree_consistent")
        return updated


class DeletionGuard:
    def __init__(
        self,
        categories_store: CategoriesDataAccess = Depends(),
        resources_store: ResourcesDataAccess = Depends(),
    ) -> None:
        self._categories_store = categories_store
        self._resources_store = resources_store

    async def can_delete(self, category_id: uuid.UUID) -> DeletionCheck:
        """Only direct children block; a subtree must be removed leaf first."""
        children = await self._categories_store.list_children(category_id)
        resource_count = await self._resources_store.count_by_category([category_id])
        return DeletionCheck(
            allowed=not children and resource_count == 0,
            blocking_children=children,
            blocking_resource_count=resource_count,
        )
