"""Pure functions over the category tree.

Nothing here touches the database: callers pass in the categories (or paths)
they already hold, which keeps the structural rules testable in isolation.
"""

from __future__ import annotations

import heapq
import uuid
from typing import Callable, Iterable, Sequence

from taxonomy_api.models import Category, CategoryNode, ImportRow, Placement

PATH_SEPARATOR = "/"


def would_cycle(
    candidate_parent_id: uuid.UUID,
    node_id: uuid.UUID,
    path_of: Callable[[uuid.UUID], str],
) -> bool:
    """Return True if making ``candidate_parent_id`` the parent of ``node_id``
    would make the node its own ancestor.

    Descendants are detected through the materialized path, so ``path_of``
    must return the stored path of both ids.
    """
    if candidate_parent_id == node_id:
        return True
    return path_of(candidate_parent_id).startswith(path_of(node_id) + PATH_SEPARATOR)


def attach(name: str, parent: Category | Placement | None) -> Placement:
    """Compute level and path for a node named ``name`` under ``parent``."""
    if parent is None:
        return Placement(level=1, path=name)
    return Placement(level=parent.level + 1, path=f"{parent.path}{PATH_SEPARATOR}{name}")


def subtree_prefix(path: str) -> str:
    return path + PATH_SEPARATOR


def build_forest(categories: Iterable[Category]) -> list[CategoryNode]:
    """Assemble a flat list of categories into nested root nodes.

    Siblings keep the order they had in ``categories``. A category whose parent
    is missing from the list is left out, since it cannot be placed.
    """
    nodes: dict[uuid.UUID, CategoryNode] = {}
    ordered: list[CategoryNode] = []
    for category in categories:
        node = CategoryNode.from_category(category)
        nodes[node.id] = node
        ordered.append(node)

    roots: list[CategoryNode] = []
    for node in ordered:
        if node.parent_id is None:
            roots.append(node)
            continue
        parent = nodes.get(node.parent_id)
        if parent is not None:
            parent.children.append(node)
    return roots


def order_import_rows(rows: Sequence[ImportRow]) -> list[int]:
    """Return row indexes in an order that creates parents before children.

    Rows without a parent name come first, then rows with one, each group in
    file order; a row naming a parent defined by another row in the batch is
    additionally held back until that row has been processed, however deep
    the chain. Rows caught in a naming cycle keep their relative order at the
    end, where they fail parent resolution.
    """
    first_definition: dict[str, int] = {}
    for index, row in enumerate(rows):
        if row.name and row.name not in first_definition:
            first_definition[row.name] = index

    dependents: dict[int, list[int]] = {}
    waiting: set[int] = set()
    for index, row in enumerate(rows):
        if not row.parent_name:
            continue
        provider = first_definition.get(row.parent_name)
        if provider is None or provider == index:
            continue
        dependents.setdefault(provider, []).append(index)
        waiting.add(index)

    def priority(index: int) -> tuple[bool, int]:
        return (bool(rows[index].parent_name), index)

    ready = [priority(index) for index in range(len(rows)) if index not in waiting]
    heapq.heapify(ready)

    ordered: list[int] = []
    while ready:
        _, index = heapq.heappop(ready)
        ordered.append(index)
        for dependent in dependents.get(index, ()):
            waiting.discard(dependent)
            heapq.heappush(ready, priority(dependent))

    ordered.extend(sorted(waiting))
    return ordered
