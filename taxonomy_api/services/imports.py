from __future__ import annotations

import dataclasses
from typing import Sequence

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taxonomy_api.data_access import CategoriesDataAccess
from taxonomy_api.dependencies import get_session
from taxonomy_api.errors import TaxonomyError
from taxonomy_api.log import get_logger
from taxonomy_api.models import CreatedCategory, ImportResult, ImportRow, ImportRowError
from taxonomy_api.models.categories import NAME_MAX_LENGTH, NAME_MIN_LENGTH
from taxonomy_api.models.imports import HEADER_ROW_OFFSET
from taxonomy_api.services.categories import CategoriesService
from taxonomy_api.tree import order_import_rows

logger = get_logger(__name__)


class CategoryImportService:
    """Creates categories from parsed sheet rows, one row at a time.

    Rows are processed sequentially because a row may name as its parent a
    category created by an earlier row of the same batch. A failing row is
    recorded in the result and never stops the rows after it.
    """

    def __init__(
        self,
        session: AsyncSession = Depends(get_session),
        categories_store: CategoriesDataAccess = Depends(),
        categories_service: CategoriesService = Depends(),
    ) -> None:
        self._session = session
        self._categories_store = categories_store
        self._categories_service = categories_service

    async def import_rows(self, rows: Sequence[ImportRow]) -> ImportResult:
        result = ImportResult(total_rows=len(rows))
        names = await self._categories_store.name_index()

        for index in order_import_rows(rows):
            row = rows[index]
            row_number = index + HEADER_ROW_OFFSET

            def fail(message: str) -> None:
                result.errors.append(
                    ImportRowError(row=row_number, error=message, data=dataclasses.asdict(row))
                )
                logger.info("category_import_row_failed", row=row_number, error=message)

            if not row.name or not NAME_MIN_LENGTH <= len(row.name) <= NAME_MAX_LENGTH:
                fail(
                    f"Category name must be between {NAME_MIN_LENGTH} and "
                    f"{NAME_MAX_LENGTH} characters."
                )
                continue
            if row.name in names:
                fail(f'Category name "{row.name}" already exists.')
                continue

            parent_id = None
            if row.parent_name:
                parent_id = names.get(row.parent_name)
                if parent_id is None:
                    fail(f'Parent category "{row.parent_name}" not found.')
                    continue

            try:
                async with self._session.begin_nested():
                    category = await self._categories_service.create_category(
                        name=row.name,
                        description=row.description,
                        parent_id=parent_id,
                        order=row.order,
                    )
            except TaxonomyError as exc:
                fail(exc.message)
                continue
            except SQLAlchemyError as exc:
                fail(f"Failed to create category: {exc.__class__.__name__}")
                continue

            names[row.name] = category.id
            result.created_categories.append(CreatedCategory(name=category.name, id=category.id))

        logger.info(
            "category_import_completed",
            total_rows=result.total_rows,
            success_count=result.success_count,
            error_count=result.error_count,
        )
        return result
