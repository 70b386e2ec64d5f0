from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

# Data rows start after the header line, and spreadsheets count from 1.
HEADER_ROW_OFFSET = 2


@dataclass(frozen=True, slots=True)
class ImportRow:
    name: str
    description: str | None = None
    parent_name: str | None = None
    order: int | None = None


@dataclass(frozen=True, slots=True)
class ImportRowError:
    row: int
    error: str
    data: dict[str, Any]


@dataclass(frozen=True, slots=True)
class CreatedCategory:
    name: str
    id: uuid.UUID


@dataclass(slots=True)
class ImportResult:
    total_rows: int
    errors: list[ImportRowError] = field(default_factory=list)
    created_categories: list[CreatedCategory] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.created_categories)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def success(self) -> bool:
        return self.error_count == 0


class ImportRowErrorResponse(BaseModel):
    row: int
    error: str
    data: dict[str, Any]


class CreatedCategoryResponse(BaseModel):
    name: str
    id: uuid.UUID


class ImportResultResponse(BaseModel):
    success: bool
    total_rows: int
    success_count: int
    error_count: int
    errors: list[ImportRowErrorResponse]
    created_categories: list[CreatedCategoryResponse]

    @classmethod
    def from_result(cls, result: ImportResult) -> ImportResultResponse:
        return cls(
            success=result.success,
            total_rows=result.total_rows,
            success_count=result.success_count,
            error_count=result.error_count,
            errors=[
                ImportRowErrorResponse(row=error.row, error=error.error, data=error.data)
                for error in result.errors
            ],
            created_categories=[
                CreatedCategoryResponse(name=created.name, id=created.id)
                for created in result.created_categories
            ],
        )
