"""Errors raised by the taxonomy services.

Each error is an ``HTTPException`` so that FastAPI renders it directly; the
import service catches them per row and reports them instead.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status


class TaxonomyError(HTTPException):
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, detail: Any = None) -> None:
        super().__init__(
            status_code=type(self).status_code,
            detail=message if detail is None else detail,
        )
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(TaxonomyError):
    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT


class NotFoundError(TaxonomyError):
    status_code = status.HTTP_404_NOT_FOUND


class CycleDetectedError(TaxonomyError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConcurrentModificationError(TaxonomyError):
    status_code = status.HTTP_409_CONFLICT


class ReferentialIntegrityError(TaxonomyError):
    """Delete blocked by direct children or referencing resources."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(
        self,
        message: str,
        *,
        blocking_children: list[dict[str, str]],
        blocking_resource_count: int,
    ) -> None:
        super().__init__(
            message,
            detail={
                "message": message,
                "blocking_children": blocking_children,
                "blocking_resource_count": blocking_resource_count,
            },
        )
        self.blocking_children = blocking_children
        self.blocking_resource_count = blocking_resource_count
