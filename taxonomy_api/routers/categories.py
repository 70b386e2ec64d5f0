import uuid
from dataclasses import asdict

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from taxonomy_api.auth import Admin, require_admin
from taxonomy_api.context import AppContext
from taxonomy_api.dependencies import get_context
from taxonomy_api.import_parser import parse_upload
from taxonomy_api.models import (
    Category,
    CategoryCreate,
    CategoryResponse,
    CategoryTreeResponse,
    CategoryUpdate,
    ImportResultResponse,
    RepairResponse,
    ResourcePageResponse,
)
from taxonomy_api.routers.utils import extract_updates
from taxonomy_api.services import CategoriesService, CategoryImportService

router = APIRouter(prefix="/categories", tags=["categories"])

NULLABLE_UPDATE_FIELDS = frozenset({"parent_id", "description"})


@router.get("", response_model=None)
async def list_categories(
    flat: bool = False,
    active_only: bool = False,
    with_resource_count: bool = False,
    categories_service: CategoriesService = Depends(),
) -> list[CategoryTreeResponse] | list[CategoryResponse]:
    if flat:
        categories = await categories_service.list_categories(
            active_only=active_only, with_resource_count=with_resource_count
        )
        return [CategoryResponse.model_validate(asdict(category)) for category in categories]

    forest = await categories_service.get_category_tree(
        active_only=active_only, with_resource_count=with_resource_count
    )
    return [CategoryTreeResponse.model_validate(asdict(node)) for node in forest]


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    _: Admin = Depends(require_admin),
    categories_service: CategoriesService = Depends(),
) -> Category:
    return await categories_service.create_category(
        name=payload.name,
        description=payload.description,
        parent_id=payload.parent_id,
        order=payload.order,
    )


@router.post("/import", response_model=ImportResultResponse)
async def import_categories(
    file: UploadFile = File(...),
    _: Admin = Depends(require_admin),
    context: AppContext = Depends(get_context),
    import_service: CategoryImportService = Depends(),
) -> ImportResultResponse:
    max_bytes = context.settings.import_max_bytes
    content = await file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=f"Import file cannot exceed {max_bytes} bytes.",
        )
    rows = parse_upload(file.filename, content)
    result = await import_service.import_rows(rows)
    return ImportResultResponse.from_result(result)


@router.post("/repair", response_model=RepairResponse)
async def repair_category_tree(
    _: Admin = Depends(require_admin),
    categories_service: CategoriesService = Depends(),
) -> RepairResponse:
    return RepairResponse(updated=await categories_service.repair_tree())


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: uuid.UUID,
    categories_service: CategoriesService = Depends(),
) -> Category:
    return await categories_service.get_category(category_id)


@router.get("/{category_id}/resources", response_model=ResourcePageResponse)
async def list_category_resources(
    category_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    categories_service: CategoriesService = Depends(),
) -> ResourcePageResponse:
    resource_page = await categories_service.get_category_resources(
        category_id, page=page, limit=limit
    )
    return ResourcePageResponse.from_page(resource_page)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: uuid.UUID,
    payload: CategoryUpdate,
    _: Admin = Depends(require_admin),
    categories_service: CategoriesService = Depends(),
) -> Category:
    updates = extract_updates(payload, nullable=NULLABLE_UPDATE_FIELDS)
    return await categories_service.update_category(category_id, updates)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: uuid.UUID,
    _: Admin = Depends(require_admin),
    categories_service: CategoriesService = Depends(),
) -> None:
    await categories_service.delete_category(category_id)
