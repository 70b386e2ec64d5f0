from .categories import (
    Category,
    CategoryCreate,
    CategoryNode,
    CategoryResponse,
    CategoryTreeResponse,
    CategoryUpdate,
    DeletionCheck,
    Placement,
    RepairResponse,
)
from .imports import (
    CreatedCategory,
    ImportResult,
    ImportResultResponse,
    ImportRow,
    ImportRowError,
)
from .resources import (
    CategoryRef,
    CategoryReference,
    LegacyCategoryLabel,
    Resource,
    ResourcePage,
    ResourcePageResponse,
    ResourceStatus,
)
