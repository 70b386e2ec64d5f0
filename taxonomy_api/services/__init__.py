from .categories import CategoriesService
from .imports import CategoryImportService
from .tree import DeletionGuard, TreeMaintainer
