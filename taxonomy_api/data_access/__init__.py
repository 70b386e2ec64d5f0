from .categories import CategoriesDataAccess
from .resources import ResourcesDataAccess
