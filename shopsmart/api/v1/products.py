from typing import Optional

from fastapi import APIRouter, Depends, Query

from shopsmart.api.deps import get_database
from shopsmart.core.exceptions import failure_message
from shopsmart.db.gateway import Database
from shopsmart.services.catalog_service import DEFAULT_SORT, ProductFilters, list_products
from shopsmart.utils.response import success

router = APIRouter()


@router.get("", response_model=dict)
def get_products(
    search: str = "",
    category: str = "",
    sort: str = DEFAULT_SORT,
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    featured: Optional[bool] = None,
    bestseller: Optional[bool] = None,
    new_arrival: Optional[bool] = None,
    db: Database = Depends(get_database),
):
    """
    Get active products with search, filters, sorting and pagination.
    Out-of-range page and limit values are clamped rather than rejected.
    """
    filters = ProductFilters(
        search=search,
        category=category,
        sort=sort,
        page=page,
        limit=limit,
        featured=featured,
        bestseller=bestseller,
        new_arrival=new_arrival,
    )
    with failure_message("Failed to retrieve products"):
        data = list_products(db, filters)
    return success(data=data, message="Products retrieved successfully")
