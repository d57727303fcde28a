from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from app.common.exceptions import NotFoundError
from app.common.response import SuccessResponse, build_pagination
from app.core.dependencies import PageParams, get_db
from app.models.product_category import EntityStatus
from app.services.category_service import (
    get_category_by_id,
    get_all_categories,
    create_category,
    update_category,
    delete_category,
    bulk_delete_categories
)
from app.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse
)
from app.schemas.common import ApiResponse, BulkDeleteRequest, BulkDeleteResult

router = APIRouter()


@router.get("", response_model=ApiResponse[List[CategoryResponse]])
def get_categories(
    page: PageParams = Depends(),
    search: Optional[str] = Query(None),
    status_filter: Optional[EntityStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db)
):
    """Get all categories with optional search and status filtering."""
    categories, total = get_all_categories(
        db, skip=page.skip, limit=page.limit, search=search, status=status_filter
    )
    return SuccessResponse.send(
        data=[CategoryResponse.model_validate(category) for category in categories],
        pagination=build_pagination(total, page.page, page.limit)
    )


@router.post("/bulk-delete", response_model=ApiResponse[BulkDeleteResult])
def bulk_delete_categories_route(payload: BulkDeleteRequest, db: Session = Depends(get_db)):
    result = bulk_delete_categories(db, payload.ids)
    return SuccessResponse.send(
        data=result,
        message=f"{result['deleted_count']} categories deleted successfully"
    )


@router.get("/{category_id}", response_model=ApiResponse[CategoryResponse])
def get_category(category_id: str, db: Session = Depends(get_db)):
    category = get_category_by_id(db, category_id)
    if not category:
        raise NotFoundError("Category not found")

    return SuccessResponse.send(data=CategoryResponse.model_validate(category))


@router.post("", response_model=ApiResponse[CategoryResponse], status_code=status.HTTP_201_CREATED)
def create_category_route(category_data: CategoryCreate, db: Session = Depends(get_db)):
    category = create_category(
        db=db,
        name=category_data.name,
        description=category_data.description,
        status=category_data.status
    )
    return SuccessResponse.send(
        data=CategoryResponse.model_validate(category),
        message="Category created successfully"
    )


@router.put("/{category_id}", response_model=ApiResponse[CategoryResponse])
def update_category_route(
    category_id: str,
    category_data: CategoryUpdate,
    db: Session = Depends(get_db)
):
    category = update_category(
        db=db,
        category_id=category_id,
        name=category_data.name,
        description=category_data.description,
        status=category_data.status
    )
    if not category:
        raise NotFoundError("Category not found")

    return SuccessResponse.send(
        data=CategoryResponse.model_validate(category),
        message="Category updated successfully"
    )


@router.delete("/{category_id}", response_model=ApiResponse[None])
def delete_category_route(category_id: str, db: Session = Depends(get_db)):
    """Delete a category. Categories that still have products are refused."""
    if not delete_category(db, category_id):
        raise NotFoundError("Category not found")

    return SuccessResponse.send(message="Category deleted successfully")
