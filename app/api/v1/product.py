from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from app.common.exceptions import NotFoundError
from app.common.response import SuccessResponse, build_pagination
from app.core.dependencies import PageParams, get_db
from app.services.product_service import (
    get_product_by_id,
    get_product_with_quantity,
    get_all_products,
    create_product,
    update_product,
    delete_product,
    bulk_delete_products
)
from app.services.stock_service import StockService
from app.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    StockMovementResponse
)
from app.schemas.common import ApiResponse, BulkDeleteRequest, BulkDeleteResult

router = APIRouter()


def build_product_response(product, quantity: int) -> ProductResponse:
    response = ProductResponse.model_validate(product)
    response.quantity = quantity
    return response


@router.get("", response_model=ApiResponse[List[ProductResponse]])
def get_products(
    page: PageParams = Depends(),
    search: Optional[str] = Query(None, description="Matches name or SKU"),
    category_id: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """Get products with their live stock quantity."""
    rows, total = get_all_products(
        db, skip=page.skip, limit=page.limit, search=search, category_id=category_id
    )
    return SuccessResponse.send(
        data=[build_product_response(product, quantity) for product, quantity in rows],
        pagination=build_pagination(total, page.page, page.limit)
    )


@router.post("/bulk-delete", response_model=ApiResponse[BulkDeleteResult])
def bulk_delete_products_route(payload: BulkDeleteRequest, db: Session = Depends(get_db)):
    result = bulk_delete_products(db, payload.ids)
    return SuccessResponse.send(data=result, message=f"{result['deleted_count']} products deleted successfully")


@router.get("/{product_id}", response_model=ApiResponse[ProductResponse])
def get_product(product_id: str, db: Session = Depends(get_db)):
    found = get_product_with_quantity(db, product_id)
    if not found:
        raise NotFoundError("Product not found")
    return SuccessResponse.send(data=build_product_response(*found))


@router.get("/{product_id}/stock", response_model=ApiResponse[StockMovementResponse])
def get_product_stock(product_id: str, db: Session = Depends(get_db)):
    """Units in, units out and the net quantity, all from the ledger."""
    if not get_product_by_id(db, product_id):
        raise NotFoundError("Product not found")
    return SuccessResponse.send(data=StockService(db).get_stock_movements(product_id))


@router.post("", response_model=ApiResponse[ProductResponse], status_code=status.HTTP_201_CREATED)
def create_product_route(product_data: ProductCreate, db: Session = Depends(get_db)):
    product = create_product(
        db=db,
        sku=product_data.sku,
        name=product_data.name,
        category_id=product_data.category_id,
        description=product_data.description,
        selling_price=product_data.selling_price,
        cost_price=product_data.cost_price
    )
    return SuccessResponse.send(
        data=build_product_response(product, 0),
        message="Product created successfully"
    )


@router.put("/{product_id}", response_model=ApiResponse[ProductResponse])
def update_product_route(product_id: str, product_data: ProductUpdate, db: Session = Depends(get_db)):
    product = update_product(
        db=db,
        product_id=product_id,
        sku=product_data.sku,
        name=product_data.name,
        category_id=product_data.category_id,
        description=product_data.description,
        selling_price=product_data.selling_price,
        cost_price=product_data.cost_price
    )
    if not product:
        raise NotFoundError("Product not found")

    return SuccessResponse.send(
        data=build_product_response(product, StockService(db).compute_stock_quantity(product.id)),
        message="Product updated successfully"
    )


@router.delete("/{product_id}", response_model=ApiResponse[None])
def delete_product_route(product_id: str, db: Session = Depends(get_db)):
    """Delete a product. Products that appear in transactions are refused."""
    if not delete_product(db, product_id):
        raise NotFoundError("Product not found")
    return SuccessResponse.send(message="Product deleted successfully")
