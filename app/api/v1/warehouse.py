from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from app.common.exceptions import NotFoundError
from app.common.response import SuccessResponse, build_pagination
from app.core.dependencies import PageParams, get_db
from app.models.product_category import EntityStatus
from app.services.warehouse_service import (
    get_warehouse_by_id,
    get_all_warehouses,
    create_warehouse,
    update_warehouse,
    delete_warehouse,
    bulk_delete_warehouses
)
from app.schemas.warehouse import WarehouseCreate, WarehouseUpdate, WarehouseResponse
from app.schemas.common import ApiResponse, BulkDeleteRequest, BulkDeleteResult

router = APIRouter()


@router.get("", response_model=ApiResponse[List[WarehouseResponse]])
def get_warehouses(
    page: PageParams = Depends(),
    search: Optional[str] = Query(None, description="Matches title, location or manager"),
    status_filter: Optional[EntityStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db)
):
    warehouses, total = get_all_warehouses(
        db, skip=page.skip, limit=page.limit, search=search, status=status_filter
    )
    return SuccessResponse.send(
        data=[WarehouseResponse.model_validate(w) for w in warehouses],
        pagination=build_pagination(total, page.page, page.limit)
    )


@router.post("/bulk-delete", response_model=ApiResponse[BulkDeleteResult])
def bulk_delete_warehouses_route(payload: BulkDeleteRequest, db: Session = Depends(get_db)):
    result = bulk_delete_warehouses(db, payload.ids)
    return SuccessResponse.send(data=result, message=f"{result['deleted_count']} warehouses deleted successfully")


@router.get("/{warehouse_id}", response_model=ApiResponse[WarehouseResponse])
def get_warehouse(warehouse_id: str, db: Session = Depends(get_db)):
    warehouse = get_warehouse_by_id(db, warehouse_id)
    if not warehouse:
        raise NotFoundError("Warehouse not found")
    return SuccessResponse.send(data=WarehouseResponse.model_validate(warehouse))


@router.post("", response_model=ApiResponse[WarehouseResponse], status_code=status.HTTP_201_CREATED)
def create_warehouse_route(warehouse_data: WarehouseCreate, db: Session = Depends(get_db)):
    warehouse = create_warehouse(
        db=db,
        title=warehouse_data.title,
        location=warehouse_data.location,
        manager=warehouse_data.manager,
        status=warehouse_data.status
    )
    return SuccessResponse.send(
        data=WarehouseResponse.model_validate(warehouse),
        message="Warehouse created successfully"
    )


@router.put("/{warehouse_id}", response_model=ApiResponse[WarehouseResponse])
def update_warehouse_route(warehouse_id: str, warehouse_data: WarehouseUpdate, db: Session = Depends(get_db)):
    warehouse = update_warehouse(
        db=db,
        warehouse_id=warehouse_id,
        title=warehouse_data.title,
        location=warehouse_data.location,
        manager=warehouse_data.manager,
        status=warehouse_data.status
    )
    if not warehouse:
        raise NotFoundError("Warehouse not found")
    return SuccessResponse.send(
        data=WarehouseResponse.model_validate(warehouse),
        message="Warehouse updated successfully"
    )


@router.delete("/{warehouse_id}", response_model=ApiResponse[None])
def delete_warehouse_route(warehouse_id: str, db: Session = Depends(get_db)):
    if not delete_warehouse(db, warehouse_id):
        raise NotFoundError("Warehouse not found")
    return SuccessResponse.send(message="Warehouse deleted successfully")
