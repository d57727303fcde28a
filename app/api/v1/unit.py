from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from app.common.exceptions import NotFoundError
from app.common.response import SuccessResponse, build_pagination
from app.core.dependencies import PageParams, get_db
from app.models.product_category import EntityStatus
from app.services.unit_service import (
    get_unit_by_id,
    get_all_units,
    create_unit,
    update_unit,
    delete_unit,
    bulk_delete_units
)
from app.schemas.unit import UnitCreate, UnitUpdate, UnitResponse
from app.schemas.common import ApiResponse, BulkDeleteRequest, BulkDeleteResult

router = APIRouter()


@router.get("", response_model=ApiResponse[List[UnitResponse]])
def get_units(
    page: PageParams = Depends(),
    search: Optional[str] = Query(None),
    status_filter: Optional[EntityStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db)
):
    units, total = get_all_units(db, skip=page.skip, limit=page.limit, search=search, status=status_filter)
    return SuccessResponse.send(
        data=[UnitResponse.model_validate(unit) for unit in units],
        pagination=build_pagination(total, page.page, page.limit)
    )


@router.post("/bulk-delete", response_model=ApiResponse[BulkDeleteResult])
def bulk_delete_units_route(payload: BulkDeleteRequest, db: Session = Depends(get_db)):
    result = bulk_delete_units(db, payload.ids)
    return SuccessResponse.send(data=result, message=f"{result['deleted_count']} units deleted successfully")


@router.get("/{unit_id}", response_model=ApiResponse[UnitResponse])
def get_unit(unit_id: str, db: Session = Depends(get_db)):
    unit = get_unit_by_id(db, unit_id)
    if not unit:
        raise NotFoundError("Unit not found")
    return SuccessResponse.send(data=UnitResponse.model_validate(unit))


@router.post("", response_model=ApiResponse[UnitResponse], status_code=status.HTTP_201_CREATED)
def create_unit_route(unit_data: UnitCreate, db: Session = Depends(get_db)):
    unit = create_unit(
        db=db,
        name=unit_data.name,
        abbreviation=unit_data.abbreviation,
        description=unit_data.description,
        status=unit_data.status
    )
    return SuccessResponse.send(data=UnitResponse.model_validate(unit), message="Unit created successfully")


@router.put("/{unit_id}", response_model=ApiResponse[UnitResponse])
def update_unit_route(unit_id: str, unit_data: UnitUpdate, db: Session = Depends(get_db)):
    unit = update_unit(
        db=db,
        unit_id=unit_id,
        name=unit_data.name,
        abbreviation=unit_data.abbreviation,
        description=unit_data.description,
        status=unit_data.status
    )
    if not unit:
        raise NotFoundError("Unit not found")
    return SuccessResponse.send(data=UnitResponse.model_validate(unit), message="Unit updated successfully")


@router.delete("/{unit_id}", response_model=ApiResponse[None])
def delete_unit_route(unit_id: str, db: Session = Depends(get_db)):
    if not delete_unit(db, unit_id):
        raise NotFoundError("Unit not found")
    return SuccessResponse.send(message="Unit deleted successfully")
