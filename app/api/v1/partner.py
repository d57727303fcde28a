from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from app.common.exceptions import NotFoundError
from app.common.response import SuccessResponse, build_pagination
from app.core.dependencies import PageParams, get_db
from app.models.partner import PartnerType
from app.services.partner_service import (
    get_partner,
    get_all_partners,
    create_partner,
    update_partner,
    delete_partner,
    bulk_delete_partners
)
from app.schemas.partner import PartnerCreate, PartnerUpdate, PartnerResponse
from app.schemas.common import ApiResponse, BulkDeleteRequest, BulkDeleteResult

router = APIRouter()


@router.get("", response_model=ApiResponse[List[PartnerResponse]])
def get_partners(
    page: PageParams = Depends(),
    search: Optional[str] = Query(None, description="Matches name or phone number"),
    type: Optional[PartnerType] = Query(None),
    db: Session = Depends(get_db)
):
    """Get partners with balance, paid and left freshly derived from the ledger."""
    partners, total = get_all_partners(
        db, skip=page.skip, limit=page.limit, search=search, partner_type=type
    )
    return SuccessResponse.send(
        data=[PartnerResponse.model_validate(p) for p in partners],
        pagination=build_pagination(total, page.page, page.limit)
    )


@router.post("/bulk-delete", response_model=ApiResponse[BulkDeleteResult])
def bulk_delete_partners_route(payload: BulkDeleteRequest, db: Session = Depends(get_db)):
    result = bulk_delete_partners(db, payload.ids)
    return SuccessResponse.send(data=result, message=f"{result['deleted_count']} partners deleted successfully")


@router.get("/{partner_id}", response_model=ApiResponse[PartnerResponse])
def get_partner_route(partner_id: str, db: Session = Depends(get_db)):
    partner = get_partner(db, partner_id)
    if not partner:
        raise NotFoundError("Partner not found")
    return SuccessResponse.send(data=PartnerResponse.model_validate(partner))


@router.post("", response_model=ApiResponse[PartnerResponse], status_code=status.HTTP_201_CREATED)
def create_partner_route(partner_data: PartnerCreate, db: Session = Depends(get_db)):
    partner = create_partner(
        db=db,
        name=partner_data.name,
        phone_number=partner_data.phone_number,
        type=partner_data.type,
        description=partner_data.description
    )
    return SuccessResponse.send(data=PartnerResponse.model_validate(partner), message="Partner created successfully")


@router.put("/{partner_id}", response_model=ApiResponse[PartnerResponse])
def update_partner_route(partner_id: str, partner_data: PartnerUpdate, db: Session = Depends(get_db)):
    partner = update_partner(
        db=db,
        partner_id=partner_id,
        name=partner_data.name,
        phone_number=partner_data.phone_number,
        description=partner_data.description,
        type=partner_data.type
    )
    if not partner:
        raise NotFoundError("Partner not found")
    return SuccessResponse.send(data=PartnerResponse.model_validate(partner), message="Partner updated successfully")


@router.delete("/{partner_id}", response_model=ApiResponse[None])
def delete_partner_route(partner_id: str, db: Session = Depends(get_db)):
    """Delete a partner. Partners that appear in transactions are refused."""
    if not delete_partner(db, partner_id):
        raise NotFoundError("Partner not found")
    return SuccessResponse.send(message="Partner deleted successfully")
