from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import or_
from typing import Optional, List
from app.common.exceptions import ConflictError, ValidationError
from app.models.partner import Partner, PartnerType
from app.models.product_category import generate_custom_id
from app.models.transaction import Transaction
from app.services.partner_balance import PartnerBalanceService
from app.logger_config import logger


def get_partner_by_id(db: Session, partner_id: str) -> Optional[Partner]:
    """Get partner by ID as stored, without refreshing the cached totals."""
    return db.query(Partner).filter(Partner.id == partner_id).first()


def get_partner(db: Session, partner_id: str) -> Optional[Partner]:
    """Get partner by ID with balance/paid/left refreshed from the ledger."""
    partner = PartnerBalanceService(db).recalculate(partner_id)
    if not partner:
        return None
    db.commit()
    db.refresh(partner)
    return partner


def get_all_partners(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    search: Optional[str] = None,
    partner_type: Optional[PartnerType] = None
) -> tuple[List[Partner], int]:
    """Get partners; the page being returned is recalculated from the ledger first."""
    query = db.query(Partner)

    if partner_type:
        query = query.filter(Partner.type == partner_type)

    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                Partner.name.ilike(search_term),
                Partner.phone_number.ilike(search_term)
            )
        )

    total = query.count()
    partners = query.order_by(Partner.created_at.desc()).offset(skip).limit(limit).all()

    if partners:
        page_ids = [partner.id for partner in partners]
        PartnerBalanceService(db).recalculate_many(partners)
        db.commit()
        # Reload the expired page in one round trip
        db.query(Partner).filter(Partner.id.in_(page_ids)).all()

    return partners, total


def create_partner(
    db: Session,
    name: str,
    phone_number: str,
    type: PartnerType,
    description: Optional[str] = None
) -> Partner:
    """Create a new partner. Totals start at zero and are only ever derived."""
    partner_id = generate_custom_id("PTN")
    while get_partner_by_id(db, partner_id):
        partner_id = generate_custom_id("PTN")

    partner = Partner(
        id=partner_id,
        name=name.strip(),
        phone_number=phone_number.strip(),
        description=description,
        type=type
    )

    db.add(partner)

    try:
        db.commit()
        db.refresh(partner)
        logger.info(f"Partner created: {partner.id} ({partner.name}, {partner.type.value})")
        return partner
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating partner: {str(e)}")
        raise ConflictError("Failed to create partner.")


def update_partner(
    db: Session,
    partner_id: str,
    name: Optional[str] = None,
    phone_number: Optional[str] = None,
    description: Optional[str] = None,
    type: Optional[PartnerType] = None
) -> Optional[Partner]:
    partner = get_partner_by_id(db, partner_id)
    if not partner:
        return None

    if name is not None:
        partner.name = name.strip()
    if phone_number is not None:
        partner.phone_number = phone_number.strip()
    if description is not None:
        partner.description = description
    if type is not None:
        partner.type = type

    try:
        db.commit()
        db.refresh(partner)
        logger.info(f"Partner updated: {partner_id}")
        return partner
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating partner: {str(e)}")
        raise ConflictError("Failed to update partner.")


def _partners_with_transactions(db: Session, partner_ids: List[str]) -> List[str]:
    rows = (db.query(Transaction.partner_id)
            .filter(Transaction.partner_id.in_(partner_ids))
            .distinct()
            .all())
    return sorted(row[0] for row in rows)


def delete_partner(db: Session, partner_id: str) -> bool:
    """Delete a partner. Partners referenced by the ledger cannot be removed."""
    partner = get_partner_by_id(db, partner_id)
    if not partner:
        return False

    if _partners_with_transactions(db, [partner_id]):
        raise ValidationError("Cannot delete partner that has transactions.")

    db.delete(partner)
    try:
        db.commit()
        logger.info(f"Partner deleted: {partner_id}")
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting partner: {str(e)}")
        raise


def bulk_delete_partners(db: Session, partner_ids: List[str]) -> dict:
    requested_ids = list(dict.fromkeys(partner_ids))

    in_use = _partners_with_transactions(db, requested_ids)
    if in_use:
        raise ValidationError(
            "Cannot delete partners that have transactions",
            details={"partner_ids": in_use}
        )

    try:
        deleted = db.query(Partner).filter(Partner.id.in_(requested_ids)).delete(synchronize_session=False)
        db.commit()
        logger.info(f"Deleted {deleted} of {len(requested_ids)} partners")
        return {"deleted_count": deleted, "requested_count": len(requested_ids)}
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting partners: {str(e)}")
        raise
