from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import func, or_
from typing import Optional, List
from app.common.exceptions import ConflictError, ValidationError
from app.models.product_category import EntityStatus, generate_custom_id
from app.models.unit import Unit
from app.logger_config import logger


def get_unit_by_id(db: Session, unit_id: str) -> Optional[Unit]:
    return db.query(Unit).filter(Unit.id == unit_id).first()


def _find_duplicate(db: Session, name: Optional[str], abbreviation: Optional[str], exclude_id: Optional[str] = None):
    conditions = []
    if name is not None:
        conditions.append(func.lower(Unit.name) == name.strip().lower())
    if abbreviation is not None:
        conditions.append(func.lower(Unit.abbreviation) == abbreviation.strip().lower())
    if not conditions:
        return None

    query = db.query(Unit).filter(or_(*conditions))
    if exclude_id:
        query = query.filter(Unit.id != exclude_id)
    return query.first()


def get_all_units(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    search: Optional[str] = None,
    status: Optional[EntityStatus] = None
) -> tuple[List[Unit], int]:
    """Get all units with optional search and status filtering."""
    query = db.query(Unit)

    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                Unit.name.ilike(search_term),
                Unit.abbreviation.ilike(search_term)
            )
        )

    if status:
        query = query.filter(Unit.status == status)

    total = query.count()
    units = query.order_by(Unit.created_at.desc()).offset(skip).limit(limit).all()
    return units, total


def create_unit(
    db: Session,
    name: str,
    abbreviation: str,
    description: Optional[str] = None,
    status: EntityStatus = EntityStatus.Active
) -> Unit:
    """Create a new unit. Name and abbreviation are both unique."""
    if _find_duplicate(db, name, abbreviation):
        raise ValidationError("Unit with this name or abbreviation already exists")

    unit_id = generate_custom_id("UNT")
    while get_unit_by_id(db, unit_id):
        unit_id = generate_custom_id("UNT")

    unit = Unit(
        id=unit_id,
        name=name.strip(),
        abbreviation=abbreviation.strip(),
        description=description,
        status=status
    )
    db.add(unit)

    try:
        db.commit()
        db.refresh(unit)
        logger.info(f"Unit created: {unit.id} ({unit.name})")
        return unit
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating unit: {str(e)}")
        raise ConflictError("Failed to create unit. Name or abbreviation may already exist.")


def update_unit(
    db: Session,
    unit_id: str,
    name: Optional[str] = None,
    abbreviation: Optional[str] = None,
    description: Optional[str] = None,
    status: Optional[EntityStatus] = None
) -> Optional[Unit]:
    unit = get_unit_by_id(db, unit_id)
    if not unit:
        return None

    if _find_duplicate(db, name, abbreviation, exclude_id=unit_id):
        raise ValidationError("Unit name or abbreviation is already taken by another unit")

    if name is not None:
        unit.name = name.strip()
    if abbreviation is not None:
        unit.abbreviation = abbreviation.strip()
    if description is not None:
        unit.description = description
    if status is not None:
        unit.status = status

    try:
        db.commit()
        db.refresh(unit)
        logger.info(f"Unit updated: {unit_id}")
        return unit
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating unit: {str(e)}")
        raise ConflictError("Failed to update unit.")


def delete_unit(db: Session, unit_id: str) -> bool:
    unit = get_unit_by_id(db, unit_id)
    if not unit:
        return False

    db.delete(unit)
    try:
        db.commit()
        logger.info(f"Unit deleted: {unit_id}")
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting unit: {str(e)}")
        raise


def bulk_delete_units(db: Session, unit_ids: List[str]) -> dict:
    requested_ids = list(dict.fromkeys(unit_ids))
    try:
        deleted = db.query(Unit).filter(Unit.id.in_(requested_ids)).delete(synchronize_session=False)
        db.commit()
        logger.info(f"Deleted {deleted} of {len(requested_ids)} units")
        return {"deleted_count": deleted, "requested_count": len(requested_ids)}
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting units: {str(e)}")
        raise
