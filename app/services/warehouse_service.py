from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import func, or_
from typing import Optional, List
from app.common.exceptions import ConflictError, ValidationError
from app.models.product_category import EntityStatus, generate_custom_id
from app.models.warehouse import Warehouse
from app.logger_config import logger


def get_warehouse_by_id(db: Session, warehouse_id: str) -> Optional[Warehouse]:
    return db.query(Warehouse).filter(Warehouse.id == warehouse_id).first()


def get_warehouse_by_title(db: Session, title: str) -> Optional[Warehouse]:
    return db.query(Warehouse).filter(func.lower(Warehouse.title) == title.strip().lower()).first()


def get_all_warehouses(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    search: Optional[str] = None,
    status: Optional[EntityStatus] = None
) -> tuple[List[Warehouse], int]:
    """Get all warehouses; search matches title, location or manager."""
    query = db.query(Warehouse)

    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                Warehouse.title.ilike(search_term),
                Warehouse.location.ilike(search_term),
                Warehouse.manager.ilike(search_term)
            )
        )

    if status:
        query = query.filter(Warehouse.status == status)

    total = query.count()
    warehouses = query.order_by(Warehouse.created_at.desc()).offset(skip).limit(limit).all()
    return warehouses, total


def create_warehouse(
    db: Session,
    title: str,
    location: str,
    manager: Optional[str] = None,
    status: EntityStatus = EntityStatus.Active
) -> Warehouse:
    if get_warehouse_by_title(db, title):
        raise ValidationError("Warehouse with this title already exists")

    warehouse_id = generate_custom_id("WHS")
    while get_warehouse_by_id(db, warehouse_id):
        warehouse_id = generate_custom_id("WHS")

    warehouse = Warehouse(
        id=warehouse_id,
        title=title.strip(),
        location=location,
        manager=manager,
        status=status
    )
    db.add(warehouse)

    try:
        db.commit()
        db.refresh(warehouse)
        logger.info(f"Warehouse created: {warehouse.id} ({warehouse.title})")
        return warehouse
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating warehouse: {str(e)}")
        raise ConflictError("Failed to create warehouse. Title may already exist.")


def update_warehouse(
    db: Session,
    warehouse_id: str,
    title: Optional[str] = None,
    location: Optional[str] = None,
    manager: Optional[str] = None,
    status: Optional[EntityStatus] = None
) -> Optional[Warehouse]:
    warehouse = get_warehouse_by_id(db, warehouse_id)
    if not warehouse:
        return None

    if title is not None:
        existing = get_warehouse_by_title(db, title)
        if existing and existing.id != warehouse_id:
            raise ValidationError("Warehouse title is already taken by another warehouse")
        warehouse.title = title.strip()
    if location is not None:
        warehouse.location = location
    if manager is not None:
        warehouse.manager = manager
    if status is not None:
        warehouse.status = status

    try:
        db.commit()
        db.refresh(warehouse)
        logger.info(f"Warehouse updated: {warehouse_id}")
        return warehouse
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating warehouse: {str(e)}")
        raise ConflictError("Failed to update warehouse.")


def delete_warehouse(db: Session, warehouse_id: str) -> bool:
    warehouse = get_warehouse_by_id(db, warehouse_id)
    if not warehouse:
        return False

    db.delete(warehouse)
    try:
        db.commit()
        logger.info(f"Warehouse deleted: {warehouse_id}")
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting warehouse: {str(e)}")
        raise


def bulk_delete_warehouses(db: Session, warehouse_ids: List[str]) -> dict:
    requested_ids = list(dict.fromkeys(warehouse_ids))
    try:
        deleted = db.query(Warehouse).filter(Warehouse.id.in_(requested_ids)).delete(synchronize_session=False)
        db.commit()
        logger.info(f"Deleted {deleted} of {len(requested_ids)} warehouses")
        return {"deleted_count": deleted, "requested_count": len(requested_ids)}
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting warehouses: {str(e)}")
        raise
