from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import func, or_
from typing import Optional, List
from app.common.exceptions import ConflictError, ValidationError
from app.models.product_category import Category, EntityStatus, Product, generate_custom_id
from app.logger_config import logger


def get_category_by_id(db: Session, category_id: str) -> Optional[Category]:
    """Get category by ID."""
    return db.query(Category).filter(Category.id == category_id).first()


def get_category_by_name(db: Session, name: str) -> Optional[Category]:
    """Get category by name, ignoring case."""
    return db.query(Category).filter(func.lower(Category.name) == name.strip().lower()).first()


def get_all_categories(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    search: Optional[str] = None,
    status: Optional[EntityStatus] = None
) -> tuple[List[Category], int]:
    """Get all categories with optional search and status filtering."""
    query = db.query(Category)

    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                Category.name.ilike(search_term),
                Category.description.ilike(search_term)
            )
        )

    if status:
        query = query.filter(Category.status == status)

    total = query.count()
    categories = query.order_by(Category.created_at.desc()).offset(skip).limit(limit).all()

    return categories, total


def create_category(
    db: Session,
    name: str,
    description: Optional[str] = None,
    status: EntityStatus = EntityStatus.Active
) -> Category:
    """Create a new category."""
    name = name.strip()
    if get_category_by_name(db, name):
        raise ValidationError("Category with this name already exists")

    category_id = generate_custom_id("CAT")
    while get_category_by_id(db, category_id):
        category_id = generate_custom_id("CAT")

    category = Category(
        id=category_id,
        name=name,
        description=description,
        status=status
    )

    db.add(category)

    try:
        db.commit()
        db.refresh(category)
        logger.info(f"Category created: {category.id} ({category.name})")
        return category
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating category: {str(e)}")
        raise ConflictError("Failed to create category. Category name may already exist.")


def update_category(
    db: Session,
    category_id: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
    status: Optional[EntityStatus] = None
) -> Optional[Category]:
    """Update category information."""
    category = get_category_by_id(db, category_id)
    if not category:
        return None

    if name is not None:
        existing_category = get_category_by_name(db, name)
        if existing_category and existing_category.id != category_id:
            raise ValidationError("Category name is already taken by another category")
        category.name = name.strip()

    if description is not None:
        category.description = description

    if status is not None:
        category.status = status

    try:
        db.commit()
        db.refresh(category)
        logger.info(f"Category updated: {category_id}")
        return category
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating category: {str(e)}")
        raise ConflictError("Failed to update category.")


def delete_category(db: Session, category_id: str) -> bool:
    """Delete a category."""
    category = get_category_by_id(db, category_id)
    if not category:
        return False

    if category.products:
        raise ValidationError("Cannot delete category that has products. Please remove or reassign products first.")

    db.delete(category)
    try:
        db.commit()
        logger.info(f"Category deleted: {category_id}")
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting category: {str(e)}")
        raise


def bulk_delete_categories(db: Session, category_ids: List[str]) -> dict:
    """Delete several categories; refused as a whole if any of them still has products."""
    requested_ids = list(dict.fromkeys(category_ids))

    in_use = [
        row[0] for row in
        db.query(Product.category_id).filter(Product.category_id.in_(requested_ids)).distinct().all()
    ]
    if in_use:
        raise ValidationError(
            "Cannot delete categories that have products",
            details={"category_ids": sorted(in_use)}
        )

    try:
        deleted = (
            db.query(Category)
            .filter(Category.id.in_(requested_ids))
            .delete(synchronize_session=False)
        )
        db.commit()
        logger.info(f"Deleted {deleted} of {len(requested_ids)} categories")
        return {"deleted_count": deleted, "requested_count": len(requested_ids)}
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting categories: {str(e)}")
        raise
