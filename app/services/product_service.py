from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError
from sqlalchemy import func, or_
from typing import Optional, List, Tuple
from decimal import Decimal
from app.common.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.product_category import Product, generate_custom_id
from app.models.transaction import TransactionItem
from app.services.category_service import get_category_by_id
from app.services.stock_service import StockService, stock_quantity_subquery
from app.logger_config import logger


def normalize_sku(sku: str) -> str:
    return sku.strip().upper()


def get_product_by_id(db: Session, product_id: str) -> Optional[Product]:
    """Get product by ID."""
    return (db.query(Product)
            .options(joinedload(Product.category))
            .filter(Product.id == product_id)
            .first())


def get_product_by_sku(db: Session, sku: str) -> Optional[Product]:
    """SKUs are stored upper-case, so the lookup is case-insensitive."""
    return db.query(Product).filter(Product.sku == normalize_sku(sku)).first()


def get_product_with_quantity(db: Session, product_id: str) -> Optional[Tuple[Product, int]]:
    product = get_product_by_id(db, product_id)
    if not product:
        return None
    return product, StockService(db).compute_stock_quantity(product.id)


def get_all_products(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    search: Optional[str] = None,
    category_id: Optional[str] = None
) -> tuple[List[Tuple[Product, int]], int]:
    """
    Get products with their live stock quantity.
    Quantities come from the ledger fold joined in the same query.
    """
    stock = stock_quantity_subquery()
    quantity = func.coalesce(stock.c.quantity, 0)

    query = (db.query(Product, quantity)
             .outerjoin(stock, stock.c.product_id == Product.id)
             .options(joinedload(Product.category)))

    if category_id:
        query = query.filter(Product.category_id == category_id)

    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                Product.name.ilike(search_term),
                Product.sku.ilike(search_term)
            )
        )

    total = query.count()
    rows = query.order_by(Product.created_at.desc()).offset(skip).limit(limit).all()

    return [(product, int(qty or 0)) for product, qty in rows], total


def create_product(
    db: Session,
    sku: str,
    name: str,
    category_id: str,
    description: Optional[str] = None,
    selling_price: Optional[Decimal] = None,
    cost_price: Optional[Decimal] = None
) -> Product:
    """Create a new product."""
    if not get_category_by_id(db, category_id):
        raise NotFoundError("Category not found")

    sku = normalize_sku(sku)
    if get_product_by_sku(db, sku):
        raise ValidationError("Product with this SKU already exists", details={"sku": sku})

    product_id = generate_custom_id("PRD")
    while db.query(Product.id).filter(Product.id == product_id).first():
        product_id = generate_custom_id("PRD")

    product = Product(
        id=product_id,
        sku=sku,
        name=name.strip(),
        category_id=category_id,
        description=description,
        selling_price=selling_price or Decimal("0.00"),
        cost_price=cost_price or Decimal("0.00")
    )

    db.add(product)

    try:
        db.commit()
        db.refresh(product)
        logger.info(f"Product created: {product.id} ({product.sku})")
        return product
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error creating product: {str(e)}")
        raise ConflictError("Failed to create product. SKU may already exist.")


def update_product(
    db: Session,
    product_id: str,
    sku: Optional[str] = None,
    name: Optional[str] = None,
    category_id: Optional[str] = None,
    description: Optional[str] = None,
    selling_price: Optional[Decimal] = None,
    cost_price: Optional[Decimal] = None
) -> Optional[Product]:
    """Update product information. Prices already recorded on ledger lines are not affected."""
    product = get_product_by_id(db, product_id)
    if not product:
        return None

    if sku is not None:
        sku = normalize_sku(sku)
        existing = get_product_by_sku(db, sku)
        if existing and existing.id != product_id:
            raise ValidationError("SKU is already taken by another product", details={"sku": sku})
        product.sku = sku

    if category_id is not None:
        if not get_category_by_id(db, category_id):
            raise NotFoundError("Category not found")
        product.category_id = category_id

    if name is not None:
        product.name = name.strip()
    if description is not None:
        product.description = description
    if selling_price is not None:
        product.selling_price = selling_price
    if cost_price is not None:
        product.cost_price = cost_price

    try:
        db.commit()
        db.refresh(product)
        logger.info(f"Product updated: {product_id}")
        return product
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Error updating product: {str(e)}")
        raise ConflictError("Failed to update product. SKU may already exist.")


def _products_with_ledger_lines(db: Session, product_ids: List[str]) -> List[str]:
    rows = (db.query(TransactionItem.product_id)
            .filter(TransactionItem.product_id.in_(product_ids))
            .distinct()
            .all())
    return sorted(row[0] for row in rows)


def delete_product(db: Session, product_id: str) -> bool:
    """Delete a product. Products referenced by the ledger cannot be removed."""
    product = get_product_by_id(db, product_id)
    if not product:
        return False

    if _products_with_ledger_lines(db, [product_id]):
        raise ValidationError("Cannot delete product that has transactions.")

    db.delete(product)
    try:
        db.commit()
        logger.info(f"Product deleted: {product_id}")
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting product: {str(e)}")
        raise


def bulk_delete_products(db: Session, product_ids: List[str]) -> dict:
    requested_ids = list(dict.fromkeys(product_ids))

    in_use = _products_with_ledger_lines(db, requested_ids)
    if in_use:
        raise ValidationError(
            "Cannot delete products that have transactions",
            details={"product_ids": in_use}
        )

    try:
        deleted = db.query(Product).filter(Product.id.in_(requested_ids)).delete(synchronize_session=False)
        db.commit()
        logger.info(f"Deleted {deleted} of {len(requested_ids)} products")
        return {"deleted_count": deleted, "requested_count": len(requested_ids)}
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting products: {str(e)}")
        raise
