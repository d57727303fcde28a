from typing import Dict, Iterable, List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from app.logger_config import logger
from app.models.transaction import (
    STOCK_IN_TYPES,
    STOCK_OUT_TYPES,
    Transaction,
    TransactionItem,
)


def signed_quantity_expression():
    """
    Per-line signed quantity: purchases/return_sales add, sales/return_purchases
    subtract, anything else contributes 0.
    """
    return case(
        (Transaction.transaction_type.in_(STOCK_IN_TYPES), TransactionItem.quantity),
        (Transaction.transaction_type.in_(STOCK_OUT_TYPES), -TransactionItem.quantity),
        else_=0,
    )


def stock_quantity_subquery():
    """
    (product_id, quantity) for every product that appears in the ledger.
    Join it with an outer join and coalesce to 0 for products without lines.
    """
    return select_stock_fold().subquery("stock_quantities")


def select_stock_fold():
    return (
        select(
            TransactionItem.product_id.label("product_id"),
            func.coalesce(func.sum(signed_quantity_expression()), 0).label("quantity"),
        )
        .join(Transaction, Transaction.id == TransactionItem.transaction_id)
        .group_by(TransactionItem.product_id)
    )


class StockService:
    """
    Derives product stock from the transaction ledger. Nothing here writes.
    """

    def __init__(self, db: Session):
        self.db = db

    def compute_stock_quantity(self, product_id: str) -> int:
        quantity = (
            self.db.query(func.coalesce(func.sum(signed_quantity_expression()), 0))
            .select_from(TransactionItem)
            .join(Transaction, Transaction.id == TransactionItem.transaction_id)
            .filter(TransactionItem.product_id == product_id)
            .scalar()
        )
        logger.debug(f"Stock computed for product {product_id}: {quantity}")
        return int(quantity or 0)

    def compute_stock_quantities(self, product_ids: Optional[Iterable[str]] = None) -> Dict[str, int]:
        """
        One grouped pass over the ledger. With `product_ids`, every requested id is
        present in the result (0 when it has no ledger lines); without it, every
        product that has ledger lines is returned.
        """
        requested: Optional[List[str]] = list(dict.fromkeys(product_ids)) if product_ids is not None else None
        if requested is not None and not requested:
            return {}

        stmt = select_stock_fold()
        if requested is not None:
            stmt = stmt.where(TransactionItem.product_id.in_(requested))

        quantities = {row.product_id: int(row.quantity or 0) for row in self.db.execute(stmt)}

        if requested is not None:
            quantities = {product_id: quantities.get(product_id, 0) for product_id in requested}

        logger.debug(f"Stock computed for {len(quantities)} products")
        return quantities

    def get_stock_movements(self, product_id: str) -> Dict[str, int]:
        """Totals in/out for one product alongside the net quantity."""
        row = (
            self.db.query(
                func.coalesce(func.sum(case(
                    (Transaction.transaction_type.in_(STOCK_IN_TYPES), TransactionItem.quantity),
                    else_=0,
                )), 0),
                func.coalesce(func.sum(case(
                    (Transaction.transaction_type.in_(STOCK_OUT_TYPES), TransactionItem.quantity),
                    else_=0,
                )), 0),
            )
            .select_from(TransactionItem)
            .join(Transaction, Transaction.id == TransactionItem.transaction_id)
            .filter(TransactionItem.product_id == product_id)
            .one()
        )
        total_in, total_out = int(row[0]), int(row[1])
        return {
            "product_id": product_id,
            "total_in": total_in,
            "total_out": total_out,
            "quantity": total_in - total_out,
        }
