# app/services/return_service.py

from decimal import Decimal
from typing import Dict

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.common.exceptions import AppError, ConflictError, NotFoundError, ValidationError
from app.logger_config import logger
from app.models.transaction import (
    RETURN_TYPE_FOR,
    Transaction,
    TransactionItem,
    TransactionType,
)
from app.services.partner_balance import recalculate_partner_balance, to_decimal
from app.services.transaction_service import TransactionService


class ReturnService:
    """
    Reversal entries against an original sales or purchases transaction.

    The returned quantity per (original transaction, product) never exceeds
    the original quantity, counting every earlier return.
    """

    def __init__(self, db: Session):
        self.db = db
        self.transactions = TransactionService(db)

    def _returned_quantities(self, original_id: str) -> Dict[str, int]:
        rows = (
            self.db.query(TransactionItem.product_id, func.coalesce(func.sum(TransactionItem.quantity), 0))
            .join(Transaction, Transaction.id == TransactionItem.transaction_id)
            .filter(Transaction.original_transaction_id == original_id)
            .group_by(TransactionItem.product_id)
            .all()
        )
        return {product_id: int(quantity) for product_id, quantity in rows}

    @staticmethod
    def _original_lines(original: Transaction) -> Dict[str, Dict]:
        """Original quantity per product; prices come from the first line of that product."""
        lines: Dict[str, Dict] = {}
        for item in original.items:
            line = lines.get(item.product_id)
            if line:
                line["quantity"] += item.quantity
            else:
                lines[item.product_id] = {
                    "item": item,
                    "quantity": item.quantity,
                }
        return lines

    def return_products(self, original_transaction_id: str, data) -> Transaction:
        """
        Create a return_sales/return_purchases entry for part of an original.

        Process:
            1. Resolve the original by id or serial, lock it, check it is a sales or purchases entry
            2. For each requested line, check remaining = original - already returned
            3. Value lines at the original's recorded prices
            4. Purchase returns only: lock the products and check stock covers the outgoing units
            5. Persist with paid = 0, recalculate the partner, commit once
        """
        logger.info(f"Starting return against {original_transaction_id} - Items: {len(data.items)}")

        try:
            found = self.transactions.get_transaction(original_transaction_id)
            if not found:
                logger.warning(f"Original transaction not found: {original_transaction_id}")
                raise NotFoundError("Original transaction not found")

            original = (
                self.db.query(Transaction)
                .filter(Transaction.id == found.id)
                .with_for_update()
                .first()
            )

            return_type = RETURN_TYPE_FOR.get(original.transaction_type)
            if not return_type:
                raise ValidationError(
                    f"Cannot create returns for {original.transaction_type.value} transactions. "
                    f"Only sales and purchases can be returned"
                )

            original_lines = self._original_lines(original)
            already_returned = self._returned_quantities(original.id)
            price_field = "selling_price" if original.transaction_type == TransactionType.sales else "cost_price"

            total = Decimal("0.00")
            lines = []
            for item in data.items:
                line = original_lines.get(item.product_id)
                if not line:
                    raise ValidationError(
                        f"Product {item.product_id} was not part of the original transaction",
                        details={"product_id": item.product_id},
                    )

                returned = already_returned.get(item.product_id, 0)
                remaining = line["quantity"] - returned
                if item.quantity > remaining:
                    logger.warning(
                        f"Over-return rejected for {item.product_id} on {original.id}: "
                        f"requested {item.quantity}, remaining {remaining}"
                    )
                    raise ValidationError(
                        f"Cannot return {item.quantity} of product {item.product_id}. "
                        f"Original quantity: {line['quantity']}, already returned: {returned}, "
                        f"remaining: {remaining}",
                        details={
                            "product_id": item.product_id,
                            "original_quantity": line["quantity"],
                            "already_returned": returned,
                            "remaining_quantity": remaining,
                            "requested_quantity": item.quantity,
                        },
                    )

                # Later lines of this request see the quantity as already returned
                already_returned[item.product_id] = returned + item.quantity

                source = line["item"]
                total += to_decimal(getattr(source, price_field)) * item.quantity
                lines.append(TransactionItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    cost_price=source.cost_price,
                    selling_price=source.selling_price,
                ))

            # Returned purchases leave the warehouse, so stock must cover them
            if return_type == TransactionType.return_purchases:
                products = self.transactions.resolve_products(
                    (item.product_id for item in data.items), lock=True
                )
                self.transactions.check_stock(products, data.items)

            return_entry = Transaction(
                serial_number=self.transactions.next_serial_number(),
                partner_id=original.partner_id,
                transaction_type=return_type,
                balance=total,
                paid=Decimal("0.00"),
                left=total,
                note=data.note or f"Return for transaction {original.serial_number}",
                original_transaction_id=original.id,
                items=lines,
            )
            self.db.add(return_entry)
            self.db.flush()

            recalculate_partner_balance(self.db, original.partner_id)

            self.db.commit()
            self.db.refresh(return_entry)

            logger.info(
                f"✅ Return created: {return_entry.id} ({return_entry.serial_number}) - "
                f"Type: {return_type.value}, Original: {original.id}, Amount: {total}"
            )
            return return_entry

        except AppError as ae:
            self.db.rollback()
            logger.error(f"Validation error in return creation: {ae.message}")
            raise

        except IntegrityError as ie:
            self.db.rollback()
            logger.error(f"Database integrity error in return creation: {str(ie)}")
            raise ConflictError("Return conflicts with an existing record")

        except Exception:
            self.db.rollback()
            logger.error("Unexpected error in return creation", exc_info=True)
            raise

    def get_return_summary(self, original_transaction_id: str) -> Dict:
        """What has been returned so far and what is still returnable, per product."""
        original = self.transactions.require_transaction(original_transaction_id)

        returned = self._returned_quantities(original.id)
        items = []
        for product_id, line in self._original_lines(original).items():
            returned_quantity = returned.get(product_id, 0)
            product = line["item"].product
            items.append({
                "product_id": product_id,
                "name": product.name if product else None,
                "original_quantity": line["quantity"],
                "returned_quantity": returned_quantity,
                "remaining_quantity": line["quantity"] - returned_quantity,
            })

        return_count = (
            self.db.query(func.count(Transaction.id))
            .filter(Transaction.original_transaction_id == original.id)
            .scalar()
        )

        return {
            "original_transaction_id": original.id,
            "serial_number": original.serial_number,
            "transaction_type": original.transaction_type,
            "return_count": int(return_count or 0),
            "items": items,
        }
