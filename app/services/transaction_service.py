# app/services/transaction_service.py

import secrets
import string
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from app.common.exceptions import (
    AppError,
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from app.core.config import settings
from app.logger_config import logger
from app.models.partner import Partner
from app.models.product_category import Product, utcnow
from app.models.transaction import (
    PARTNER_REQUIRED_TYPES,
    PAYMENT_BOUND_TYPES,
    PRODUCT_REQUIRED_TYPES,
    Transaction,
    TransactionItem,
    TransactionType,
)
from app.services.partner_balance import PartnerBalanceService, recalculate_partner_balance, to_decimal
from app.services.stock_service import StockService

STATS_TYPES = (
    TransactionType.sales,
    TransactionType.purchases,
    TransactionType.return_sales,
    TransactionType.return_purchases,
)


# ==================== HELPER FUNCTIONS ====================

def generate_serial_number(now: Optional[datetime] = None) -> str:
    """TRX-YYYYMMDD-XXXXXX: creation date plus a random suffix."""
    now = now or utcnow()
    suffix = "".join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(6))
    return f"TRX-{now.strftime('%Y%m%d')}-{suffix}"


def day_start(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def with_ledger_relations(query):
    return query.options(
        joinedload(Transaction.partner),
        selectinload(Transaction.items).joinedload(TransactionItem.product),
    )


class TransactionService:
    """
    Creates, updates and removes ledger entries and serves the read views over them.

    Every mutation is one unit of work: ledger rows are written, the affected
    partner is recalculated, then a single commit. Any failure rolls back.
    """

    def __init__(self, db: Session):
        self.db = db

    # ==================== LOOKUPS ====================

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Look up by id, falling back to the serial number."""
        transaction = (
            with_ledger_relations(self.db.query(Transaction))
            .filter(Transaction.id == transaction_id)
            .first()
        )
        if not transaction:
            transaction = (
                with_ledger_relations(self.db.query(Transaction))
                .filter(Transaction.serial_number == transaction_id)
                .first()
            )

        if transaction:
            logger.debug(f"Transaction found: {transaction_id}")
        else:
            logger.warning(f"Transaction not found: {transaction_id}")
        return transaction

    def require_transaction(self, transaction_id: str) -> Transaction:
        transaction = self.get_transaction(transaction_id)
        if not transaction:
            raise NotFoundError("Transaction not found")
        return transaction

    def next_serial_number(self) -> str:
        for attempt in range(settings.SERIAL_MAX_ATTEMPTS):
            serial_number = generate_serial_number()
            exists = (
                self.db.query(Transaction.id)
                .filter(Transaction.serial_number == serial_number)
                .first()
            )
            if not exists:
                return serial_number
            logger.debug(f"Serial number collision on attempt {attempt + 1}: {serial_number}")

        logger.error(f"Failed to generate unique serial number after {settings.SERIAL_MAX_ATTEMPTS} attempts")
        raise ConflictError("Failed to generate a unique serial number")

    def _resolve_partner(self, partner_id: Optional[str], transaction_type: TransactionType) -> Optional[Partner]:
        if not partner_id:
            if transaction_type in PARTNER_REQUIRED_TYPES:
                raise NotFoundError(f"Partner is required for {transaction_type.value} transactions")
            return None

        partner = self.db.query(Partner).filter(Partner.id == partner_id).first()
        if not partner:
            logger.error(f"Partner not found: {partner_id}")
            raise NotFoundError("Partner not found")
        return partner

    def resolve_products(self, product_ids: Iterable[str], lock: bool = False) -> Dict[str, Product]:
        product_ids = list(dict.fromkeys(product_ids))
        if not product_ids:
            return {}

        query = self.db.query(Product).filter(Product.id.in_(product_ids))
        if lock:
            query = query.with_for_update()
        products = {product.id: product for product in query.all()}

        missing = [product_id for product_id in product_ids if product_id not in products]
        if missing:
            logger.error(f"Products not found: {missing}")
            raise NotFoundError(
                f"Products not found: {', '.join(missing)}",
                details={"missing_product_ids": missing},
            )
        return products

    def check_stock(self, products: Dict[str, Product], items) -> None:
        """Fails with the full shortage list when any product would go below zero."""
        requested: Dict[str, int] = {}
        for item in items:
            requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

        current = StockService(self.db).compute_stock_quantities(requested.keys())

        shortages = []
        for product_id, requested_quantity in requested.items():
            current_quantity = current.get(product_id, 0)
            if current_quantity - requested_quantity < 0:
                product = products[product_id]
                shortages.append({
                    "product_id": product_id,
                    "name": product.name,
                    "sku": product.sku,
                    "current_quantity": current_quantity,
                    "requested_quantity": requested_quantity,
                    "shortage": requested_quantity - current_quantity,
                })

        if shortages:
            logger.warning(f"Insufficient stock for {len(shortages)} product(s): {shortages}")
            raise InsufficientStockError("Insufficient stock", details=shortages)

    # ==================== MUTATIONS ====================

    def create_transaction(self, data) -> Transaction:
        """
        Create a sales, purchases or deposit entry.

        Process:
            1. Resolve the partner (required for purchases and deposits)
            2. Resolve every referenced product
            3. Sales only: lock product rows and check derived stock
            4. Snapshot line prices, defaulting to catalog prices
            5. Generate a unique serial number
            6. Persist, recalculate the partner, commit once
        """
        transaction_type = TransactionType(data.transaction_type)
        balance = to_decimal(data.balance)
        paid = to_decimal(data.paid)

        logger.info(
            f"Starting {transaction_type.value} transaction - "
            f"Partner: {data.partner_id}, Items: {len(data.items)}, Balance: {balance}, Paid: {paid}"
        )

        try:
            if transaction_type in PAYMENT_BOUND_TYPES and paid > balance:
                raise ValidationError(
                    "Paid amount cannot exceed balance",
                    details={"balance": balance, "paid": paid},
                )

            if transaction_type in PRODUCT_REQUIRED_TYPES and not data.items:
                raise ValidationError(f"At least one item is required for {transaction_type.value} transactions")

            # 1. Partner
            partner = self._resolve_partner(data.partner_id, transaction_type)

            # 2-3. Products (locked for sales so concurrent sales serialize)
            is_sale = transaction_type == TransactionType.sales
            products = self.resolve_products((item.product_id for item in data.items), lock=is_sale)
            if is_sale:
                self.check_stock(products, data.items)

            # 4. Lines with snapshotted prices
            lines = []
            for item in data.items:
                product = products[item.product_id]
                lines.append(TransactionItem(
                    product_id=product.id,
                    quantity=item.quantity,
                    cost_price=item.cost_price if item.cost_price is not None else product.cost_price,
                    selling_price=item.selling_price if item.selling_price is not None else product.selling_price,
                ))

            # 5. Serial number
            serial_number = self.next_serial_number()

            # 6. Persist
            transaction = Transaction(
                serial_number=serial_number,
                partner_id=partner.id if partner else None,
                transaction_type=transaction_type,
                balance=balance,
                paid=paid,
                left=balance - paid,
                note=data.note,
                items=lines,
            )
            self.db.add(transaction)
            self.db.flush()

            if partner:
                recalculate_partner_balance(self.db, partner.id)

            self.db.commit()
            self.db.refresh(transaction)

            logger.info(
                f"✅ Transaction created: {transaction.id} ({serial_number}) - "
                f"Type: {transaction_type.value}, Lines: {len(lines)}, Balance: {balance}, Paid: {paid}"
            )
            return transaction

        except AppError as ae:
            self.db.rollback()
            logger.error(f"Validation error in transaction creation: {ae.message}")
            raise

        except IntegrityError as ie:
            self.db.rollback()
            logger.error(f"Database integrity error in transaction creation: {str(ie)}")
            raise ConflictError("Transaction conflicts with an existing record")

        except Exception:
            self.db.rollback()
            logger.error("Unexpected error in transaction creation", exc_info=True)
            raise

    def update_transaction(self, transaction_id: str, data) -> Transaction:
        """Only balance, paid and note change; left is recomputed."""
        transaction = self.require_transaction(transaction_id)

        balance = to_decimal(data.balance) if data.balance is not None else to_decimal(transaction.balance)
        paid = to_decimal(data.paid) if data.paid is not None else to_decimal(transaction.paid)

        if transaction.transaction_type in PAYMENT_BOUND_TYPES and paid > balance:
            logger.error(f"Update rejected for {transaction.id}: paid {paid} exceeds balance {balance}")
            raise ValidationError(
                "Paid amount cannot exceed balance",
                details={"balance": balance, "paid": paid},
            )

        try:
            old = (transaction.balance, transaction.paid, transaction.left)
            transaction.balance = balance
            transaction.paid = paid
            transaction.left = balance - paid
            if data.note is not None:
                transaction.note = data.note

            recalculate_partner_balance(self.db, transaction.partner_id)

            self.db.commit()
            self.db.refresh(transaction)

            logger.info(
                f"Transaction {transaction.id} updated - "
                f"Balance: {old[0]} → {transaction.balance}, "
                f"Paid: {old[1]} → {transaction.paid}, "
                f"Left: {old[2]} → {transaction.left}"
            )
            return transaction

        except IntegrityError as ie:
            self.db.rollback()
            logger.error(f"Database integrity error updating transaction {transaction_id}: {str(ie)}")
            raise ConflictError("Failed to update transaction due to database constraint")

        except Exception:
            self.db.rollback()
            logger.error(f"Unexpected error updating transaction {transaction_id}", exc_info=True)
            raise

    def delete_transaction(self, transaction_id: str) -> None:
        transaction = self.require_transaction(transaction_id)
        self.bulk_delete_transactions([transaction.id])

    def bulk_delete_transactions(self, transaction_ids: List[str]) -> Dict[str, int]:
        """
        Remove entries and their lines, then recalculate every distinct
        partner they referenced exactly once.
        """
        requested_ids = list(dict.fromkeys(transaction_ids))

        try:
            transactions = self.db.query(Transaction).filter(Transaction.id.in_(requested_ids)).all()
            partner_ids = {t.partner_id for t in transactions if t.partner_id}

            for transaction in transactions:
                self.db.delete(transaction)
            self.db.flush()

            for partner_id in sorted(partner_ids):
                recalculate_partner_balance(self.db, partner_id)

            self.db.commit()

            logger.info(
                f"Deleted {len(transactions)} of {len(requested_ids)} transactions, "
                f"recalculated {len(partner_ids)} partner(s)"
            )
            return {"deleted_count": len(transactions), "requested_count": len(requested_ids)}

        except Exception:
            self.db.rollback()
            logger.error("Error deleting transactions", exc_info=True)
            raise

    # ==================== READ VIEWS ====================

    def get_all_transactions(
        self,
        skip: int = 0,
        limit: int = 10,
        transaction_type: Optional[TransactionType] = None,
        serial_number: Optional[str] = None,
        partner: Optional[str] = None,
        product: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Tuple[List[Transaction], int]:
        query = with_ledger_relations(self.db.query(Transaction))

        if transaction_type:
            query = query.filter(Transaction.transaction_type == transaction_type)

        if serial_number:
            query = query.filter(Transaction.serial_number.ilike(f"%{serial_number}%"))

        if partner:
            query = query.filter(Transaction.partner.has(Partner.name.ilike(f"%{partner}%")))
            logger.debug(f"Filtering by partner name: {partner}")

        if product:
            query = query.filter(
                Transaction.items.any(TransactionItem.product.has(Product.name.ilike(f"%{product}%")))
            )
            logger.debug(f"Filtering by product name: {product}")

        if start_date:
            query = query.filter(Transaction.created_at >= day_start(start_date))

        if end_date:
            query = query.filter(Transaction.created_at < day_start(end_date + timedelta(days=1)))

        total = query.count()
        transactions = (
            query.order_by(Transaction.created_at.desc(), Transaction.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

        logger.info(f"Retrieved {len(transactions)} transactions out of {total} total")
        return transactions, total

    def get_transaction_stats(
        self,
        product_id: Optional[str] = None,
        partner_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Dict[str, Dict[str, int]]:
        """Per type {total_quantity, count}; types without entries report zeros."""
        query = (
            self.db.query(
                Transaction.transaction_type,
                func.coalesce(func.sum(TransactionItem.quantity), 0),
                func.count(func.distinct(Transaction.id)),
            )
            .outerjoin(TransactionItem, TransactionItem.transaction_id == Transaction.id)
            .filter(Transaction.transaction_type.in_(STATS_TYPES))
        )

        if product_id:
            query = query.filter(TransactionItem.product_id == product_id)
        if partner_id:
            query = query.filter(Transaction.partner_id == partner_id)
        if start_date:
            query = query.filter(Transaction.created_at >= day_start(start_date))
        if end_date:
            query = query.filter(Transaction.created_at < day_start(end_date + timedelta(days=1)))

        stats = {t.value: {"total_quantity": 0, "count": 0} for t in STATS_TYPES}
        for transaction_type, total_quantity, count in query.group_by(Transaction.transaction_type).all():
            key = TransactionType(transaction_type).value
            stats[key] = {"total_quantity": int(total_quantity or 0), "count": int(count or 0)}

        logger.debug(f"Transaction stats computed: {stats}")
        return stats

    def get_partner_transactions(
        self,
        partner_id: str,
        skip: int = 0,
        limit: int = 10,
    ) -> Tuple[Partner, List[Transaction], int, Dict[str, Decimal]]:
        partner = self.db.query(Partner).filter(Partner.id == partner_id).first()
        if not partner:
            logger.warning(f"Partner not found: {partner_id}")
            raise NotFoundError("Partner not found")

        query = with_ledger_relations(self.db.query(Transaction)).filter(Transaction.partner_id == partner_id)
        total = query.count()
        transactions = (
            query.order_by(Transaction.created_at.desc(), Transaction.id)
            .offset(skip)
            .limit(limit)
            .all()
        )
        totals = PartnerBalanceService(self.db).compute_totals(partner_id)

        return partner, transactions, total, totals
