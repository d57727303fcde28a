from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.logger_config import logger
from app.models.partner import Partner
from app.models.transaction import RETURN_TYPES, Transaction


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(Decimal("0.01"))


def signed_amount_expression(column):
    """Returns count against a partner negatively; every other type counts as stored."""
    amount = func.coalesce(column, 0)
    return case(
        (Transaction.transaction_type.in_(RETURN_TYPES), -amount),
        else_=amount,
    )


class PartnerBalanceService:
    """
    Folds a partner's ledger entries into {balance, paid, left}.

    Partner.balance/paid/left are a cache of this fold. Every ledger mutation
    that touches a partner calls `recalculate` inside the same unit of work,
    before the caller commits.
    """

    def __init__(self, db: Session):
        self.db = db

    def compute_totals(self, partner_id: str) -> Dict[str, Decimal]:
        total_balance, total_paid = (
            self.db.query(
                func.coalesce(func.sum(signed_amount_expression(Transaction.balance)), 0),
                func.coalesce(func.sum(signed_amount_expression(Transaction.paid)), 0),
            )
            .filter(Transaction.partner_id == partner_id)
            .one()
        )

        balance = to_decimal(total_balance)
        paid = to_decimal(total_paid)

        return {"balance": balance, "paid": paid, "left": balance - paid}

    def recalculate(self, partner_id: Optional[str]) -> Optional[Partner]:
        """
        Recompute and store the cached totals for one partner.
        Returns None without touching anything when partner_id is empty or unknown.
        Flushes but does not commit.
        """
        if not partner_id:
            return None

        # Pending ledger rows must be visible to the aggregate
        self.db.flush()

        partner = (
            self.db.query(Partner)
            .filter(Partner.id == partner_id)
            .with_for_update()
            .first()
        )
        if not partner:
            logger.warning(f"Partner not found for recalculation: {partner_id}")
            return None

        totals = self.compute_totals(partner_id)

        old = (partner.balance, partner.paid, partner.left)
        partner.balance = totals["balance"]
        partner.paid = totals["paid"]
        partner.left = totals["left"]
        self.db.flush()

        logger.info(
            f"Partner {partner.id} recalculated - "
            f"Balance: {old[0]} → {partner.balance}, "
            f"Paid: {old[1]} → {partner.paid}, "
            f"Left: {old[2]} → {partner.left}"
        )
        return partner

    def recalculate_many(self, partners: List[Partner]) -> List[Partner]:
        """
        Refresh the cached totals for already-loaded partners with one grouped
        aggregate and a single flush. Partners without ledger entries go to zero.
        """
        if not partners:
            return partners

        self.db.flush()

        partner_ids = [partner.id for partner in partners]
        rows = (
            self.db.query(
                Transaction.partner_id,
                func.coalesce(func.sum(signed_amount_expression(Transaction.balance)), 0),
                func.coalesce(func.sum(signed_amount_expression(Transaction.paid)), 0),
            )
            .filter(Transaction.partner_id.in_(partner_ids))
            .group_by(Transaction.partner_id)
            .all()
        )
        totals = {partner_id: (to_decimal(balance), to_decimal(paid)) for partner_id, balance, paid in rows}

        zero = Decimal("0.00")
        for partner in partners:
            balance, paid = totals.get(partner.id, (zero, zero))
            partner.balance = balance
            partner.paid = paid
            partner.left = balance - paid
        self.db.flush()

        logger.debug(f"Recalculated {len(partners)} partners in one pass")
        return partners


def recalculate_partner_balance(db: Session, partner_id: Optional[str]) -> Optional[Partner]:
    """Module-level entry point used by the ledger services."""
    return PartnerBalanceService(db).recalculate(partner_id)
