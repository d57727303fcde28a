from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.logger_config import logger
from app.models.expense import Expense
from app.models.product_category import generate_custom_id


def _today() -> date:
    return date.today()


def get_expense_by_id(db: Session, expense_id: str) -> Optional[Expense]:
    return db.query(Expense).filter(Expense.id == expense_id).first()


def create_expense(
    db: Session,
    title: str,
    amount: Decimal,
    category: Optional[str] = None,
    expense_date: Optional[date] = None,
    note: Optional[str] = None,
) -> Expense:
    """Create a single expense; date defaults to today and category to General."""
    expense_id = generate_custom_id("EXP")
    while get_expense_by_id(db, expense_id):
        expense_id = generate_custom_id("EXP")

    expense = Expense(
        id=expense_id,
        title=title.strip(),
        amount=amount,
        category=(category or "General").strip(),
        date=expense_date or _today(),
        note=note,
    )
    db.add(expense)
    try:
        db.commit()
        db.refresh(expense)
        logger.info(f"Expense created: {expense.id} - {expense.title} ({expense.amount})")
        return expense
    except Exception:
        db.rollback()
        logger.exception("Error creating expense")
        raise


def _filtered_query(
    db: Session,
    category: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
):
    query = db.query(Expense)
    if category:
        query = query.filter(func.lower(Expense.category) == category.strip().lower())
    if start_date is not None:
        query = query.filter(Expense.date >= start_date)
    if end_date is not None:
        query = query.filter(Expense.date <= end_date)
    if search and search.strip():
        term = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Expense.title.ilike(term),
                Expense.note.ilike(term),
                Expense.category.ilike(term),
            )
        )
    return query


def get_all_expenses(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    category: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
) -> Tuple[List[Expense], int]:
    """List expenses with filters: category, date range, search (title, note, category)."""
    query = _filtered_query(db, category, start_date, end_date, search)

    total_count = query.count()
    rows = (
        query.order_by(Expense.date.desc(), Expense.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return rows, total_count


def update_expense(
    db: Session,
    expense_id: str,
    title: Optional[str] = None,
    amount: Optional[Decimal] = None,
    category: Optional[str] = None,
    expense_date: Optional[date] = None,
    note: Optional[str] = None,
) -> Optional[Expense]:
    expense = get_expense_by_id(db, expense_id)
    if not expense:
        return None

    if title is not None:
        expense.title = title.strip()
    if amount is not None:
        expense.amount = amount
    if category is not None:
        expense.category = category.strip()
    if expense_date is not None:
        expense.date = expense_date
    if note is not None:
        expense.note = note

    try:
        db.commit()
        db.refresh(expense)
        logger.info(f"Expense updated: {expense_id}")
        return expense
    except Exception:
        db.rollback()
        logger.exception(f"Error updating expense {expense_id}")
        raise


def delete_expense(db: Session, expense_id: str) -> bool:
    expense = get_expense_by_id(db, expense_id)
    if not expense:
        return False

    db.delete(expense)
    try:
        db.commit()
        logger.info(f"Expense deleted: {expense_id}")
        return True
    except Exception:
        db.rollback()
        logger.exception(f"Error deleting expense {expense_id}")
        raise


def bulk_delete_expenses(db: Session, expense_ids: List[str]) -> Dict[str, int]:
    requested_ids = list(dict.fromkeys(expense_ids))
    try:
        deleted = db.query(Expense).filter(Expense.id.in_(requested_ids)).delete(synchronize_session=False)
        db.commit()
        logger.info(f"Deleted {deleted} of {len(requested_ids)} expenses")
        return {"deleted_count": deleted, "requested_count": len(requested_ids)}
    except Exception:
        db.rollback()
        logger.exception("Error deleting expenses")
        raise


def get_expense_stats(
    db: Session,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Dict:
    """Totals overall and grouped by category, largest category first."""
    query = _filtered_query(db, start_date=start_date, end_date=end_date)

    total_row = query.with_entities(
        func.coalesce(func.sum(Expense.amount), 0),
        func.count(Expense.id),
    ).first()
    total_amount = Decimal(str(total_row[0])) if total_row else Decimal("0")
    count = int(total_row[1]) if total_row else 0

    category_total = func.coalesce(func.sum(Expense.amount), 0)
    rows = (
        query.with_entities(Expense.category, category_total, func.count(Expense.id))
        .group_by(Expense.category)
        .order_by(category_total.desc())
        .all()
    )
    by_category = [
        {"category": name, "total_amount": Decimal(str(amount)), "count": int(n)}
        for name, amount, n in rows
    ]

    return {"total_amount": total_amount, "count": count, "by_category": by_category}
