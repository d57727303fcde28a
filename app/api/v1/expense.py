from datetime import date
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.common.exceptions import NotFoundError
from app.common.response import SuccessResponse, build_pagination
from app.core.dependencies import PageParams, get_db
from app.schemas.common import ApiResponse, BulkDeleteRequest, BulkDeleteResult
from app.schemas.expense import (
    ExpenseCreate,
    ExpenseUpdate,
    ExpenseResponse,
    ExpenseStatsResponse,
)
from app.services.expense_service import (
    bulk_delete_expenses,
    create_expense,
    delete_expense,
    get_all_expenses,
    get_expense_by_id,
    get_expense_stats,
    update_expense,
)

router = APIRouter()


@router.post("", response_model=ApiResponse[ExpenseResponse], status_code=status.HTTP_201_CREATED)
def create_single_expense(data: ExpenseCreate, db: Session = Depends(get_db)):
    """Create a single expense; date defaults to today if not provided."""
    expense = create_expense(
        db,
        title=data.title,
        amount=data.amount,
        category=data.category,
        expense_date=data.date,
        note=data.note,
    )
    return SuccessResponse.send(data=ExpenseResponse.model_validate(expense), message="Expense created successfully")


@router.get("", response_model=ApiResponse[List[ExpenseResponse]])
def list_expenses(
    page: PageParams = Depends(),
    category: Optional[str] = Query(None, description="Exact category, case-insensitive"),
    start_date: Optional[date] = Query(None, description="From date (inclusive)"),
    end_date: Optional[date] = Query(None, description="To date (inclusive)"),
    search: Optional[str] = Query(None, description="Search in title, note, category"),
    db: Session = Depends(get_db),
):
    rows, total = get_all_expenses(
        db,
        skip=page.skip,
        limit=page.limit,
        category=category,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    return SuccessResponse.send(
        data=[ExpenseResponse.model_validate(r) for r in rows],
        pagination=build_pagination(total, page.page, page.limit),
    )


@router.get("/stats", response_model=ApiResponse[ExpenseStatsResponse])
def expense_stats(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    """Total expense amount overall and per category."""
    return SuccessResponse.send(data=get_expense_stats(db, start_date=start_date, end_date=end_date))


@router.post("/bulk-delete", response_model=ApiResponse[BulkDeleteResult])
def bulk_delete_expenses_route(payload: BulkDeleteRequest, db: Session = Depends(get_db)):
    result = bulk_delete_expenses(db, payload.ids)
    return SuccessResponse.send(data=result, message=f"{result['deleted_count']} expenses deleted successfully")


@router.get("/{expense_id}", response_model=ApiResponse[ExpenseResponse])
def get_expense(expense_id: str, db: Session = Depends(get_db)):
    expense = get_expense_by_id(db, expense_id)
    if not expense:
        raise NotFoundError("Expense not found")
    return SuccessResponse.send(data=ExpenseResponse.model_validate(expense))


@router.put("/{expense_id}", response_model=ApiResponse[ExpenseResponse])
def update_expense_route(expense_id: str, data: ExpenseUpdate, db: Session = Depends(get_db)):
    expense = update_expense(
        db,
        expense_id,
        title=data.title,
        amount=data.amount,
        category=data.category,
        expense_date=data.date,
        note=data.note,
    )
    if not expense:
        raise NotFoundError("Expense not found")
    return SuccessResponse.send(data=ExpenseResponse.model_validate(expense), message="Expense updated successfully")


@router.delete("/{expense_id}", response_model=ApiResponse[None])
def delete_expense_route(expense_id: str, db: Session = Depends(get_db)):
    if not delete_expense(db, expense_id):
        raise NotFoundError("Expense not found")
    return SuccessResponse.send(message="Expense deleted successfully")
