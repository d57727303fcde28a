"""
Transaction Module Routes
Ledger entries (sales, purchases, deposits), their returns, and the read views over them.
"""

from datetime import date
from typing import Annotated, List, Optional
from fastapi import APIRouter, Body, Depends, Path, Query, status
from sqlalchemy.orm import Session

from app.common.exceptions import NotFoundError
from app.common.response import SuccessResponse, build_pagination
from app.core.dependencies import PageParams, get_db
from app.models.transaction import TransactionType
from app.schemas.common import ApiResponse, BulkDeleteRequest, BulkDeleteResult
from app.schemas.transaction import (
    # Request schemas
    TransactionCreate,
    TransactionUpdate,
    ReturnCreate,

    # Response schemas
    TransactionResponse,
    TransactionListItem,
    TransactionStatsResponse,
    PartnerTransactionsResponse,
    ReturnSummaryResponse,
)
from app.services.return_service import ReturnService
from app.services.transaction_service import TransactionService


router = APIRouter()

# Sales and their returns are priced at selling price; everything else at cost
SELLING_PRICE_TYPES = (TransactionType.sales, TransactionType.return_sales)


# ============================================================================
# Helper Functions
# ============================================================================

def build_transaction_items(transaction) -> List[dict]:
    use_selling = transaction.transaction_type in SELLING_PRICE_TYPES
    items = []
    for item in transaction.items:
        price = item.selling_price if use_selling else item.cost_price
        items.append({
            "product_id": item.product_id,
            "name": item.product.name if item.product else None,
            "sku": item.product.sku if item.product else None,
            "quantity": item.quantity,
            "cost_price": item.cost_price,
            "selling_price": item.selling_price,
            "price": price,
            "total": price * item.quantity,
        })
    return items


def build_transaction_response(transaction) -> TransactionResponse:
    """Build a complete transaction response with product and partner display fields."""
    return TransactionResponse(**transaction_fields(transaction))


def build_transaction_list_item(transaction) -> TransactionListItem:
    """Listing row: adds the line quantity total and a short product label."""
    items = transaction.items
    if not items:
        product_display = None
    elif len(items) == 1:
        product_display = items[0].product.name if items[0].product else items[0].product_id
    else:
        product_display = f"{len(items)} products"

    return TransactionListItem(
        **transaction_fields(transaction),
        total_quantity=sum(item.quantity for item in items),
        product_display=product_display,
    )


def transaction_fields(transaction) -> dict:
    partner = transaction.partner
    return {
        "id": transaction.id,
        "serial_number": transaction.serial_number,
        "transaction_type": transaction.transaction_type,
        "partner_id": transaction.partner_id,
        "partner": {"id": partner.id, "name": partner.name, "type": partner.type} if partner else None,
        "items": build_transaction_items(transaction),
        "balance": transaction.balance,
        "paid": transaction.paid,
        "left": transaction.left,
        "note": transaction.note,
        "original_transaction_id": transaction.original_transaction_id,
        "created_at": transaction.created_at,
    }


# ============================================================================
# Transaction Endpoints
# ============================================================================

@router.post(
    "",
    response_model=ApiResponse[TransactionResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create Transaction",
    description="Create a sales, purchases or deposit entry. Sales are checked against derived stock."
)
def create_transaction(
    transaction_data: Annotated[TransactionCreate, Body(discriminator="transaction_type")],
    db: Session = Depends(get_db)
):
    transaction = TransactionService(db).create_transaction(transaction_data)
    return SuccessResponse.send(
        data=build_transaction_response(transaction),
        message="Transaction created successfully"
    )


@router.get(
    "",
    response_model=ApiResponse[List[TransactionListItem]],
    summary="List Transactions",
    description="Newest first, with optional type, serial, partner, product and date filters"
)
def list_transactions(
    page: PageParams = Depends(),
    transaction_type: Optional[TransactionType] = Query(None),
    serial_number: Optional[str] = Query(None, description="Serial number contains"),
    partner: Optional[str] = Query(None, description="Partner name contains"),
    product: Optional[str] = Query(None, description="Product name contains"),
    start_date: Optional[date] = Query(None, description="Created on or after (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="Created on or before (YYYY-MM-DD)"),
    db: Session = Depends(get_db)
):
    transactions, total = TransactionService(db).get_all_transactions(
        skip=page.skip,
        limit=page.limit,
        transaction_type=transaction_type,
        serial_number=serial_number,
        partner=partner,
        product=product,
        start_date=start_date,
        end_date=end_date,
    )
    return SuccessResponse.send(
        data=[build_transaction_list_item(t) for t in transactions],
        pagination=build_pagination(total, page.page, page.limit)
    )


@router.post(
    "/bulk-delete",
    response_model=ApiResponse[BulkDeleteResult],
    summary="Bulk Delete Transactions"
)
def bulk_delete_transactions(payload: BulkDeleteRequest, db: Session = Depends(get_db)):
    result = TransactionService(db).bulk_delete_transactions(payload.ids)
    return SuccessResponse.send(
        data=result,
        message=f"{result['deleted_count']} transactions deleted successfully"
    )


@router.get(
    "/stats",
    response_model=ApiResponse[TransactionStatsResponse],
    summary="Transaction Statistics",
    description="Quantity and count per type for sales, purchases and both return types"
)
def transaction_stats(
    product_id: Optional[str] = Query(None),
    partner_id: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db)
):
    stats = TransactionService(db).get_transaction_stats(
        product_id=product_id,
        partner_id=partner_id,
        start_date=start_date,
        end_date=end_date,
    )
    return SuccessResponse.send(data=stats)


@router.get(
    "/partner",
    response_model=ApiResponse[PartnerTransactionsResponse],
    summary="Partner Transactions",
    description="A partner's entries with balance, paid and left totals from the ledger"
)
def partner_transactions(
    partner_id: str = Query(..., min_length=1),
    page: PageParams = Depends(),
    db: Session = Depends(get_db)
):
    partner, transactions, total, totals = TransactionService(db).get_partner_transactions(
        partner_id, skip=page.skip, limit=page.limit
    )
    return SuccessResponse.send(
        data={
            "partner": {"id": partner.id, "name": partner.name, "type": partner.type},
            "transactions": [build_transaction_list_item(t) for t in transactions],
            "totals": totals,
        },
        pagination=build_pagination(total, page.page, page.limit)
    )


@router.get(
    "/{transaction_id}",
    response_model=ApiResponse[TransactionResponse],
    summary="Get Transaction",
    description="Look up by transaction ID or serial number"
)
def get_transaction(
    transaction_id: str = Path(..., description="Transaction ID or serial number"),
    db: Session = Depends(get_db)
):
    transaction = TransactionService(db).get_transaction(transaction_id)
    if not transaction:
        raise NotFoundError("Transaction not found")
    return SuccessResponse.send(data=build_transaction_response(transaction))


@router.put(
    "/{transaction_id}",
    response_model=ApiResponse[TransactionResponse],
    summary="Update Transaction",
    description="Only balance, paid and note can change"
)
def update_transaction(
    transaction_id: str,
    transaction_data: TransactionUpdate,
    db: Session = Depends(get_db)
):
    transaction = TransactionService(db).update_transaction(transaction_id, transaction_data)
    return SuccessResponse.send(
        data=build_transaction_response(transaction),
        message="Transaction updated successfully"
    )


@router.delete("/{transaction_id}", response_model=ApiResponse[None], summary="Delete Transaction")
def delete_transaction(transaction_id: str, db: Session = Depends(get_db)):
    TransactionService(db).delete_transaction(transaction_id)
    return SuccessResponse.send(message="Transaction deleted successfully")


# ============================================================================
# Return Endpoints
# ============================================================================

@router.post(
    "/{transaction_id}/returns",
    response_model=ApiResponse[TransactionResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Return Products",
    description="Return part of a sales or purchases entry, bounded by the unreturned quantity"
)
def return_products(
    transaction_id: str,
    return_data: ReturnCreate,
    db: Session = Depends(get_db)
):
    return_entry = ReturnService(db).return_products(transaction_id, return_data)
    return SuccessResponse.send(
        data=build_transaction_response(return_entry),
        message="Products returned successfully"
    )


@router.get(
    "/{transaction_id}/returns",
    response_model=ApiResponse[ReturnSummaryResponse],
    summary="Return Summary"
)
def return_summary(transaction_id: str, db: Session = Depends(get_db)):
    return SuccessResponse.send(data=ReturnService(db).get_return_summary(transaction_id))
