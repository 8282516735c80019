"""
Transaction routes: settle a sale, browse history, fetch receipts.

All endpoints require an authenticated admin.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from src.api.dependencies import enforce_transaction_rate_limit, get_current_admin
from src.api.middleware.error_handler import ValidationException
from src.lib.db import get_db
from src.lib.validation import validate_receipt_number
from src.models.admins import Admin
from src.models.transactions import PaymentMode, ServiceCategory
from src.services.cart_builders import ServiceSelection
from src.services.receipt_renderer import Money, ReceiptView, render_receipt_text
from src.services.reports_service import DateRange, ReportsService
from src.services.settlement_service import SettlementService


# Pydantic schemas
class CreateTransactionRequest(BaseModel):
    """A sale submitted from the counter form."""
    customer_phone: str = Field(..., max_length=20, examples=["08012345678"])
    customer_name: str = Field(..., max_length=100, examples=["Ada Obi"])
    payment_mode: PaymentMode
    details: ServiceSelection
    additional_notes: Optional[str] = Field(None, max_length=500)


class TransactionSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    receipt_number: str
    customer_name: str
    customer_phone: str
    service_category: ServiceCategory
    total_amount: Money
    payment_mode: PaymentMode
    cashback_used: Money
    cashback_earned: Money
    transaction_date: datetime


class TransactionStatsResponse(BaseModel):
    total_transactions: int
    total_revenue: Money
    total_cashback: Money


class TransactionListResponse(BaseModel):
    transactions: List[TransactionSummary]
    stats: TransactionStatsResponse


# Router
router = APIRouter(prefix="/transactions", tags=["transactions"])


def get_settlement_service(db: Session = Depends(get_db)) -> SettlementService:
    return SettlementService(db)


def get_reports_service(db: Session = Depends(get_db)) -> ReportsService:
    return ReportsService(db)


def _checked_receipt_number(receipt_number: str) -> str:
    if not validate_receipt_number(receipt_number):
        raise ValidationException(
            "Invalid receipt number",
            errors={"receipt_number": "Expected CFT followed by 11 digits"},
        )
    return receipt_number


@router.post("", response_model=ReceiptView, status_code=status.HTTP_201_CREATED)
def create_transaction(
    request: CreateTransactionRequest,
    service: SettlementService = Depends(get_settlement_service),
    admin: Admin = Depends(enforce_transaction_rate_limit),
):
    """
    Settle a sale and return its receipt.

    Raises:
        400: Empty cart or insufficient cashback balance
        409: Customer record changed concurrently
        422: Missing or invalid fields
        429: Too many transactions from this admin
        500: Transaction failed; nothing was written
    """
    return service.settle(
        customer_phone=request.customer_phone,
        customer_name=request.customer_name,
        selection=request.details,
        payment_mode=request.payment_mode.value,
        additional_notes=request.additional_notes,
    )


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    search: Optional[str] = Query(None, max_length=100, description="Match name, phone or receipt number"),
    category: Optional[ServiceCategory] = Query(None),
    date_range: DateRange = Query(DateRange.ALL),
    service: ReportsService = Depends(get_reports_service),
    admin: Admin = Depends(get_current_admin),
):
    """Transaction history with totals for the filtered set."""
    transactions = service.list_transactions(search=search, category=category, date_range=date_range)
    stats = service.stats(transactions)
    return TransactionListResponse(
        transactions=[TransactionSummary.model_validate(t) for t in transactions],
        stats=TransactionStatsResponse(
            total_transactions=stats.total_transactions,
            total_revenue=stats.total_revenue,
            total_cashback=stats.total_cashback,
        ),
    )


@router.get("/{receipt_number}", response_model=ReceiptView)
def get_transaction(
    receipt_number: str,
    service: ReportsService = Depends(get_reports_service),
    admin: Admin = Depends(get_current_admin),
):
    """Receipt data for a past transaction."""
    transaction = service.get_by_receipt_number(_checked_receipt_number(receipt_number))
    return ReceiptView.from_transaction(transaction)


@router.get("/{receipt_number}/receipt", response_class=PlainTextResponse)
def get_receipt_text(
    receipt_number: str,
    service: ReportsService = Depends(get_reports_service),
    admin: Admin = Depends(get_current_admin),
):
    """Printable receipt for a past transaction."""
    transaction = service.get_by_receipt_number(_checked_receipt_number(receipt_number))
    return PlainTextResponse(render_receipt_text(ReceiptView.from_transaction(transaction)))
