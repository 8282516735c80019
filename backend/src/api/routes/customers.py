"""
Customer loyalty account routes.

All endpoints require an authenticated admin.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from src.api.dependencies import get_current_admin
from src.lib.db import get_db
from src.models.admins import Admin
from src.services.customer_service import CustomerService
from src.services.receipt_renderer import Money


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    phone_number: str
    customer_name: str
    total_transactions: int
    total_spent: Money
    cashback_balance: Money
    created_at: datetime
    updated_at: datetime


class CustomerLookupResponse(CustomerResponse):
    """Customer plus whether cashback can pay the given total."""
    can_redeem: Optional[bool] = None


router = APIRouter(prefix="/customers", tags=["customers"])


def get_customer_service(db: Session = Depends(get_db)) -> CustomerService:
    return CustomerService(db)


@router.get("", response_model=List[CustomerResponse])
def list_customers(
    search: Optional[str] = Query(None, max_length=100, description="Match name or phone"),
    service: CustomerService = Depends(get_customer_service),
    admin: Admin = Depends(get_current_admin),
):
    """List customers, newest first."""
    return [CustomerResponse.model_validate(c) for c in service.list(search)]


@router.get("/{phone_number}", response_model=CustomerLookupResponse)
def get_customer(
    phone_number: str,
    total: Optional[Decimal] = Query(None, ge=0, description="Cart total to check redemption against"),
    service: CustomerService = Depends(get_customer_service),
    admin: Admin = Depends(get_current_admin),
):
    """
    Look up a customer by phone number.

    Used by the counter form to prefill the name and show the cashback
    balance. With `total`, also reports whether cashback can pay for it.

    Raises:
        404: No customer with this phone number
    """
    customer = service.get(phone_number)
    response = CustomerLookupResponse.model_validate(customer)
    if total is not None:
        response.can_redeem = service.can_use_cashback(customer, total)
    return response


@router.delete("/{phone_number}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(
    phone_number: str,
    service: CustomerService = Depends(get_customer_service),
    admin: Admin = Depends(get_current_admin),
):
    """Delete a customer record. Their past transactions stay in history."""
    service.delete(phone_number)
