"""Customer lookup and administration."""
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from src.api.middleware.error_handler import NotFoundException
from src.lib.logging import get_logger
from src.lib.validation import normalize_phone_number
from src.models.customers import Customer
from src.services.loyalty import can_redeem


logger = get_logger(__name__)


class CustomerService:
    """Read and delete customer loyalty accounts."""

    def __init__(self, session: Session):
        self.session = session

    def find(self, phone_number: str) -> Optional[Customer]:
        """Customer for a phone number, or None for a first-time customer."""
        return self.session.get(Customer, normalize_phone_number(phone_number))

    def get(self, phone_number: str) -> Customer:
        customer = self.find(phone_number)
        if customer is None:
            raise NotFoundException("Customer", phone_number)
        return customer

    def can_use_cashback(self, customer: Optional[Customer], total: Decimal) -> bool:
        """Advisory check used to enable the cashback payment option.

        Settlement re-checks against a fresh snapshot before writing.
        """
        balance = customer.cashback_balance if customer else Decimal("0")
        return can_redeem(customer is not None, balance, total)

    def list(self, search: Optional[str] = None) -> List[Customer]:
        """Customers newest first, optionally filtered by name or phone."""
        stmt = select(Customer)
        if search:
            term = search.strip()
            stmt = stmt.where(
                or_(
                    func.lower(Customer.customer_name).contains(term.lower(), autoescape=True),
                    Customer.phone_number.contains(term, autoescape=True),
                )
            )
        stmt = stmt.order_by(Customer.created_at.desc())
        return list(self.session.execute(stmt).scalars().all())

    def delete(self, phone_number: str) -> None:
        """Remove a customer row. Their transactions are kept."""
        phone = normalize_phone_number(phone_number)
        result = self.session.execute(
            delete(Customer).where(Customer.phone_number == phone)
        )
        if result.rowcount == 0:
            self.session.rollback()
            raise NotFoundException("Customer", phone_number)
        self.session.commit()
        logger.info("Customer deleted", extra={"customer_phone": phone})
