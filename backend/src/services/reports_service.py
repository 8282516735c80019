"""Transaction history, totals and the bulk history wipe."""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from src.api.middleware.error_handler import NotFoundException
from src.lib.business_time import business_now
from src.lib.logging import get_logger
from src.models.customers import Customer
from src.models.transactions import ServiceCategory, Transaction


logger = get_logger(__name__)


class DateRange(str, Enum):
    """Report windows offered on the reports screen."""
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


@dataclass(frozen=True)
class TransactionStats:
    total_transactions: int
    total_revenue: Decimal
    total_cashback: Decimal


@dataclass(frozen=True)
class ClearResult:
    transactions_deleted: int
    customers_reset: int


def range_start(date_range: DateRange, now: Optional[datetime] = None) -> Optional[datetime]:
    """First instant included by a report window (None for all time)."""
    now = now or business_now()
    date_range = DateRange(date_range)
    if date_range is DateRange.ALL:
        return None
    if date_range is DateRange.TODAY:
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if date_range is DateRange.WEEK:
        return now - timedelta(days=7)
    if date_range is DateRange.MONTH:
        month = now.month - 1 or 12
        year = now.year - 1 if now.month == 1 else now.year
        return _clamped_replace(now, year=year, month=month)
    return _clamped_replace(now, year=now.year - 1)


def _clamped_replace(value: datetime, **fields) -> datetime:
    # 31 March minus one month is the last day of February
    day = value.day
    while True:
        try:
            return value.replace(day=day, **fields)
        except ValueError:
            day -= 1


class ReportsService:
    """Queries behind the reports screen."""

    def __init__(self, session: Session):
        self.session = session

    def list_transactions(
        self,
        search: Optional[str] = None,
        category: Optional[ServiceCategory] = None,
        date_range: DateRange = DateRange.ALL,
        now: Optional[datetime] = None,
    ) -> List[Transaction]:
        """Transactions newest first, filtered like the reports screen."""
        stmt = select(Transaction)

        if search:
            term = search.strip()
            stmt = stmt.where(
                or_(
                    func.lower(Transaction.customer_name).contains(term.lower(), autoescape=True),
                    Transaction.customer_phone.contains(term, autoescape=True),
                    func.lower(Transaction.receipt_number).contains(term.lower(), autoescape=True),
                )
            )

        if category:
            stmt = stmt.where(Transaction.service_category == ServiceCategory(category))

        start = range_start(date_range, now)
        if start is not None:
            stmt = stmt.where(Transaction.transaction_date >= start.astimezone(timezone.utc))

        stmt = stmt.order_by(Transaction.transaction_date.desc())
        return list(self.session.execute(stmt).scalars().all())

    @staticmethod
    def stats(transactions: List[Transaction]) -> TransactionStats:
        """Totals for an already filtered list."""
        return TransactionStats(
            total_transactions=len(transactions),
            total_revenue=sum((Decimal(t.total_amount) for t in transactions), Decimal("0")),
            total_cashback=sum((Decimal(t.cashback_earned) for t in transactions), Decimal("0")),
        )

    def get_by_receipt_number(self, receipt_number: str) -> Transaction:
        transaction = self.session.execute(
            select(Transaction).where(Transaction.receipt_number == receipt_number)
        ).scalar_one_or_none()
        if transaction is None:
            raise NotFoundException("Transaction", receipt_number)
        return transaction

    def clear_all_history(self) -> ClearResult:
        """Delete every transaction and zero every customer's counters and balance.

        Irreversible: outstanding cashback balances are wiped too.
        """
        deleted = self.session.execute(delete(Transaction)).rowcount
        reset = self.session.execute(
            update(Customer)
            .values(
                total_transactions=0,
                total_spent=Decimal("0"),
                cashback_balance=Decimal("0"),
                version=Customer.version + 1,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        ).rowcount
        self.session.commit()

        logger.warning(
            "Transaction history cleared",
            extra={"transactions_deleted": deleted, "customers_reset": reset},
        )
        return ClearResult(transactions_deleted=deleted, customers_reset=reset)
