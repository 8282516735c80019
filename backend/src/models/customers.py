"""
Customer model - loyalty account keyed by phone number.
"""
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Integer, Numeric, DateTime, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.lib.db import Base


class Customer(Base):
    """
    Customer entity - one row per phone number.

    Counters and cashback balance are rewritten on every settlement. The
    `version` column is the optimistic-concurrency token: an UPDATE issued from
    a stale snapshot matches zero rows and the settlement is refused.
    """
    __tablename__ = "customers"

    # Primary key (also the loyalty-account key)
    phone_number: Mapped[str] = mapped_column(String(20), primary_key=True)

    # Sticky: set on first transaction, never overwritten by later sales
    customer_name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Lifetime counters
    total_transactions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_spent: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
    )

    # Loyalty balance; must never go negative
    cashback_balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint("cashback_balance >= 0", name="customer_cashback_non_negative"),
    )
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<Customer(phone={self.phone_number}, name={self.customer_name}, "
            f"balance={self.cashback_balance})>"
        )
