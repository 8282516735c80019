"""
Transaction model - one immutable row per settled sale (the receipt).
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4
import enum

from sqlalchemy import (
    JSON,
    String,
    Text,
    Numeric,
    DateTime,
    Uuid,
    Enum as SQLEnum,
    CheckConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.lib.db import Base


class ServiceCategory(str, enum.Enum):
    """Service categories offered by the shop."""
    BARBING = "barbing"
    CHARGING = "charging"
    COMPUTER = "computer"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    ServiceCategory.BARBING: "Barbing Services",
    ServiceCategory.CHARGING: "Charging Hub",
    ServiceCategory.COMPUTER: "Computer Services",
}


class PaymentMode(str, enum.Enum):
    """How the customer paid."""
    CASH = "cash"
    TRANSFER = "transfer"
    POS = "pos"  # card terminal
    CASHBACK = "cashback"  # loyalty redemption

    @property
    def label(self) -> str:
        return "POS" if self is PaymentMode.POS else self.value.title()


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class Transaction(Base):
    """
    Transaction entity - settled sale.

    Customer name and phone are a snapshot taken at sale time; `customer_phone`
    is a soft reference to customers.phone_number so that deleting a customer
    leaves its history in place.
    """
    __tablename__ = "transactions"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )

    receipt_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        unique=True,
        comment="CFT + YYYYMMDD + 3-digit daily sequence",
    )

    # Customer snapshot
    customer_name: Mapped[str] = mapped_column(String(100), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    # Sale
    service_category: Mapped[ServiceCategory] = mapped_column(
        SQLEnum(ServiceCategory, name="service_category", values_callable=_enum_values),
        nullable=False,
        index=True,
    )
    service_details: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        comment="Priced cart snapshot tagged by category",
    )
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Amount actually collected (0 for cashback redemption)",
    )
    payment_mode: Mapped[PaymentMode] = mapped_column(
        SQLEnum(PaymentMode, name="payment_mode", values_callable=_enum_values),
        nullable=False,
    )
    cashback_used: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    cashback_earned: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    additional_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    transaction_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="transaction_total_non_negative"),
        CheckConstraint("cashback_used >= 0", name="transaction_cashback_used_non_negative"),
        CheckConstraint("cashback_earned >= 0", name="transaction_cashback_earned_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<Transaction(receipt={self.receipt_number}, category={self.service_category}, "
            f"total={self.total_amount})>"
        )
