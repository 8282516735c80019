"""
Receipt counter model - last issued receipt sequence per business day.
"""
from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column

from src.lib.db import Base


class ReceiptCounter(Base):
    """One row per day (YYYYMMDD in the business timezone)."""
    __tablename__ = "receipt_counters"

    day: Mapped[str] = mapped_column(String(8), primary_key=True)
    last_sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<ReceiptCounter(day={self.day}, last_sequence={self.last_sequence})>"
