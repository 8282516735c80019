"""Receipt number issuing.

Receipt numbers look like ``CFT20250119001``: the prefix, the business day
and a 3-digit sequence that restarts every day. The per-day counter row is
locked and bumped inside the caller's transaction, so a settlement that rolls
back gives its number back.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from src.lib.business_time import business_now, to_business_time
from src.lib.logging import get_logger
from src.models.receipt_counters import ReceiptCounter


logger = get_logger(__name__)

RECEIPT_PREFIX = "CFT"
MAX_DAILY_SEQUENCE = 999


class ReceiptSequenceExhausted(RuntimeError):
    """All 999 receipt numbers for the day have been issued."""


class ReceiptCounterConflict(RuntimeError):
    """Another settlement opened the same day's counter row first."""


class ReceiptNumberGenerator:
    """Issues unique, date-encoded receipt numbers."""

    def __init__(self, session: Session):
        self.session = session

    def next_number(self, now: Optional[datetime] = None) -> str:
        """Reserve the next receipt number for the business day of `now`.

        Raises:
            ReceiptSequenceExhausted: the day's sequence is used up
            ReceiptCounterConflict: a concurrent first sale of the day created the counter
            SQLAlchemyError: the counter could not be read or written
        """
        day = (to_business_time(now) if now else business_now()).strftime("%Y%m%d")

        counter = self.session.execute(
            select(ReceiptCounter)
            .where(ReceiptCounter.day == day)
            .with_for_update()
        ).scalar_one_or_none()

        if counter is None:
            counter = ReceiptCounter(day=day, last_sequence=0)
            self.session.add(counter)

        if counter.last_sequence >= MAX_DAILY_SEQUENCE:
            logger.error("Receipt sequence exhausted", extra={"day": day})
            raise ReceiptSequenceExhausted(f"No receipt numbers left for {day}")

        counter.last_sequence += 1
        try:
            self.session.flush()
        except IntegrityError as exc:
            logger.warning("Receipt counter created concurrently", extra={"day": day})
            raise ReceiptCounterConflict(f"Receipt counter for {day} was created concurrently") from exc

        return f"{RECEIPT_PREFIX}{day}{counter.last_sequence:03d}"
