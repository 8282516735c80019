"""Transaction settlement.

Turns a validated cart into a persisted sale:

1. Validate the request (nothing touches the database on failure)
2. Load the customer snapshot, locking the row where the backend supports it
3. Re-check cashback redemption against that snapshot
4. Reserve a receipt number
5. Insert or update the customer (version-checked)
6. Insert the transaction
7. Commit and return the receipt view built from the stored row

Steps 2-7 share one database transaction: any failure rolls every write back,
so a customer can never be charged or credited without a matching receipt.
The customer row is written with an optimistic version check; a concurrent
settlement for the same phone number that committed first makes this one
fail with 409 instead of silently overwriting its balance.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from src.api.middleware.error_handler import (
    AppException,
    BadRequestException,
    ConflictException,
    TransactionFailedException,
    ValidationException,
)
from src.lib.logging import get_logger
from src.lib.metrics import get_metrics_collector
from src.lib.validation import (
    normalize_phone_number,
    validate_customer_name,
    validate_notes,
    validate_phone_number,
    validate_price,
)
from src.models.customers import Customer
from src.models.transactions import PaymentMode, ServiceCategory, Transaction
from src.services.cart_builders import Cart, build_cart
from src.services.loyalty import can_redeem, settle
from src.services.receipt_numbers import (
    ReceiptCounterConflict,
    ReceiptNumberGenerator,
    ReceiptSequenceExhausted,
)
from src.services.receipt_renderer import ReceiptView


logger = get_logger(__name__)


class SettlementService:
    """Settles carts for every service category."""

    def __init__(self, session: Session):
        self.session = session
        self.metrics = get_metrics_collector()

    def settle(
        self,
        *,
        customer_phone: str,
        customer_name: str,
        selection,
        payment_mode: str,
        additional_notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ReceiptView:
        """Settle one sale and return its receipt.

        Args:
            customer_phone: Customer phone number (loyalty account key)
            customer_name: Name typed at the counter; only used for new customers
            selection: Category-tagged form selection (see cart_builders)
            payment_mode: cash, transfer, pos or cashback
            additional_notes: Optional free text printed on the receipt
            now: Sale time (defaults to the current UTC time)

        Raises:
            ValidationException: missing or malformed fields (422)
            BadRequestException: empty cart or cashback balance too low (400)
            ConflictException: customer or receipt counter changed concurrently (409)
            TransactionFailedException: the database rejected a write (500)
        """
        phone, name, mode, notes = self._validate_fields(
            customer_phone, customer_name, selection, payment_mode, additional_notes
        )
        cart = build_cart(selection)
        self._validate_cart(cart)

        category = cart.category
        total = cart.total
        sold_at = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)

        try:
            customer = self.session.get(Customer, phone, with_for_update=True)
            prior_balance = customer.cashback_balance if customer else Decimal("0")

            if mode is PaymentMode.CASHBACK and not can_redeem(customer is not None, prior_balance, total):
                self.metrics.increment_failures(category.value, "insufficient_cashback")
                logger.warning(
                    "Cashback redemption refused",
                    extra={
                        "customer_phone": phone,
                        "total": str(total),
                        "balance": str(prior_balance),
                    },
                )
                raise BadRequestException(
                    "Insufficient cashback balance",
                    details={"balance": float(prior_balance), "total": float(total)},
                )

            result = settle(total, mode, prior_balance)
            receipt_number = ReceiptNumberGenerator(self.session).next_number(sold_at)

            if customer is None:
                customer = Customer(
                    phone_number=phone,
                    customer_name=name,
                    total_transactions=1,
                    total_spent=total,
                    cashback_balance=result.new_balance,
                )
                self.session.add(customer)
            else:
                customer.total_transactions += 1
                customer.total_spent = Decimal(customer.total_spent) + total
                customer.cashback_balance = result.new_balance

            transaction = Transaction(
                receipt_number=receipt_number,
                customer_name=customer.customer_name,
                customer_phone=phone,
                service_category=category,
                service_details=cart.to_details(),
                total_amount=result.amount_charged,
                payment_mode=mode,
                cashback_used=result.cashback_consumed,
                cashback_earned=result.cashback_earned,
                additional_notes=notes,
                transaction_date=sold_at,
            )
            self.session.add(transaction)
            self.session.commit()

        except AppException:
            self.session.rollback()
            raise
        except ReceiptCounterConflict as exc:
            self.session.rollback()
            self.metrics.increment_failures(category.value, "receipt_conflict")
            raise ConflictException("Another sale took this receipt number, please retry") from exc
        except (StaleDataError, IntegrityError) as exc:
            self.session.rollback()
            self.metrics.increment_failures(category.value, "conflict")
            logger.warning(
                "Settlement lost a concurrent update",
                extra={"customer_phone": phone, "cause": str(exc)},
            )
            raise ConflictException(
                "Customer record changed during checkout, please retry",
                details={"customer_phone": phone},
            ) from exc
        except (SQLAlchemyError, ReceiptSequenceExhausted) as exc:
            self.session.rollback()
            self.metrics.increment_failures(category.value, "remote_error")
            logger.error(
                "Settlement failed",
                extra={"customer_phone": phone, "category": category.value},
                exc_info=True,
            )
            raise TransactionFailedException(exc) from exc

        self.metrics.record_settlement(
            category=category.value,
            payment_mode=mode.value,
            amount_charged=result.amount_charged,
            cashback_used=result.cashback_consumed,
            cashback_earned=result.cashback_earned,
        )
        logger.info(
            "Transaction settled",
            extra={
                "receipt_number": receipt_number,
                "category": category.value,
                "payment_mode": mode.value,
                "amount_charged": str(result.amount_charged),
                "cashback_used": str(result.cashback_consumed),
                "cashback_earned": str(result.cashback_earned),
                "new_balance": str(result.new_balance),
            },
        )

        return ReceiptView.from_transaction(transaction)

    def _validate_fields(self, customer_phone, customer_name, selection, payment_mode, additional_notes):
        errors = {}

        phone = normalize_phone_number(customer_phone or "")
        if not phone:
            errors["customer_phone"] = "Phone number is required"
        elif not validate_phone_number(phone):
            errors["customer_phone"] = "Enter a valid Nigerian phone number"

        name = (customer_name or "").strip()
        if not name:
            errors["customer_name"] = "Customer name is required"
        elif not validate_customer_name(name):
            errors["customer_name"] = "Name may only contain letters, spaces, hyphens and apostrophes"

        mode = None
        try:
            mode = PaymentMode(payment_mode)
        except ValueError:
            errors["payment_mode"] = "Select a payment mode"

        category = getattr(selection, "category", None)
        if category not in {c.value for c in ServiceCategory}:
            errors["category"] = "Unknown service category"

        notes = (additional_notes or "").strip() or None
        if not validate_notes(notes):
            errors["additional_notes"] = "Notes must be at most 500 characters without HTML"

        if errors:
            raise ValidationException("Please fill in all required fields", errors=errors)

        return phone, name, mode, notes

    def _validate_cart(self, cart: Cart) -> None:
        if cart.is_empty or cart.total <= 0:
            raise BadRequestException("Please select at least one service")
        if not validate_price(cart.total):
            raise ValidationException(
                "Total exceeds the maximum transaction amount",
                errors={"total": float(cart.total)},
            )
