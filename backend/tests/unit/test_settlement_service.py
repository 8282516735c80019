"""Tests for transaction settlement against an in-memory database."""
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError

from src.api.middleware.error_handler import (
    BadRequestException,
    ConflictException,
    TransactionFailedException,
    ValidationException,
)
from src.lib.metrics import get_metrics_collector
from src.models.customers import Customer
from src.models.receipt_counters import ReceiptCounter
from src.models.transactions import PaymentMode, ServiceCategory, Transaction
from src.services.cart_builders import BarbingSelection, ChargingSelection, ComputerSelection
from src.services.receipt_numbers import (
    ReceiptCounterConflict,
    ReceiptNumberGenerator,
    ReceiptSequenceExhausted,
)
from src.services.settlement_service import SettlementService


PHONE = "08012345678"
SOLD_AT = datetime(2025, 1, 19, 9, 0, tzinfo=timezone.utc)


def haircut():
    return BarbingSelection(service_type="adult_male_cut")


def android_charge():
    return ChargingSelection(devices=["android"], port_number=3)


def count(session, model):
    return session.execute(select(func.count()).select_from(model)).scalar_one()


def add_customer(session, balance, total_transactions=3, total_spent="4000", name="Ada Obi"):
    customer = Customer(
        phone_number=PHONE,
        customer_name=name,
        total_transactions=total_transactions,
        total_spent=Decimal(total_spent),
        cashback_balance=Decimal(balance),
    )
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture
def service(db_session):
    return SettlementService(db_session)


@pytest.mark.unit
class TestSuccessfulSettlement:

    def test_first_purchase_creates_customer(self, service, db_session):
        receipt = service.settle(
            customer_phone=PHONE,
            customer_name="Ada Obi",
            selection=haircut(),
            payment_mode="cash",
            now=SOLD_AT,
        )

        assert receipt.receipt_number == "CFT20250119001"
        assert receipt.total_amount == Decimal("1000")
        assert receipt.cashback_used == Decimal("0")
        assert receipt.cashback_earned == Decimal("50")
        assert receipt.service_category is ServiceCategory.BARBING

        customer = db_session.get(Customer, PHONE)
        assert customer.customer_name == "Ada Obi"
        assert customer.total_transactions == 1
        assert customer.total_spent == Decimal("1000")
        assert customer.cashback_balance == Decimal("50")

        transaction = db_session.execute(select(Transaction)).scalar_one()
        assert transaction.payment_mode is PaymentMode.CASH
        assert transaction.service_details["service_type"] == "Adult Male Cut"
        assert transaction.service_details["total"] == 1000

    def test_returning_customer_keeps_first_name(self, service, db_session):
        service.settle(customer_phone=PHONE, customer_name="Ada Obi", selection=haircut(),
                       payment_mode="cash", now=SOLD_AT)
        receipt = service.settle(customer_phone=PHONE, customer_name="Adaeze Obi", selection=haircut(),
                                 payment_mode="transfer", now=SOLD_AT)

        assert receipt.receipt_number == "CFT20250119002"
        assert receipt.customer_name == "Ada Obi"

        customer = db_session.get(Customer, PHONE)
        assert customer.customer_name == "Ada Obi"
        assert customer.total_transactions == 2
        assert customer.total_spent == Decimal("2000")
        assert customer.cashback_balance == Decimal("100")

    def test_phone_separators_are_ignored(self, service, db_session):
        service.settle(customer_phone="0801 234 5678", customer_name="Ada Obi", selection=haircut(),
                       payment_mode="pos", now=SOLD_AT)

        assert db_session.get(Customer, PHONE) is not None

    def test_pay_with_cashback(self, service, db_session):
        add_customer(db_session, balance="200")

        receipt = service.settle(customer_phone=PHONE, customer_name="Ada Obi", selection=android_charge(),
                                 payment_mode="cashback", now=SOLD_AT)

        assert receipt.total_amount == Decimal("0")
        assert receipt.cashback_used == Decimal("150")
        assert receipt.cashback_earned == Decimal("0")
        assert receipt.subtotal == Decimal("150")

        customer = db_session.get(Customer, PHONE)
        assert customer.cashback_balance == Decimal("50")
        assert customer.total_transactions == 4
        assert customer.total_spent == Decimal("4150")

    def test_computer_services_total(self, service):
        selection = ComputerSelection(services={
            "print_bw": {"enabled": True, "quantity": 10},
            "lamination_a4": {"enabled": True, "quantity": 2},
        })

        receipt = service.settle(customer_phone=PHONE, customer_name="Ada Obi", selection=selection,
                                 payment_mode="cash", now=SOLD_AT)

        assert receipt.total_amount == Decimal("900")
        assert receipt.cashback_earned == Decimal("45")
        assert [item.name for item in receipt.items] == ["B&W Printing (10 pages)", "A4 Lamination (2 items)"]

    def test_notes_are_stored(self, service, db_session):
        service.settle(customer_phone=PHONE, customer_name="Ada Obi", selection=haircut(),
                       payment_mode="cash", additional_notes="  Fade on the sides  ", now=SOLD_AT)

        transaction = db_session.execute(select(Transaction)).scalar_one()
        assert transaction.additional_notes == "Fade on the sides"

    def test_settlement_is_counted(self, service):
        service.settle(customer_phone=PHONE, customer_name="Ada Obi", selection=haircut(),
                       payment_mode="cash", now=SOLD_AT)

        metrics = get_metrics_collector()
        assert metrics.get_counter_value(
            "transactions_settled_total", {"category": "barbing", "payment_mode": "cash"}
        ) == 1
        assert metrics.get_counter_value("cashback_earned_total", {"category": "barbing"}) == Decimal("50")


@pytest.mark.unit
class TestRefusedSettlement:

    def test_insufficient_cashback_writes_nothing(self, service, db_session):
        add_customer(db_session, balance="100")

        with pytest.raises(BadRequestException) as exc_info:
            service.settle(customer_phone=PHONE, customer_name="Ada Obi", selection=android_charge(),
                           payment_mode="cashback", now=SOLD_AT)

        assert exc_info.value.message == "Insufficient cashback balance"
        assert count(db_session, Transaction) == 0
        assert count(db_session, ReceiptCounter) == 0
        customer = db_session.get(Customer, PHONE)
        assert customer.cashback_balance == Decimal("100")
        assert customer.total_transactions == 3
        assert get_metrics_collector().get_counter_value(
            "transaction_failures_total", {"category": "charging", "reason": "insufficient_cashback"}
        ) == 1

    def test_new_customer_cannot_pay_with_cashback(self, service, db_session):
        with pytest.raises(BadRequestException):
            service.settle(customer_phone=PHONE, customer_name="Ada Obi", selection=haircut(),
                           payment_mode="cashback", now=SOLD_AT)

        assert count(db_session, Customer) == 0

    def test_empty_cart(self, service, db_session):
        with pytest.raises(BadRequestException) as exc_info:
            service.settle(customer_phone=PHONE, customer_name="Ada Obi", selection=BarbingSelection(),
                           payment_mode="cash", now=SOLD_AT)

        assert exc_info.value.message == "Please select at least one service"
        assert count(db_session, Customer) == 0

    def test_binding_without_pages_is_empty(self, service):
        selection = ComputerSelection(services={"binding_comb": {"enabled": True, "quantity": 0}})

        with pytest.raises(BadRequestException):
            service.settle(customer_phone=PHONE, customer_name="Ada Obi", selection=selection,
                           payment_mode="cash", now=SOLD_AT)

    @pytest.mark.parametrize(
        "phone,name,mode,field",
        [
            ("", "Ada Obi", "cash", "customer_phone"),
            ("12345", "Ada Obi", "cash", "customer_phone"),
            (PHONE, "", "cash", "customer_name"),
            (PHONE, "Ada 0bi", "cash", "customer_name"),
            (PHONE, "Ada Obi", "cheque", "payment_mode"),
        ],
    )
    def test_missing_or_invalid_fields(self, service, db_session, phone, name, mode, field):
        with pytest.raises(ValidationException) as exc_info:
            service.settle(customer_phone=phone, customer_name=name, selection=haircut(),
                           payment_mode=mode, now=SOLD_AT)

        assert field in exc_info.value.details["errors"]
        assert count(db_session, Transaction) == 0

    def test_html_in_notes_rejected(self, service):
        with pytest.raises(ValidationException):
            service.settle(customer_phone=PHONE, customer_name="Ada Obi", selection=haircut(),
                           payment_mode="cash", additional_notes="<script>x</script>", now=SOLD_AT)


@pytest.mark.unit
class TestFailedSettlement:

    def test_concurrent_update_is_a_conflict(self, service, db_session):
        add_customer(db_session, balance="200")

        def competing_checkout(generator, now=None):
            # Another terminal commits a sale for the same customer first
            db_session.execute(
                update(Customer)
                .where(Customer.phone_number == PHONE)
                .values(version=Customer.version + 1)
                .execution_options(synchronize_session=False)
            )
            return "CFT20250119001"

        with patch.object(ReceiptNumberGenerator, "next_number", autospec=True, side_effect=competing_checkout):
            with pytest.raises(ConflictException) as exc_info:
                service.settle(customer_phone=PHONE, customer_name="Ada Obi", selection=android_charge(),
                               payment_mode="cashback", now=SOLD_AT)

        assert exc_info.value.status_code == 409
        assert count(db_session, Transaction) == 0
        customer = db_session.get(Customer, PHONE)
        assert customer.cashback_balance == Decimal("200")
        assert customer.version == 1

    def test_first_sale_of_day_clash_is_a_receipt_conflict(self, service, db_session):
        add_customer(db_session, balance="0")
        clash = ReceiptCounterConflict("Receipt counter for 20250119 was created concurrently")

        with patch.object(ReceiptNumberGenerator, "next_number", side_effect=clash):
            with pytest.raises(ConflictException) as exc_info:
                service.settle(customer_phone=PHONE, customer_name="Ada Obi", selection=haircut(),
                               payment_mode="cash", now=SOLD_AT)

        assert exc_info.value.message == "Another sale took this receipt number, please retry"
        assert count(db_session, Transaction) == 0
        assert db_session.get(Customer, PHONE).total_transactions == 3
        metrics = get_metrics_collector()
        assert metrics.get_counter_value(
            "transaction_failures_total", {"category": "barbing", "reason": "receipt_conflict"}
        ) == 1
        assert metrics.get_counter_value(
            "transaction_failures_total", {"category": "barbing", "reason": "conflict"}
        ) == 0

    def test_database_error_rolls_back(self, service, db_session):
        add_customer(db_session, balance="0")
        error = OperationalError("INSERT INTO transactions", {}, Exception("disk I/O error"))

        with patch.object(ReceiptNumberGenerator, "next_number", side_effect=error):
            with pytest.raises(TransactionFailedException) as exc_info:
                service.settle(customer_phone=PHONE, customer_name="Ada Obi", selection=haircut(),
                               payment_mode="cash", now=SOLD_AT)

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Transaction failed"
        assert count(db_session, Transaction) == 0
        assert db_session.get(Customer, PHONE).total_transactions == 3
        assert get_metrics_collector().get_counter_value(
            "transaction_failures_total", {"category": "barbing", "reason": "remote_error"}
        ) == 1

    def test_exhausted_receipt_numbers_fail_the_sale(self, service, db_session):
        db_session.add(ReceiptCounter(day="20250119", last_sequence=999))
        db_session.commit()

        with pytest.raises(TransactionFailedException):
            service.settle(customer_phone=PHONE, customer_name="Ada Obi", selection=haircut(),
                           payment_mode="cash", now=SOLD_AT)

        assert count(db_session, Customer) == 0

    def test_receipt_sequence_error_type(self, service):
        with patch.object(ReceiptNumberGenerator, "next_number", side_effect=ReceiptSequenceExhausted("full")):
            with pytest.raises(TransactionFailedException) as exc_info:
                service.settle(customer_phone=PHONE, customer_name="Ada Obi", selection=haircut(),
                               payment_mode="cash", now=SOLD_AT)

        assert exc_info.value.details == {"cause": "full"}
