"""Receipt view model and thermal-printer text rendering.

The same plain-text rendering is used for on-screen preview and for printing
on 80/82 mm thermal paper, so both always match.
"""
import textwrap
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, PlainSerializer

from src.lib.business_time import to_business_time
from src.lib.currency import format_naira
from src.lib.settings import settings
from src.models.transactions import PaymentMode, ServiceCategory, Transaction
from src.services.cart_builders import Cart


Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ReceiptLine(BaseModel):
    """One line of the itemized breakdown."""
    name: str
    quantity: int
    price: Money
    type: str


class ReceiptView(BaseModel):
    """Everything printed on a receipt."""
    receipt_number: str
    customer_name: str
    customer_phone: str
    service_category: ServiceCategory
    category_label: str
    service_details: dict
    items: List[ReceiptLine]
    subtotal: Money
    total_amount: Money
    payment_mode: PaymentMode
    payment_mode_label: str
    cashback_used: Money
    cashback_earned: Money
    transaction_date: datetime
    additional_notes: Optional[str] = None

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "ReceiptView":
        """Build the view from a stored transaction row."""
        cart = Cart.from_details(transaction.service_details)
        category = ServiceCategory(transaction.service_category)
        payment_mode = PaymentMode(transaction.payment_mode)
        total_amount = Decimal(transaction.total_amount)
        cashback_used = Decimal(transaction.cashback_used)
        sold_at = transaction.transaction_date
        if sold_at.tzinfo is None:
            sold_at = sold_at.replace(tzinfo=timezone.utc)

        return cls(
            receipt_number=transaction.receipt_number,
            customer_name=transaction.customer_name,
            customer_phone=transaction.customer_phone,
            service_category=category,
            category_label=category.label,
            service_details=transaction.service_details,
            items=[
                ReceiptLine(
                    name=item.name,
                    quantity=item.quantity,
                    price=item.price,
                    type=item.item_type,
                )
                for item in cart.items
            ],
            subtotal=total_amount + cashback_used,
            total_amount=total_amount,
            payment_mode=payment_mode,
            payment_mode_label=payment_mode.label,
            cashback_used=cashback_used,
            cashback_earned=Decimal(transaction.cashback_earned),
            transaction_date=sold_at,
            additional_notes=transaction.additional_notes,
        )


class ReceiptRenderer:
    """Fixed-width text layout for thermal receipts."""

    def __init__(self, width: int = settings.receipt_width):
        self.width = width

    def rule(self) -> str:
        return "-" * self.width

    def center(self, text: str) -> List[str]:
        return [line.center(self.width).rstrip() for line in textwrap.wrap(text, self.width)]

    def row(self, label: str, value: str) -> List[str]:
        """Label on the left, value flush right; long labels wrap above the value."""
        room = self.width - len(value) - 1
        if room < 1:
            return textwrap.wrap(label, self.width) + [
                line.rjust(self.width) for line in textwrap.wrap(value, self.width)
            ]
        wrapped = textwrap.wrap(label, room) or [""]
        *head, last = wrapped
        return head + [f"{last}{' ' * (self.width - len(last) - len(value))}{value}"]

    def _service_lines(self, view: ReceiptView) -> List[str]:
        lines = []
        if view.service_category is ServiceCategory.BARBING:
            service = view.service_details.get("service_type") or (
                view.items[0].name if view.items else ""
            )
            lines += self.row("Service:", service)
        elif view.service_category is ServiceCategory.CHARGING:
            for item in view.items:
                lines += self.row(f"Device: {item.name}", format_naira(item.price))
            port = view.service_details.get("port_number")
            if port is not None:
                lines += self.row("Port:", str(port))
        else:
            for item in view.items:
                lines += self.row(f"{item.name}:", format_naira(item.price))
        return lines

    def render(self, view: ReceiptView) -> str:
        issued = to_business_time(view.transaction_date).strftime("%d/%m/%Y %H:%M")

        lines: List[str] = []
        lines += self.center(settings.business_name)
        lines += self.center(settings.business_tagline)
        lines.append(self.rule())

        lines += self.row("Receipt #:", view.receipt_number)
        lines += self.row("Date:", issued)
        lines += self.row("Customer:", view.customer_name)
        lines += self.row("Phone:", view.customer_phone)
        lines.append(self.rule())

        lines.append(view.category_label)
        lines += self._service_lines(view)
        if view.additional_notes:
            lines.append("Notes:")
            lines += textwrap.wrap(view.additional_notes, self.width)
        lines.append(self.rule())

        lines += self.row("Subtotal:", format_naira(view.subtotal))
        if view.cashback_used > 0:
            lines += self.row("Cashback Used:", f"-{format_naira(view.cashback_used)}")
        lines += self.row("Total Paid:", format_naira(view.total_amount))
        lines += self.row("Payment Mode:", view.payment_mode_label)
        if view.cashback_earned > 0:
            lines += self.row("Cashback Earned:", f"+{format_naira(view.cashback_earned)}")
        lines.append(self.rule())

        lines += self.center("Thank You!")
        lines += self.center("Visit us again soon")

        return "\n".join(lines) + "\n"


def render_receipt_text(view: ReceiptView, width: Optional[int] = None) -> str:
    """Render a receipt as printable monospaced text."""
    return ReceiptRenderer(width or settings.receipt_width).render(view)
