"""
Input validation helpers shared by request schemas and services.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Union


MAX_PRICE = Decimal("1000000")
MAX_NOTES_LENGTH = 500

_PHONE_SEPARATORS = re.compile(r"[\s\-()]")
_PHONE_PATTERNS = (
    re.compile(r"^0[789][01]\d{8}$"),        # 08012345678
    re.compile(r"^234[789][01]\d{8}$"),      # 2348012345678
    re.compile(r"^\+234[789][01]\d{8}$"),    # +2348012345678
)
_NAME_PATTERN = re.compile(r"^[a-zA-Z\s\-']{2,50}$")
_RECEIPT_PATTERN = re.compile(r"^CFT\d{8}\d{3}$")
_HTML_TAG = re.compile(r"<[^>]*>")


def normalize_phone_number(phone: str) -> str:
    """Strip spaces, dashes and parentheses from a phone number."""
    return _PHONE_SEPARATORS.sub("", phone or "")


def validate_phone_number(phone: str) -> bool:
    """Nigerian mobile number in local, 234 or +234 form."""
    if not phone:
        return False
    clean = normalize_phone_number(phone)
    return any(pattern.match(clean) for pattern in _PHONE_PATTERNS)


def validate_customer_name(name: str) -> bool:
    """Letters, spaces, hyphens and apostrophes; 2 to 50 characters."""
    if not name:
        return False
    return bool(_NAME_PATTERN.match(name.strip()))


def validate_notes(notes: str | None) -> bool:
    """Notes are optional; at most 500 characters and no HTML tags."""
    if not notes:
        return True
    return len(notes) <= MAX_NOTES_LENGTH and not _HTML_TAG.search(notes)


def validate_price(price: Union[str, int, float, Decimal]) -> bool:
    """Positive amount no larger than one million naira."""
    try:
        value = Decimal(str(price))
    except InvalidOperation:
        return False
    return value.is_finite() and Decimal("0") < value <= MAX_PRICE


def validate_receipt_number(receipt_number: str) -> bool:
    """CFT + YYYYMMDD + 3-digit daily sequence, e.g. CFT20250119001."""
    if not receipt_number:
        return False
    return bool(_RECEIPT_PATTERN.match(receipt_number))
