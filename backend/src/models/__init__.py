"""
SQLAlchemy models package.
Import all models here to ensure they're registered with Base.metadata.
"""
from src.models.admins import Admin
from src.models.customers import Customer
from src.models.transactions import PaymentMode, ServiceCategory, Transaction
from src.models.receipt_counters import ReceiptCounter

__all__ = [
    "Admin",
    "Customer",
    "Transaction",
    "ServiceCategory",
    "PaymentMode",
    "ReceiptCounter",
]
