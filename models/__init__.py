# models/__init__.py
from .base import Base, utcnow
from .invoice import Invoice, InvoiceStatus
from .processed_transfer import ProcessedTransfer

__all__ = [
     "Base",
     "utcnow",
     "Invoice",
     "InvoiceStatus",
     "ProcessedTransfer",
]
