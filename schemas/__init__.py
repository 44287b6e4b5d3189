# schemas/__init__.py
from .invoice import (
     InvoiceCreate,
     InvoiceResponse,
     InvoiceListResponse,
     InvoiceStatusEnum,
)
from .wallet import (
     SendRequest,
     SendResponse,
     BalanceResponse,
     InfoResponse,
)

__all__ = [
     "InvoiceCreate",
     "InvoiceResponse",
     "InvoiceListResponse",
     "InvoiceStatusEnum",
     "SendRequest",
     "SendResponse",
     "BalanceResponse",
     "InfoResponse",
]
