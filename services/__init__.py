# services/__init__.py
from .invoice_service import InvoiceService
from .invoice_store import InvoiceStore, SqlInvoiceStore, InMemoryInvoiceStore
from .dedup_ledger import DedupLedger, SqlDedupLedger, InMemoryDedupLedger, normalize_tx_id
from .tag_allocator import TagAllocator
from .transfer_feed import Transfer, TransferFeed, BscScanFeed
from .reconciler import CycleResult, Reconciler, ReconciliationLoop

__all__ = [
     "InvoiceService",
     "InvoiceStore",
     "SqlInvoiceStore",
     "InMemoryInvoiceStore",
     "DedupLedger",
     "SqlDedupLedger",
     "InMemoryDedupLedger",
     "normalize_tx_id",
     "TagAllocator",
     "Transfer",
     "TransferFeed",
     "BscScanFeed",
     "CycleResult",
     "Reconciler",
     "ReconciliationLoop",
]
