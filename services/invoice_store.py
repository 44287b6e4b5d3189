# services/invoice_store.py
"""
Invoice Store - owner of invoice persistence and of the pending -> confirmed
transition.

Two implementations share the InvoiceStore contract:
- SqlInvoiceStore: durable, backed by SQLAlchemy. The unique constraint on
  `invoices.pending_pay_units` is the authoritative collision guard.
- InMemoryInvoiceStore: process-local, for tests and throwaway runs.
"""
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from database import SessionLocal, get_session_context
from errors import DuplicatePayAmount, InvoiceNotFound
from models import Invoice, InvoiceStatus, utcnow


class InvoiceStore(ABC):
     """Storage contract used by invoice creation and by the reconciler."""

     @abstractmethod
     def create(self, invoice: Invoice) -> Invoice:
          """
          Persist a new pending invoice.

          Raises:
               DuplicatePayAmount: another pending invoice has the same pay amount
          """

     @abstractmethod
     def get(self, invoice_id: str) -> Invoice:
          """Return the invoice or raise InvoiceNotFound."""

     @abstractmethod
     def list_pending(self) -> List[Invoice]:
          """All pending invoices, oldest first."""

     @abstractmethod
     def find_by_tx_hash(self, tx_hash: str) -> Optional[Invoice]:
          """The invoice confirmed by `tx_hash`, if any."""

     @abstractmethod
     def list(self, status: Optional[InvoiceStatus] = None, limit: int = 100) -> List[Invoice]:
          """Newest first, optionally filtered by status."""

     @abstractmethod
     def confirm(
          self,
          invoice_id: str,
          tx_hash: str,
          expected_status: InvoiceStatus = InvoiceStatus.PENDING,
     ) -> bool:
          """
          Conditionally move an invoice to CONFIRMED.

          Returns True if this call performed the transition. Returns False,
          leaving the invoice untouched, when its status is not
          `expected_status` (e.g. it was already confirmed).

          Raises:
               InvoiceNotFound: unknown invoice id
          """


class SqlInvoiceStore(InvoiceStore):
     """SQLAlchemy-backed invoice store."""

     def __init__(self, session_factory: sessionmaker = SessionLocal):
          self._session_factory = session_factory

     def create(self, invoice: Invoice) -> Invoice:
          pay_amount = invoice.pay_amount
          try:
               with get_session_context(self._session_factory) as db:
                    db.add(invoice)
                    db.flush()
          except IntegrityError:
               raise DuplicatePayAmount(pay_amount)
          return invoice

     def get(self, invoice_id: str) -> Invoice:
          with get_session_context(self._session_factory) as db:
               invoice = db.get(Invoice, invoice_id)
          if invoice is None:
               raise InvoiceNotFound(invoice_id)
          return invoice

     def list_pending(self) -> List[Invoice]:
          with get_session_context(self._session_factory) as db:
               return (
                    db.query(Invoice)
                    .filter(Invoice.status == InvoiceStatus.PENDING)
                    .order_by(Invoice.created_at, Invoice.id)
                    .all()
               )

     def find_by_tx_hash(self, tx_hash: str) -> Optional[Invoice]:
          with get_session_context(self._session_factory) as db:
               return db.query(Invoice).filter(Invoice.tx_hash == tx_hash).first()

     def list(self, status: Optional[InvoiceStatus] = None, limit: int = 100) -> List[Invoice]:
          with get_session_context(self._session_factory) as db:
               query = db.query(Invoice)
               if status is not None:
                    query = query.filter(Invoice.status == status)
               return query.order_by(Invoice.created_at.desc()).limit(limit).all()

     def confirm(
          self,
          invoice_id: str,
          tx_hash: str,
          expected_status: InvoiceStatus = InvoiceStatus.PENDING,
     ) -> bool:
          with get_session_context(self._session_factory) as db:
               # Single conditional UPDATE: safe against overlapping cycles
               result = db.execute(
                    update(Invoice)
                    .where(Invoice.id == invoice_id, Invoice.status == expected_status)
                    .values(
                         status=InvoiceStatus.CONFIRMED,
                         tx_hash=tx_hash,
                         confirmed_at=utcnow(),
                         pending_pay_units=None,
                    )
                    .execution_options(synchronize_session=False)
               )
               if result.rowcount == 1:
                    return True
               if db.get(Invoice, invoice_id) is None:
                    raise InvoiceNotFound(invoice_id)
               return False


class InMemoryInvoiceStore(InvoiceStore):
     """Dict-backed store. Insertion order is store order."""

     def __init__(self):
          self._invoices: Dict[str, Invoice] = {}
          self._lock = threading.Lock()

     def create(self, invoice: Invoice) -> Invoice:
          with self._lock:
               for existing in self._invoices.values():
                    if existing.is_pending and existing.pay_units == invoice.pay_units:
                         raise DuplicatePayAmount(invoice.pay_amount)
               self._invoices[invoice.id] = invoice
          return invoice

     def get(self, invoice_id: str) -> Invoice:
          invoice = self._invoices.get(invoice_id)
          if invoice is None:
               raise InvoiceNotFound(invoice_id)
          return invoice

     def list_pending(self) -> List[Invoice]:
          with self._lock:
               return [inv for inv in self._invoices.values() if inv.is_pending]

     def find_by_tx_hash(self, tx_hash: str) -> Optional[Invoice]:
          with self._lock:
               for invoice in self._invoices.values():
                    if invoice.tx_hash == tx_hash:
                         return invoice
          return None

     def list(self, status: Optional[InvoiceStatus] = None, limit: int = 100) -> List[Invoice]:
          with self._lock:
               invoices = [
                    inv for inv in reversed(list(self._invoices.values()))
                    if status is None or inv.status == status
               ]
          return invoices[:limit]

     def confirm(
          self,
          invoice_id: str,
          tx_hash: str,
          expected_status: InvoiceStatus = InvoiceStatus.PENDING,
     ) -> bool:
          with self._lock:
               invoice = self._invoices.get(invoice_id)
               if invoice is None:
                    raise InvoiceNotFound(invoice_id)
               if invoice.status != expected_status:
                    return False
               invoice.mark_as_confirmed(tx_hash)
               return True
