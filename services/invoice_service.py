# services/invoice_service.py
"""
Invoice Service - Business logic layer for invoice operations.

This service handles invoice creation (amount validation + tag allocation)
separate from the API layer.
"""
import logging
from typing import Optional

from models import Invoice, InvoiceStatus
from utils.amounts import AmountLike, format_amount, parse_amount
from .invoice_store import InvoiceStore
from .tag_allocator import TagAllocator

logger = logging.getLogger("gateway.invoices")


class InvoiceService:
     """Service class for invoice-related business logic."""

     @staticmethod
     def create_invoice(
          store: InvoiceStore,
          allocator: TagAllocator,
          amount: Optional[AmountLike],
          to_address: str,
     ) -> Invoice:
          """
          Create a pending invoice with a unique pay amount.

          Args:
               store: invoice store (authoritative uniqueness guard)
               allocator: tag allocator
               amount: requested amount as sent by the client
               to_address: gateway receiving address

          Returns:
               Created Invoice object

          Raises:
               InvalidAmount: amount missing, not a number, or not > 0
               CapacityExhausted: every tag is held by a pending invoice
               DuplicatePayAmount: a concurrent creation took the same pay amount
          """
          requested = parse_amount(amount)

          # Read-then-insert: the store's unique constraint catches the race
          pending = store.list_pending()
          used_tags = {invoice.tag for invoice in pending}
          # 10.001 + 0.001 would land on the pay amount of a pending 10 + 0.002
          used_tags.update(invoice.pay_amount - requested for invoice in pending)
          tag = allocator.allocate(used_tags)

          invoice = store.create(Invoice.new(requested, tag, to_address))
          logger.info(
               f"Invoice {invoice.id} created: requested={format_amount(invoice.requested_amount)} "
               f"pay_amount={format_amount(invoice.pay_amount)}"
          )
          return invoice

     @staticmethod
     def pending_summary(store: InvoiceStore, allocator: TagAllocator) -> dict:
          """Pending invoice count against allocator capacity."""
          pending = len(store.list_pending())
          return {
               "pending": pending,
               "capacity": allocator.capacity,
               "available": max(allocator.capacity - pending, 0),
          }

     @staticmethod
     def list_invoices(store: InvoiceStore, status: Optional[InvoiceStatus] = None, limit: int = 100):
          return store.list(status=status, limit=limit)
