# errors.py
"""
Gateway error taxonomy.

- Input validation (InvalidAmount, InvalidAddress): reported to the caller, never retried.
- Capacity (CapacityExhausted): retry later.
- Integrity race (DuplicatePayAmount): retry now.
- Lookup (InvoiceNotFound).
- Upstream chain failures (ChainError).
"""


class GatewayError(Exception):
     """Base class for all gateway errors."""


class InvalidAmount(GatewayError, ValueError):
     pass


class InvalidAddress(GatewayError, ValueError):
     pass


class CapacityExhausted(GatewayError):
     """Every tag slot is held by a pending invoice."""


class DuplicatePayAmount(GatewayError):
     """Another pending invoice already owns this pay amount."""

     def __init__(self, pay_amount):
          super().__init__(f"Pay amount {pay_amount} is already pending")
          self.pay_amount = pay_amount


class InvoiceNotFound(GatewayError, LookupError):
     def __init__(self, invoice_id: str):
          super().__init__(f"Invoice {invoice_id} not found")
          self.invoice_id = invoice_id


class ChainError(GatewayError):
     """An RPC read or outbound transfer failed."""
