# models/invoice.py
import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import BigInteger, Column, DateTime, Enum, Integer, String

from utils.amounts import format_amount, from_units, to_units
from .base import Base, utcnow


class InvoiceStatus(str, enum.Enum):
     """Invoice lifecycle: PENDING -> CONFIRMED (terminal)."""
     PENDING = "pending"
     CONFIRMED = "confirmed"


class Invoice(Base):
     """
     Invoice model - a request for a uniquely tagged stable-coin payment.

     Amounts are stored as integer milli-units (thousandths). While the
     invoice is pending, `pending_pay_units` mirrors `pay_units`; its unique
     constraint is what guarantees that no two pending invoices share a pay
     amount. Confirmation clears it so the amount can be reused.
     """

     id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

     # Amounts (milli-units)
     requested_units = Column(BigInteger, nullable=False)
     tag_units = Column(Integer, nullable=False)
     pay_units = Column(BigInteger, nullable=False, index=True)
     pending_pay_units = Column(BigInteger, nullable=True, unique=True)

     status = Column(
          Enum(InvoiceStatus, name="invoice_status", create_constraint=True),
          default=InvoiceStatus.PENDING,
          nullable=False,
          index=True
     )
     to_address = Column(String(42), nullable=False)

     # Set exactly once, at confirmation
     tx_hash = Column(String(66), nullable=True, index=True)
     confirmed_at = Column(DateTime, nullable=True)

     created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

     @classmethod
     def new(cls, requested_amount: Decimal, tag: Decimal, to_address: str) -> "Invoice":
          """Build a pending invoice whose pay amount is requested_amount + tag."""
          requested_units = to_units(requested_amount)
          tag_units = to_units(tag)
          pay_units = requested_units + tag_units
          return cls(
               id=str(uuid.uuid4()),
               requested_units=requested_units,
               tag_units=tag_units,
               pay_units=pay_units,
               pending_pay_units=pay_units,
               status=InvoiceStatus.PENDING,
               to_address=to_address,
               created_at=utcnow(),
               tx_hash=None,
               confirmed_at=None,
          )

     def __repr__(self):
          return f"<Invoice(id={self.id}, pay_amount={self.pay_amount}, status='{self.status.value}')>"

     @property
     def requested_amount(self) -> Decimal:
          return from_units(self.requested_units)

     @property
     def tag(self) -> Decimal:
          return from_units(self.tag_units)

     @property
     def pay_amount(self) -> Decimal:
          return from_units(self.pay_units)

     @property
     def is_pending(self) -> bool:
          return self.status == InvoiceStatus.PENDING

     def mark_as_confirmed(self, tx_hash: str, when: Optional[datetime] = None) -> None:
          """Move a pending invoice to CONFIRMED and release its pay amount."""
          self.status = InvoiceStatus.CONFIRMED
          self.tx_hash = tx_hash
          self.confirmed_at = when or utcnow()
          self.pending_pay_units = None

     def to_dict(self) -> dict:
          return {
               "id": self.id,
               "requested_amount": format_amount(self.requested_amount),
               "tag": format_amount(self.tag),
               "pay_amount": format_amount(self.pay_amount),
               "status": self.status.value,
               "to_address": self.to_address,
               "created_at": self.created_at,
               "tx_hash": self.tx_hash,
               "confirmed_at": self.confirmed_at,
          }
