# models/processed_transfer.py
from sqlalchemy import Column, DateTime, String

from .base import Base, utcnow


class ProcessedTransfer(Base):
     """
     Deduplication record for an incoming transfer the gateway has handled.

     `tx_id` is the lower-cased transaction hash. Rows are append-only and are
     only removed by retention pruning on `seen_at`.
     """

     tx_id = Column(String(66), primary_key=True)
     seen_at = Column(DateTime, default=utcnow, nullable=False, index=True)

     def __repr__(self):
          return f"<ProcessedTransfer(tx_id={self.tx_id[:18]}..., seen_at={self.seen_at})>"
