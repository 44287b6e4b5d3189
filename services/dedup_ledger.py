# services/dedup_ledger.py
"""
Deduplication Ledger - remembers which incoming transfers were already handled.

The feed re-reports the same transfers on every poll, may reorder them and may
deliver late ones. Keying on the transaction id (rather than on a "last seen"
timestamp) means a late or reordered transfer is still handled exactly once.

Records older than the retention window can be pruned; this is safe as long as
the window is longer than the feed's maximum redelivery lag.
"""
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Dict

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from database import SessionLocal, get_session_context
from models import ProcessedTransfer, utcnow

DEFAULT_RETENTION = timedelta(days=30)


def normalize_tx_id(tx_id: str) -> str:
     return tx_id.strip().lower()


class DedupLedger(ABC):

     @abstractmethod
     def is_processed(self, tx_id: str) -> bool:
          """True if `tx_id` has been recorded."""

     @abstractmethod
     def mark_if_new(self, tx_id: str) -> bool:
          """Atomically record `tx_id`. True if newly recorded, False if already present."""

     @abstractmethod
     def prune(self, older_than: timedelta = DEFAULT_RETENTION) -> int:
          """Delete records first seen more than `older_than` ago. Returns rows removed."""


class SqlDedupLedger(DedupLedger):
     """`processed_transfers` table; the primary key makes mark_if_new atomic."""

     def __init__(self, session_factory: sessionmaker = SessionLocal):
          self._session_factory = session_factory

     def is_processed(self, tx_id: str) -> bool:
          with get_session_context(self._session_factory) as db:
               return db.get(ProcessedTransfer, normalize_tx_id(tx_id)) is not None

     def mark_if_new(self, tx_id: str) -> bool:
          try:
               with get_session_context(self._session_factory) as db:
                    db.add(ProcessedTransfer(tx_id=normalize_tx_id(tx_id), seen_at=utcnow()))
                    db.flush()
          except IntegrityError:
               return False
          return True

     def prune(self, older_than: timedelta = DEFAULT_RETENTION) -> int:
          cutoff = utcnow() - older_than
          with get_session_context(self._session_factory) as db:
               result = db.execute(
                    delete(ProcessedTransfer)
                    .where(ProcessedTransfer.seen_at < cutoff)
                    .execution_options(synchronize_session=False)
               )
               return result.rowcount or 0


class InMemoryDedupLedger(DedupLedger):

     def __init__(self):
          self._seen: Dict[str, datetime] = {}
          self._lock = threading.Lock()

     def is_processed(self, tx_id: str) -> bool:
          return normalize_tx_id(tx_id) in self._seen

     def mark_if_new(self, tx_id: str) -> bool:
          key = normalize_tx_id(tx_id)
          with self._lock:
               if key in self._seen:
                    return False
               self._seen[key] = utcnow()
               return True

     def prune(self, older_than: timedelta = DEFAULT_RETENTION) -> int:
          cutoff = utcnow() - older_than
          with self._lock:
               stale = [key for key, seen_at in self._seen.items() if seen_at < cutoff]
               for key in stale:
                    del self._seen[key]
          return len(stale)
