# services/reconciler.py
"""
Reconciliation Loop - matches incoming transfers to pending invoices.

Each cycle:
1. fetch the latest page of incoming transfers (failures -> empty page)
2. drop transfers not addressed to the gateway / not in the gateway token
3. drop transfers whose tx id is already in the dedup ledger
4. skip transfers that already confirmed an invoice (crash before step 7)
5. match the raw value against pending pay amounts (exact integer compare)
6. confirm the matched invoice, or log an unmatched deposit
7. record the tx id in the dedup ledger
8. prune the ledger now and then

The tx id is recorded only after the transfer was handled. If the process dies
in between, the next cycle sees the transfer again, finds the invoice already
confirmed with that tx hash and only records the id. That lookup comes before
matching, since the released pay amount may already belong to a newer pending
invoice. The conditional confirm covers a match re-derived while the invoice
is still pending.

Cycles never raise: errors end the cycle early and are returned in
CycleResult.error. ReconciliationLoop runs one cycle at a time and sleeps
POLL_MS between them.
"""
import asyncio
import logging
import time
from dataclasses import asdict, dataclass
from datetime import timedelta
from typing import Optional

from models import Invoice
from utils.amounts import format_amount, raw_to_decimal, units_match_raw
from .dedup_ledger import DEFAULT_RETENTION, DedupLedger, normalize_tx_id
from .invoice_store import InvoiceStore
from .transfer_feed import Transfer, TransferFeed

logger = logging.getLogger("gateway.reconciler")

DEFAULT_PRUNE_INTERVAL = 3600.0  # seconds


@dataclass
class CycleResult:
     """Outcome of one reconciliation cycle."""
     fetched: int = 0
     ignored: int = 0
     already_processed: int = 0
     confirmed: int = 0
     already_confirmed: int = 0
     unmatched: int = 0
     pruned: int = 0
     error: Optional[str] = None

     @property
     def ok(self) -> bool:
          return self.error is None

     def to_dict(self) -> dict:
          return asdict(self)


class Reconciler:
     """One reconciliation cycle over injected store, ledger and feed."""

     def __init__(
          self,
          store: InvoiceStore,
          ledger: DedupLedger,
          feed: TransferFeed,
          gateway_address: str,
          decimals: int,
          token_address: Optional[str] = None,
          page_size: int = 50,
          retention: timedelta = DEFAULT_RETENTION,
          prune_interval: float = DEFAULT_PRUNE_INTERVAL,
     ):
          self.store = store
          self.ledger = ledger
          self.feed = feed
          self.gateway_address = gateway_address.lower()
          self.token_address = token_address.lower() if token_address else None
          self.decimals = decimals
          self.page_size = page_size
          self.retention = retention
          self.prune_interval = prune_interval

          self.last_result: Optional[CycleResult] = None
          self._last_prune: Optional[float] = None

     def run_cycle(self) -> CycleResult:
          result = CycleResult()
          try:
               transfers = self.feed.fetch_incoming(self.page_size)
          except Exception as e:
               logger.warning(f"Transfer feed failed, treating as empty page: {e}")
               transfers = []
          result.fetched = len(transfers)

          try:
               for transfer in transfers:
                    self._handle(transfer, result)
               self._maybe_prune(result)
          except Exception as e:
               logger.exception("Reconciliation cycle aborted")
               result.error = f"{type(e).__name__}: {e}"

          self.last_result = result
          return result

     def match(self, raw_value: int) -> Optional[Invoice]:
          """First pending invoice (store order) whose pay amount equals `raw_value` exactly."""
          for invoice in self.store.list_pending():
               if units_match_raw(invoice.pay_units, raw_value, self.decimals):
                    return invoice
          return None

     def _is_for_gateway(self, transfer: Transfer) -> bool:
          if transfer.to_address.lower() != self.gateway_address:
               return False
          if self.token_address and transfer.contract_address:
               return transfer.contract_address.lower() == self.token_address
          return True

     def _handle(self, transfer: Transfer, result: CycleResult) -> None:
          if not self._is_for_gateway(transfer):
               result.ignored += 1
               return

          tx_id = normalize_tx_id(transfer.tx_hash)
          if self.ledger.is_processed(tx_id):
               result.already_processed += 1
               return

          received = raw_to_decimal(transfer.value, self.decimals)
          logger.info(f"Incoming transfer: amount={received} tx={tx_id} time={transfer.timestamp}")

          # Confirmed by an earlier cycle that died before recording the tx id.
          # Checked before matching: a newer invoice may hold the same pay amount.
          if self.store.find_by_tx_hash(tx_id) is not None:
               result.already_confirmed += 1
               logger.info(f"Transfer {tx_id} already reconciled")
               self._record(tx_id)
               return

          invoice = self.match(transfer.value)
          if invoice is None:
               result.unmatched += 1
               logger.warning(
                    f"Unmatched deposit: amount={received} from={transfer.from_address} tx={tx_id}"
               )
          elif self.store.confirm(invoice.id, tx_id):
               result.confirmed += 1
               logger.info(
                    f"Invoice {invoice.id} confirmed: pay_amount={format_amount(invoice.pay_amount)} tx={tx_id}"
               )
          else:
               result.already_confirmed += 1
               logger.info(f"Invoice {invoice.id} was already confirmed, tx={tx_id}")

          self._record(tx_id)

     def _record(self, tx_id: str) -> None:
          if not self.ledger.mark_if_new(tx_id):
               logger.debug(f"Transfer {tx_id} was recorded by another worker first")

     def _maybe_prune(self, result: CycleResult) -> None:
          now = time.monotonic()
          if self._last_prune is not None and now - self._last_prune < self.prune_interval:
               return
          result.pruned = self.ledger.prune(self.retention)
          self._last_prune = now
          if result.pruned:
               logger.info(f"Pruned {result.pruned} processed-transfer records")


class ReconciliationLoop:
     """
     Runs Reconciler.run_cycle forever on a fixed interval.

     The cycle itself is blocking (DB + HTTP), so it runs in the default
     executor; the next cycle is scheduled only after the previous one returned.
     """

     def __init__(self, reconciler: Reconciler, poll_ms: int = 12000):
          self.reconciler = reconciler
          self.poll_ms = poll_ms
          self.cycles = 0
          self._task: Optional[asyncio.Task] = None

     @property
     def running(self) -> bool:
          return self._task is not None and not self._task.done()

     async def run_once(self) -> CycleResult:
          loop = asyncio.get_running_loop()
          try:
               result = await loop.run_in_executor(None, self.reconciler.run_cycle)
          except Exception as e:
               logger.exception("Reconciliation cycle crashed")
               result = CycleResult(error=f"{type(e).__name__}: {e}")
          self.cycles += 1
          if result.confirmed or result.unmatched or not result.ok:
               logger.info(f"Cycle {self.cycles}: {result.to_dict()}")
          return result

     async def run_forever(self) -> None:
          logger.info(f"Reconciliation loop started (interval: {self.poll_ms}ms)")
          while True:
               await self.run_once()
               await asyncio.sleep(self.poll_ms / 1000)

     def start(self) -> asyncio.Task:
          if not self.running:
               self._task = asyncio.create_task(self.run_forever(), name="reconciliation")
          return self._task

     async def stop(self) -> None:
          if self._task is None:
               return
          self._task.cancel()
          try:
               await self._task
          except asyncio.CancelledError:
               pass
          self._task = None
          logger.info("Reconciliation loop stopped")
