# dependencies.py
"""
Shared FastAPI dependencies: API-key auth and access to the gateway context.
"""
import hmac
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request, status

from services.chain_client import ChainClient
from services.dedup_ledger import DedupLedger
from services.invoice_store import InvoiceStore
from services.reconciler import ReconciliationLoop
from services.tag_allocator import TagAllocator


@dataclass
class GatewayContext:
     """Everything the routes and the reconciliation loop share."""
     store: InvoiceStore
     ledger: DedupLedger
     allocator: TagAllocator
     chain: ChainClient
     address: str
     token_address: str
     decimals: int
     poll_ms: int
     loop: Optional[ReconciliationLoop] = None


def require_api_key(request: Request) -> None:
     """Reject requests whose x-api-key header does not match the configured key."""
     expected = request.app.state.api_key
     key = request.headers.get("x-api-key")
     if not key or not expected or not hmac.compare_digest(key.encode(), expected.encode()):
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def get_gateway(request: Request) -> GatewayContext:
     gateway = getattr(request.app.state, "gateway", None)
     if gateway is None:
          raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Gateway not ready")
     return gateway
