# routers/wallet.py
"""
Gateway wallet API.

- GET  /api/info: receiving address, token, tag grid, reconciliation status
- GET  /api/balance: token balance of the receiving address
- POST /api/send: outbound token transfer (fire-and-forget)
"""
from fastapi import APIRouter, Depends, HTTPException, status

from dependencies import GatewayContext, get_gateway, require_api_key
from errors import ChainError, InvalidAddress, InvalidAmount
from schemas.wallet import BalanceResponse, InfoResponse, SendRequest, SendResponse
from services.invoice_service import InvoiceService
from services.wallet_service import get_balance, send_payout
from utils.amounts import format_amount

router = APIRouter(prefix="/api", tags=["wallet"], dependencies=[Depends(require_api_key)])


@router.get("/info", response_model=InfoResponse)
def get_info(gateway: GatewayContext = Depends(get_gateway)):
     summary = InvoiceService.pending_summary(gateway.store, gateway.allocator)
     last = gateway.loop.reconciler.last_result if gateway.loop else None
     return InfoResponse(
          address=gateway.address,
          usdt_contract=gateway.token_address,
          decimals=gateway.decimals,
          poll_ms=gateway.poll_ms,
          tag_step=format_amount(gateway.allocator.step),
          tag_max=format_amount(gateway.allocator.max_tag),
          pending_invoices=summary["pending"],
          tag_capacity=summary["capacity"],
          last_cycle=last.to_dict() if last else None,
     )


@router.get("/balance", response_model=BalanceResponse)
def get_wallet_balance(gateway: GatewayContext = Depends(get_gateway)):
     try:
          return BalanceResponse(**get_balance(gateway.chain, gateway.decimals))
     except ChainError as e:
          raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.post("/send", response_model=SendResponse)
def send(body: SendRequest, gateway: GatewayContext = Depends(get_gateway)):
     """Submit a token transfer from the gateway wallet. No confirmation tracking."""
     try:
          tx_hash = send_payout(gateway.chain, body.to, body.amount, gateway.decimals)
     except (InvalidAddress, InvalidAmount) as e:
          raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
     except ChainError as e:
          raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"send failed: {e}")
     return SendResponse(ok=True, tx_hash=tx_hash)
