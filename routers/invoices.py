# routers/invoices.py
"""
Invoice API routes.

- POST /api/invoices: create a pending invoice with a unique pay amount
- GET  /api/invoices: list invoices (optionally by status)
- GET  /api/invoices/{invoice_id}: look up one invoice

Confirmation is never done here; only the reconciliation loop confirms.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from dependencies import GatewayContext, get_gateway, require_api_key
from errors import CapacityExhausted, DuplicatePayAmount, InvalidAmount, InvoiceNotFound
from models import Invoice, InvoiceStatus
from schemas.invoice import (
     InvoiceCreate,
     InvoiceResponse,
     InvoiceListResponse,
     InvoiceStatusEnum,
)
from services.invoice_service import InvoiceService

router = APIRouter(
     prefix="/api/invoices",
     tags=["invoices"],
     dependencies=[Depends(require_api_key)],
)


def _build_invoice_response(invoice: Invoice) -> InvoiceResponse:
     return InvoiceResponse(**invoice.to_dict())


@router.post(
     "",
     response_model=InvoiceResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create a new invoice"
)
def create_invoice(
     invoice_data: InvoiceCreate,
     gateway: GatewayContext = Depends(get_gateway),
):
     """
     Create a pending invoice.

     - **amount**: requested amount (must be positive)

     The response's **pay_amount** is the exact amount the payer must send:
     the requested amount plus a small unique tag (10 -> 10.001).
     """
     try:
          invoice = InvoiceService.create_invoice(
               gateway.store,
               gateway.allocator,
               invoice_data.amount,
               gateway.address,
          )
     except InvalidAmount as e:
          raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
     except CapacityExhausted:
          raise HTTPException(
               status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
               detail="Too many pending invoices, try again later",
               headers={"Retry-After": str(max(gateway.poll_ms // 1000, 1))},
          )
     except DuplicatePayAmount:
          raise HTTPException(
               status_code=status.HTTP_409_CONFLICT,
               detail="Pay amount was taken by a concurrent request, retry",
          )

     return _build_invoice_response(invoice)


@router.get(
     "",
     response_model=InvoiceListResponse,
     summary="List invoices"
)
def list_invoices(
     status: Optional[InvoiceStatusEnum] = Query(None, description="Filter by status"),
     limit: int = Query(100, ge=1, le=500, description="Maximum number of invoices"),
     gateway: GatewayContext = Depends(get_gateway),
):
     """Newest invoices first, optionally filtered by **status** (pending, confirmed)."""
     status_filter = InvoiceStatus(status.value) if status else None
     invoices = InvoiceService.list_invoices(gateway.store, status=status_filter, limit=limit)
     return InvoiceListResponse(
          invoices=[_build_invoice_response(inv) for inv in invoices],
          total=len(invoices),
     )


@router.get(
     "/{invoice_id}",
     response_model=InvoiceResponse,
     summary="Get invoice by ID"
)
def get_invoice(
     invoice_id: str,
     gateway: GatewayContext = Depends(get_gateway),
):
     try:
          invoice = gateway.store.get(invoice_id)
     except InvoiceNotFound:
          raise HTTPException(
               status_code=status.HTTP_404_NOT_FOUND,
               detail=f"Invoice with ID {invoice_id} not found"
          )
     return _build_invoice_response(invoice)
