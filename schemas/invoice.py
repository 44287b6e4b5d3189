# schemas/invoice.py
"""
Pydantic schemas for Invoice API request/response validation.

Amounts are validated by the invoice service rather than by pydantic so that
a bad amount is reported as 400, and are returned as fixed 3-place strings.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class InvoiceStatusEnum(str, Enum):
     """Invoice payment status options."""
     PENDING = "pending"
     CONFIRMED = "confirmed"


class InvoiceCreate(BaseModel):
     """Schema for creating a new invoice."""
     amount: Optional[Union[int, float, str]] = Field(
          None, description="Requested amount (> 0, rounded to 3 decimals)"
     )

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "amount": "10"
               }
          }
     )


class InvoiceResponse(BaseModel):
     """Schema for invoice response."""
     id: str
     requested_amount: str
     tag: str
     pay_amount: str = Field(..., description="Exact amount the payer must send")
     status: InvoiceStatusEnum
     to_address: str
     created_at: datetime
     tx_hash: Optional[str] = None
     confirmed_at: Optional[datetime] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "id": "8f14e45f-ceea-4e7a-9a3b-2c6a1f0e5d11",
                    "requested_amount": "10.000",
                    "tag": "0.001",
                    "pay_amount": "10.001",
                    "status": "pending",
                    "to_address": "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4",
                    "created_at": "2026-01-31T10:30:00",
                    "tx_hash": None,
                    "confirmed_at": None
               }
          }
     )


class InvoiceListResponse(BaseModel):
     """Schema for invoice list response."""
     invoices: List[InvoiceResponse]
     total: int
