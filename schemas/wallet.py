# schemas/wallet.py
"""
Pydantic schemas for gateway info, balance and payout endpoints.
"""
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SendRequest(BaseModel):
     """Request body for POST /api/send."""
     to: Optional[str] = Field(None, description="Recipient address")
     amount: Optional[Union[int, float, str]] = Field(None, description="Token amount (> 0)")

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "to": "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4",
                    "amount": "25.5"
               }
          }
     )


class SendResponse(BaseModel):
     ok: bool = True
     tx_hash: str


class BalanceResponse(BaseModel):
     address: str
     usdt: str
     raw: str


class InfoResponse(BaseModel):
     """Gateway configuration and reconciliation status."""
     address: str
     usdt_contract: str
     decimals: int
     poll_ms: int
     tag_step: str
     tag_max: str
     pending_invoices: int
     tag_capacity: int
     last_cycle: Optional[dict] = None
