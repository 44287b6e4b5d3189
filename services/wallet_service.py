# services/wallet_service.py
"""
Wallet operations on the gateway's hot wallet: balance reads and outbound
payouts. Payouts do not touch invoice state.
"""
import logging
from typing import Optional

from errors import InvalidAddress
from utils.amounts import AmountLike, decimal_to_raw, parse_amount, raw_to_decimal
from .chain_client import ChainClient, is_valid_address

logger = logging.getLogger("gateway.wallet")


def get_balance(chain: ChainClient, decimals: int) -> dict:
     raw = chain.balance_of()
     return {
          "address": chain.address,
          "usdt": f"{raw_to_decimal(raw, decimals):f}",
          "raw": str(raw),
     }


def send_payout(chain: ChainClient, to: Optional[str], amount: Optional[AmountLike], decimals: int) -> str:
     """
     Submit a token transfer of `amount` to `to`.

     Returns the transaction hash; there is no confirmation tracking.

     Raises:
          InvalidAddress, InvalidAmount: bad input
          ChainError: the transfer could not be submitted
     """
     if not is_valid_address(to):
          raise InvalidAddress("invalid to address")
     value = decimal_to_raw(parse_amount(amount, quantize=False), decimals)
     logger.info(f"Payout requested: to={to} amount={amount} raw={value}")
     return chain.send_transfer(to, value)
