# services/transfer_feed.py
"""
Transfer Ingestion Feed - incoming token transfers to the gateway address.

BscScanFeed queries the explorer's `tokentx` endpoint for the most recent page
of transfers (newest first). The feed is a data source only: it can be stale,
reordered and repetitive, and any failure is reported as an empty page.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

import requests

logger = logging.getLogger("gateway.feed")


@dataclass(frozen=True)
class Transfer:
     """One incoming token transfer as reported by the feed."""
     tx_hash: str
     from_address: str
     to_address: str
     value: int  # raw smallest-unit amount
     timestamp: int
     contract_address: Optional[str] = None

     @classmethod
     def from_explorer(cls, row: dict) -> "Transfer":
          return cls(
               tx_hash=row["hash"],
               from_address=row.get("from") or "",
               to_address=row.get("to") or "",
               value=int(row["value"]),
               timestamp=int(row.get("timeStamp") or 0),
               contract_address=row.get("contractAddress") or None,
          )


class TransferFeed(ABC):

     @abstractmethod
     def fetch_incoming(self, limit: int = 50) -> List[Transfer]:
          """Most recent transfers into the gateway address, newest first. Never raises."""


class BscScanFeed(TransferFeed):
     """Etherscan-family `account/tokentx` client (BscScan by default)."""

     def __init__(
          self,
          api_key: str,
          address: str,
          contract_address: str,
          base_url: str = "https://api.bscscan.com/api",
          timeout: float = 15.0,
          session: Optional[requests.Session] = None,
     ):
          self.api_key = api_key
          self.address = address
          self.contract_address = contract_address
          self.base_url = base_url
          self.timeout = timeout
          self._http = session or requests.Session()

     def fetch_incoming(self, limit: int = 50) -> List[Transfer]:
          params = {
               "module": "account",
               "action": "tokentx",
               "contractaddress": self.contract_address,
               "address": self.address,
               "page": 1,
               "offset": limit,
               "sort": "desc",
               "apikey": self.api_key,
          }
          try:
               response = self._http.get(self.base_url, params=params, timeout=self.timeout)
               response.raise_for_status()
               data = response.json()
          except (requests.RequestException, ValueError) as e:
               logger.warning(f"Transfer feed request failed: {e}")
               return []

          if not isinstance(data, dict) or not data.get("result"):
               return []
          # status "0" covers both "No transactions found" and rate-limit errors
          if data.get("status") != "1":
               logger.debug(f"Transfer feed soft error: {data.get('message')} {data.get('result')}")
               return []

          transfers = []
          for row in data["result"]:
               try:
                    transfers.append(Transfer.from_explorer(row))
               except (KeyError, TypeError, ValueError) as e:
                    logger.warning(f"Skipping malformed feed row: {e}")
          return transfers
