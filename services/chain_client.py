# services/chain_client.py
"""
Chain client - the only code that talks to the blockchain RPC.

Used for three things:
- reading the token's decimals once at startup (with a fallback),
- reading the gateway's token balance,
- submitting outbound token transfers (fire-and-forget, no receipt wait).

Deposit detection never goes through here; it comes from the transfer feed.
"""
import logging
from typing import Optional

from eth_account import Account
from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

from errors import ChainError, InvalidAddress

logger = logging.getLogger("gateway.chain")


# Minimal ERC20 ABI - only functions we call at runtime
ERC20_ABI = [
     {
          "constant": True,
          "inputs": [],
          "name": "decimals",
          "outputs": [{"name": "", "type": "uint8"}],
          "type": "function",
     },
     {
          "constant": True,
          "inputs": [{"name": "account", "type": "address"}],
          "name": "balanceOf",
          "outputs": [{"name": "", "type": "uint256"}],
          "type": "function",
     },
     {
          "constant": False,
          "inputs": [
               {"name": "to", "type": "address"},
               {"name": "value", "type": "uint256"},
          ],
          "name": "transfer",
          "outputs": [{"name": "", "type": "bool"}],
          "type": "function",
     },
]

DEFAULT_GAS_LIMIT = 100_000


def is_valid_address(address: Optional[str]) -> bool:
     return bool(address) and Web3.is_address(address)


class ChainClient:
     """ERC20 token access for the gateway's hot wallet."""

     def __init__(
          self,
          rpc_url: str,
          private_key: str,
          token_address: str,
          fallback_decimals: int = 18,
          timeout: int = 30,
     ):
          self.w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
          # BSC is a POA chain: block extraData is longer than 32 bytes
          self.w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

          self._account = Account.from_key(private_key)
          self.token_address = Web3.to_checksum_address(token_address)
          self.token = self.w3.eth.contract(address=self.token_address, abi=ERC20_ABI)
          self.fallback_decimals = fallback_decimals

     @property
     def address(self) -> str:
          """Gateway receiving address (checksummed), derived from the hot wallet key."""
          return self._account.address

     def read_decimals(self) -> int:
          """Token decimals from the contract, or the fallback if the read fails."""
          try:
               decimals = int(self.token.functions.decimals().call())
          except Exception as e:
               logger.warning(
                    f"Could not read token decimals ({type(e).__name__}: {e}), "
                    f"using fallback {self.fallback_decimals}"
               )
               return self.fallback_decimals
          logger.info(f"Token decimals: {decimals}")
          return decimals

     def balance_of(self, address: Optional[str] = None) -> int:
          """Raw token balance of `address` (default: the gateway address)."""
          target = Web3.to_checksum_address(address or self.address)
          try:
               return int(self.token.functions.balanceOf(target).call())
          except Exception as e:
               raise ChainError(f"balanceOf failed: {type(e).__name__}: {e}") from e

     def send_transfer(self, to: str, raw_value: int) -> str:
          """
          Sign and broadcast `transfer(to, raw_value)` from the hot wallet.

          Returns the transaction hash (0x-prefixed hex) without waiting for a
          receipt.

          Raises:
               InvalidAddress: `to` is not a valid address
               ChainError: building, signing or broadcasting failed
          """
          if not is_valid_address(to):
               raise InvalidAddress(f"invalid to address: {to!r}")

          recipient = Web3.to_checksum_address(to)
          try:
               tx_fn = self.token.functions.transfer(recipient, int(raw_value))
               try:
                    gas_limit = int(tx_fn.estimate_gas({"from": self.address}) * 1.2)
               except Exception as gas_err:
                    logger.warning(f"Gas estimation failed, using default {DEFAULT_GAS_LIMIT}: {gas_err}")
                    gas_limit = DEFAULT_GAS_LIMIT

               tx = tx_fn.build_transaction({
                    "from": self.address,
                    "nonce": self.w3.eth.get_transaction_count(self.address, "pending"),
                    "gas": gas_limit,
                    "gasPrice": self.w3.eth.gas_price,
                    "chainId": self.w3.eth.chain_id,
               })
               signed = self._account.sign_transaction(tx)
               tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
          except Exception as e:
               logger.warning(f"Outbound transfer to {recipient} failed: {type(e).__name__}: {e}")
               raise ChainError(f"send failed: {e}") from e

          tx_hash_hex = Web3.to_hex(tx_hash)
          logger.info(f"Outbound transfer submitted: to={recipient} value={raw_value} tx={tx_hash_hex}")
          return tx_hash_hex
