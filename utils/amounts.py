# utils/amounts.py
"""
Fixed-point amount helpers.

Invoice amounts carry exactly AMOUNT_PLACES fractional digits and are stored as
integer milli-units. Token values arrive as raw integers in the token's own
smallest unit. Every comparison between the two is done on integers.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from errors import InvalidAmount

AMOUNT_PLACES = 3
AMOUNT_QUANTUM = Decimal(1).scaleb(-AMOUNT_PLACES)  # 0.001

AmountLike = Union[str, int, float, Decimal]

# Amounts are stored as signed 64-bit milli-units; the headroom above this
# ceiling (about 2.2e14) is left for the tag added on top.
MAX_AMOUNT = Decimal("9000000000000000")


def parse_amount(value: AmountLike, quantize: bool = True) -> Decimal:
     """
     Parse a caller-supplied amount into a positive Decimal, rounded half-up
     to 3 places unless `quantize` is False.

     Floats go through `str` first so 10.1 becomes Decimal("10.1"), not its
     binary expansion.

     Raises:
          InvalidAmount: missing, non-numeric, non-finite, not > 0 after rounding,
               or (when quantizing) above MAX_AMOUNT.
     """
     if value is None or isinstance(value, bool):
          raise InvalidAmount("amount must be > 0")
     try:
          amount = Decimal(str(value).strip())
          if not amount.is_finite():
               raise InvalidAmount("amount must be a finite number")
          if quantize:
               if amount > MAX_AMOUNT:
                    raise InvalidAmount(f"amount must be <= {MAX_AMOUNT}")
               amount = amount.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)
     except InvalidOperation:
          raise InvalidAmount(f"amount is not a valid number: {value!r}")
     if amount <= 0:
          raise InvalidAmount("amount must be > 0")
     return amount


def to_units(amount: Decimal) -> int:
     """Convert a 3-place amount to integer milli-units (Decimal("10.001") -> 10001)."""
     if amount.quantize(AMOUNT_QUANTUM) != amount:
          raise InvalidAmount(f"{amount} has more than {AMOUNT_PLACES} fractional digits")
     return int(amount.scaleb(AMOUNT_PLACES))


def from_units(units: int) -> Decimal:
     """Inverse of to_units."""
     return Decimal(int(units)).scaleb(-AMOUNT_PLACES).quantize(AMOUNT_QUANTUM)


def format_amount(amount: Decimal) -> str:
     return f"{amount.quantize(AMOUNT_QUANTUM):f}"


def raw_to_decimal(raw: Union[int, str], decimals: int) -> Decimal:
     """Exact decimal value of a raw token amount (no rounding)."""
     return Decimal(int(raw)).scaleb(-decimals)


def decimal_to_raw(amount: Decimal, decimals: int) -> int:
     """
     Convert a decimal token amount to the token's smallest unit.

     Raises:
          InvalidAmount: if the amount cannot be represented exactly.
     """
     scaled = amount.scaleb(decimals)
     if scaled != scaled.to_integral_value():
          raise InvalidAmount(f"{amount} has more than {decimals} fractional digits")
     return int(scaled)


def units_match_raw(units: int, raw: int, decimals: int) -> bool:
     """
     True when `units` milli-units equal `raw` token base units exactly.

     Both sides are lifted to the common scale max(AMOUNT_PLACES, decimals),
     so tokens with fewer than 3 decimals compare correctly too.
     """
     scale = max(AMOUNT_PLACES, decimals)
     return int(units) * 10 ** (scale - AMOUNT_PLACES) == int(raw) * 10 ** (scale - decimals)
