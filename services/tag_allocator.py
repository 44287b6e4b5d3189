# services/tag_allocator.py
"""
Amount Tag Allocator.

Picks the smallest tag on the grid {step, 2*step, ..., max_tag} that no pending
invoice is using. Tags are added to the requested amount so that every pending
invoice has a distinct pay amount (10 -> 10.001, the next 10 -> 10.002, ...).

The grid is built from integer milli-unit multiples, so repeated additions of
the step can never drift.
"""
from decimal import Decimal
from typing import Iterable, List

from utils.amounts import from_units, to_units
from errors import CapacityExhausted


class TagAllocator:
     """Deterministic lowest-free-slot allocator over a small fixed grid."""

     def __init__(self, step: Decimal = Decimal("0.001"), max_tag: Decimal = Decimal("0.099")):
          step_units = to_units(Decimal(step))
          max_units = to_units(Decimal(max_tag))
          if step_units <= 0:
               raise ValueError("tag step must be > 0")
          if max_units < step_units:
               raise ValueError("tag max must be >= tag step")

          self.step = from_units(step_units)
          self.max_tag = from_units(max_units)
          self._grid_units: List[int] = [
               step_units * k for k in range(1, max_units // step_units + 1)
          ]

     @property
     def capacity(self) -> int:
          """Number of invoices that can be pending at the same time."""
          return len(self._grid_units)

     def grid(self) -> List[Decimal]:
          return [from_units(units) for units in self._grid_units]

     def allocate(self, used_tags: Iterable[Decimal]) -> Decimal:
          """
          Return the smallest grid tag not present in `used_tags`.

          Args:
               used_tags: tags of the currently pending invoices

          Raises:
               CapacityExhausted: every grid slot is in use
          """
          used = {to_units(Decimal(tag)) for tag in used_tags}
          for units in self._grid_units:
               if units not in used:
                    return from_units(units)
          raise CapacityExhausted(
               f"All {self.capacity} amount tags are in use by pending invoices, try again later"
          )
