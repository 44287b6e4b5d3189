"""
Tests for the amount tag allocator.
"""
from decimal import Decimal

import pytest

from errors import CapacityExhausted
from services.tag_allocator import TagAllocator


class TestTagAllocator:

    def test_first_allocation_is_one_step(self, allocator):
        assert allocator.allocate([]) == Decimal("0.001")

    def test_returns_smallest_unused_tag(self, allocator):
        assert allocator.allocate([Decimal("0.001"), Decimal("0.002")]) == Decimal("0.003")

    def test_fills_gaps_first(self, allocator):
        used = [Decimal("0.001"), Decimal("0.003")]
        assert allocator.allocate(used) == Decimal("0.002")

    def test_capacity_exhausted(self):
        allocator = TagAllocator(Decimal("0.001"), Decimal("0.003"))
        used = [Decimal("0.001"), Decimal("0.002"), Decimal("0.003")]

        with pytest.raises(CapacityExhausted):
            allocator.allocate(used)

    def test_default_grid_has_99_exact_slots(self, allocator):
        grid = allocator.grid()

        assert allocator.capacity == 99
        assert grid[0] == Decimal("0.001")
        assert grid[-1] == Decimal("0.099")
        # no accumulated drift: every slot is an exact multiple of the step
        assert all(tag == Decimal("0.001") * (i + 1) for i, tag in enumerate(grid))

    def test_never_reuses_a_tag(self, allocator):
        used = []
        for _ in range(allocator.capacity):
            tag = allocator.allocate(used)
            assert tag not in used
            used.append(tag)

        with pytest.raises(CapacityExhausted):
            allocator.allocate(used)

    def test_coarser_step(self):
        allocator = TagAllocator(Decimal("0.005"), Decimal("0.020"))

        assert allocator.grid() == [Decimal("0.005"), Decimal("0.010"), Decimal("0.015"), Decimal("0.020")]
        assert allocator.allocate([Decimal("0.005")]) == Decimal("0.010")

    @pytest.mark.parametrize("step, max_tag", [("0", "0.099"), ("0.010", "0.005")])
    def test_invalid_grid_rejected(self, step, max_tag):
        with pytest.raises(ValueError):
            TagAllocator(Decimal(step), Decimal(max_tag))
