"""Unit tests for the PositionAllocator domain service."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from party_queue.domain.queue.services import PositionAllocator
from party_queue.domain.queue.value_objects import PositionUpdate


@dataclass
class Slot:
    id: str
    position: int


def _apply(slots: list[Slot], updates: list[PositionUpdate]) -> dict[str, int]:
    positions = {s.id: s.position for s in slots}
    for update in updates:
        assert positions[update.entry_id] == update.old_position
        positions[update.entry_id] = update.new_position
    return positions


def _slots(count: int) -> list[Slot]:
    return [Slot(id=f"e{i}", position=i) for i in range(count)]


class TestNextPosition:
    def test_empty_partition_starts_at_base(self):
        """Should return the base position for an empty partition."""
        assert PositionAllocator.next_position([]) == PositionAllocator.BASE == 0

    def test_appends_after_max(self):
        """Should return max + 1 regardless of ordering."""
        assert PositionAllocator.next_position([2, 0, 1]) == 3

    def test_gaps_are_not_filled(self):
        """Should not reuse gaps; allocation is strictly max + 1."""
        assert PositionAllocator.next_position([0, 5]) == 6

    def test_sequential_run(self):
        assert PositionAllocator.sequential(3, 4) == [3, 4, 5, 6]
        assert PositionAllocator.sequential(0, 0) == []


class TestCompactAfter:
    def test_decrements_every_later_entry_by_one(self):
        """Should move every entry after the removed slot down by exactly one."""
        slots = [s for s in _slots(5) if s.position != 2]

        updates = PositionAllocator.compact_after(slots, removed_position=2)

        assert [u.entry_id for u in updates] == ["e3", "e4"]
        assert _apply(slots, updates) == {"e0": 0, "e1": 1, "e3": 2, "e4": 3}

    def test_updates_are_ascending(self):
        """Should emit updates in ascending position order."""
        slots = [Slot("c", 3), Slot("a", 1), Slot("b", 2)]

        updates = PositionAllocator.compact_after(slots, removed_position=0)

        assert [u.old_position for u in updates] == [1, 2, 3]

    def test_removing_last_needs_no_repair(self):
        slots = _slots(3)
        assert PositionAllocator.compact_after(slots, removed_position=2) == []


class TestShiftForMove:
    def test_move_up_shifts_intermediate_entries_down(self):
        """Reorder 3 -> 0 on five entries: 0,1,2 become 1,2,3 and 4 is untouched."""
        slots = _slots(5)

        updates = PositionAllocator.shift_for_move(slots, 3, 0)

        assert updates[-1] == PositionUpdate("e3", 3, 0)
        assert _apply(slots, updates) == {"e0": 1, "e1": 2, "e2": 3, "e3": 0, "e4": 4}
        assert "e4" not in {u.entry_id for u in updates}

    def test_move_down_shifts_intermediate_entries_up(self):
        slots = _slots(5)

        updates = PositionAllocator.shift_for_move(slots, 1, 3)

        assert updates[-1] == PositionUpdate("e1", 1, 3)
        assert _apply(slots, updates) == {"e0": 0, "e1": 3, "e2": 1, "e3": 2, "e4": 4}

    def test_noop_move_returns_no_updates(self):
        assert PositionAllocator.shift_for_move(_slots(3), 1, 1) == []

    def test_missing_source_returns_no_updates(self):
        assert PositionAllocator.shift_for_move(_slots(3), 7, 0) == []

    def test_unheld_target_returns_no_updates(self):
        slots = [Slot("e0", 0), Slot("e2", 2)]

        assert PositionAllocator.shift_for_move(slots, 2, 1) == []

    def test_skips_slots_not_held_by_the_partition(self):
        """Slot 1 belongs to another partition and must never be written."""
        slots = [Slot("e0", 0), Slot("e2", 2), Slot("e3", 3)]

        updates = PositionAllocator.shift_for_move(slots, 3, 0)

        assert updates[-1] == PositionUpdate("e3", 3, 0)
        assert 1 not in {u.new_position for u in updates}
        assert _apply(slots, updates) == {"e0": 2, "e2": 3, "e3": 0}

    @pytest.mark.parametrize(
        ("from_position", "to_position"),
        [(0, 4), (4, 0), (2, 3), (3, 2), (1, 4)],
    )
    def test_result_is_contiguous(self, from_position: int, to_position: int):
        """Should keep the partition dense after any in-range move."""
        slots = _slots(5)

        positions = _apply(slots, PositionAllocator.shift_for_move(slots, from_position, to_position))

        assert PositionAllocator.is_contiguous(positions.values())
        assert positions[f"e{from_position}"] == to_position


class TestIsContiguous:
    def test_empty_is_contiguous(self):
        assert PositionAllocator.is_contiguous([])

    def test_dense_unordered_is_contiguous(self):
        assert PositionAllocator.is_contiguous([2, 0, 1])

    def test_gap_is_not_contiguous(self):
        assert not PositionAllocator.is_contiguous([0, 2])

    def test_duplicate_is_not_contiguous(self):
        assert not PositionAllocator.is_contiguous([0, 1, 1])

    def test_must_start_at_base(self):
        assert not PositionAllocator.is_contiguous([1, 2, 3])
