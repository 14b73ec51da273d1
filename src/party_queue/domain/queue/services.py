"""Domain service computing and repairing dense positions within a partition."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from party_queue.domain.queue.value_objects import PositionUpdate
from party_queue.domain.shared.constants import Ordering


class Positioned(Protocol):
    id: str
    position: int


class PositionAllocator:
    """Pure position arithmetic over one ordered partition.

    The allocator never talks to the store. It returns the patches a caller
    must apply, in the order they must be applied. It does not serialise
    concurrent callers either: two inserts computing ``next_position`` from
    the same snapshot get the same value, so callers that need uniqueness
    must run the read and the write under a single writer.
    """

    BASE = Ordering.POSITION_BASE

    @classmethod
    def next_position(cls, positions: Iterable[int]) -> int:
        """Return ``max(positions) + 1``, or the base when the partition is empty."""
        return max(positions, default=cls.BASE - 1) + 1

    @classmethod
    def sequential(cls, start: int, count: int) -> list[int]:
        return list(range(start, start + count))

    @classmethod
    def compact_after(
        cls, entries: Sequence[Positioned], removed_position: int
    ) -> list[PositionUpdate]:
        """Decrement every entry after a removed slot by exactly one.

        Updates are ordered by ascending position so each write moves an
        entry into the slot just vacated by the previous one.
        """
        affected = sorted(
            (e for e in entries if e.position > removed_position), key=lambda e: e.position
        )
        return [PositionUpdate(e.id, e.position, e.position - 1) for e in affected]

    @classmethod
    def shift_for_move(
        cls, entries: Sequence[Positioned], from_position: int, to_position: int
    ) -> list[PositionUpdate]:
        """Compute the patches that move the entry at ``from_position`` to ``to_position``.

        Entries between the two bounds shift one occupied slot toward the
        vacated slot; the moved entry's own update is always the last element.
        Only slots already held by ``entries`` are written, so a slot owned by
        another partition (a playing entry among pending ones) is never taken.
        Returns an empty list for a no-op move or when either position is
        not held by one of ``entries``.
        """
        ordered = sorted(entries, key=lambda e: e.position)
        slots = [e.position for e in ordered]
        if from_position == to_position or from_position not in slots or to_position not in slots:
            return []

        moved = ordered.pop(slots.index(from_position))
        ordered.insert(slots.index(to_position), moved)

        updates = [
            PositionUpdate(e.id, e.position, slot)
            for e, slot in zip(ordered, slots, strict=True)
            if e.id != moved.id and e.position != slot
        ]
        if from_position > to_position:
            # Moving up: shifted entries are written from the highest slot down.
            updates.reverse()
        updates.append(PositionUpdate(moved.id, from_position, to_position))
        return updates

    @classmethod
    def is_contiguous(cls, positions: Iterable[int]) -> bool:
        """True when positions are exactly ``BASE, BASE+1, ...`` with no gaps or duplicates."""
        ordered = sorted(positions)
        return ordered == list(range(cls.BASE, cls.BASE + len(ordered)))
