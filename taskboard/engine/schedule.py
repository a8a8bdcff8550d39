"""TimeSchedule: slot-quantised occupancy index for the task timeline.

Time is split into fixed-width slots (10 minutes by default). A window
[start, start + duration) occupies every slot it touches; the end is
exclusive, so back-to-back windows never share a slot.

Slot keys are the slot's start formatted as YYYYMMDDHHMM, which is unique
per calendar slot (the same hour/bucket on two days gives two keys).

Windows with no start, a non-positive duration, or a duration at or above
the safety ceiling are invalid: is_overlapping() reports them as
overlapping, and add/remove ignore them.
"""

from __future__ import annotations

from datetime import datetime, timedelta

DEFAULT_SLOT_MINUTES = 10
DEFAULT_MAX_WINDOW_DAYS = 365

_KEY_FORMAT = "%Y%m%d%H%M"


class TimeSchedule:
    """Occupancy map keyed by time slot."""

    def __init__(
        self,
        slot_minutes: int = DEFAULT_SLOT_MINUTES,
        max_window_days: int = DEFAULT_MAX_WINDOW_DAYS,
    ) -> None:
        if slot_minutes <= 0 or 60 % slot_minutes != 0:
            raise ValueError(f"slot_minutes must be a positive divisor of 60, got {slot_minutes}")
        if max_window_days <= 0:
            raise ValueError(f"max_window_days must be positive, got {max_window_days}")
        self.slot = timedelta(minutes=slot_minutes)
        self.max_window = timedelta(days=max_window_days)
        self._occupied: set[str] = set()

    def __len__(self) -> int:
        return len(self._occupied)

    # === Queries ===

    def is_valid_window(self, start: datetime | None, duration: timedelta | None) -> bool:
        """True if [start, start + duration) can be placed on the timeline."""
        return (
            start is not None
            and duration is not None
            and timedelta(0) < duration < self.max_window
        )

    def is_overlapping(self, start: datetime | None, duration: timedelta | None) -> bool:
        """True if the window touches an occupied slot, or is invalid."""
        if not self.is_valid_window(start, duration):
            return True
        return any(key in self._occupied for key in self.slot_keys(start, duration))

    def occupied_slots(self) -> set[str]:
        """Snapshot of the occupied slot keys."""
        return set(self._occupied)

    def slot_keys(self, start: datetime, duration: timedelta) -> list[str]:
        """Ordered keys of every slot touched by [start, start + duration)."""
        end = start + duration
        cursor = self._floor(start)
        keys: list[str] = []
        while cursor < end:
            keys.append(cursor.strftime(_KEY_FORMAT))
            cursor += self.slot
        return keys

    # === Mutations ===

    def add_interval(self, start: datetime | None, duration: timedelta | None) -> None:
        """Mark every slot of the window occupied. Invalid windows are ignored."""
        if not self.is_valid_window(start, duration):
            return
        self._occupied.update(self.slot_keys(start, duration))

    def remove_interval(self, start: datetime | None, duration: timedelta | None) -> None:
        """Release every slot of the window. Invalid windows are ignored."""
        if not self.is_valid_window(start, duration):
            return
        self._occupied.difference_update(self.slot_keys(start, duration))

    def clear(self) -> None:
        self._occupied.clear()

    def _floor(self, ts: datetime) -> datetime:
        slot_minutes = int(self.slot.total_seconds() // 60)
        return ts.replace(minute=ts.minute - ts.minute % slot_minutes, second=0, microsecond=0)
