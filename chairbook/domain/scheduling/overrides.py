"""Lookup of skip/move exceptions by (appointment id, original instant)"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from ...shared.timeutils import from_db

SKIP = "skip"
MOVE = "move"
EXCEPTION_TYPES = (SKIP, MOVE)


@dataclass(frozen=True)
class OverrideKey:
    appointment_id: int
    instant: datetime  # aware UTC

    @classmethod
    def of(cls, appointment_id: int, instant: datetime) -> "OverrideKey":
        return cls(appointment_id, from_db(instant))


class OverrideIndex:
    """
    Exceptions indexed by their structured key.

    Aware datetimes compare and hash by the instant they denote, so two
    timestamps written with different offsets still hit the same entry.
    """

    def __init__(self, exceptions: Iterable = ()):
        self._by_key: Dict[OverrideKey, List] = defaultdict(list)
        self._moves: Dict[int, List] = defaultdict(list)
        for exception in exceptions:
            self.add(exception)

    def add(self, exception) -> None:
        key = OverrideKey.of(exception.appointment_id, exception.original_start)
        self._by_key[key].append(exception)
        if exception.type == MOVE:
            self._moves[exception.appointment_id].append(exception)

    def lookup(self, appointment_id: int, instant: datetime):
        """Return the applicable exception for an instant; skip wins over move"""
        related = self._by_key.get(OverrideKey.of(appointment_id, instant))
        if not related:
            return None
        for exception in related:
            if exception.type == SKIP:
                return exception
        for exception in related:
            if exception.type == MOVE:
                return exception
        return None

    def moves_for(self, appointment_id: int) -> List:
        return list(self._moves.get(appointment_id, ()))

    def __len__(self) -> int:
        return sum(len(items) for items in self._by_key.values())


def apply_override(
    exception, start: datetime, duration_min: int
) -> Optional[Tuple[datetime, int]]:
    """
    Effective (start, duration) of an occurrence after its exception.
    Returns None when the occurrence is skipped.
    """
    if exception is None:
        return start, duration_min
    if exception.type == SKIP:
        return None
    new_start = from_db(exception.new_start) if exception.new_start else start
    new_duration = exception.new_duration_min or duration_min
    return new_start, new_duration
