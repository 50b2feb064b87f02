from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol

from price_ledger.domain.entities.journal_entry import JournalEntry


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def next_position(clock: Clock, last: JournalEntry | None) -> tuple[datetime, int]:
    """
    Assign (created_at, sequence) for a new journal entry.

    Must be called inside the mutating transaction. created_at never moves
    backwards relative to the newest entry, so timestamp order and sequence
    order always agree.
    """
    now = clock.now()
    if last is None:
        return now, 1
    return max(now, last.created_at), last.sequence + 1
