from __future__ import annotations

from price_ledger.domain.entities.journal_entry import JournalEntry


def blocking_entries(target: JournalEntry, entries: list[JournalEntry]) -> list[JournalEntry]:
    """
    Entries that must be reverted before target, newest first.

    Reverts are stack-ordered: every applied entry newer than target must
    already be reverted. Revert entries are terminal and never block.
    """
    blockers = [
        entry
        for entry in entries
        if entry.order_key > target.order_key and not entry.is_revert and not entry.is_reverted
    ]
    blockers.sort(key=lambda entry: entry.order_key, reverse=True)
    return blockers


def can_revert(target: JournalEntry, entries: list[JournalEntry]) -> bool:
    if target.is_revert or target.is_reverted:
        return False
    return not blocking_entries(target, entries)
