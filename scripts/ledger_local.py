#!/usr/bin/env python3
"""
Interactive local harness for the price ledger (no HTTP).

Usage:
  STORE_PROVIDER=json CATALOG_SEED_PATH=seed.json python3 scripts/ledger_local.py

Commands:
  preview increase|decrease <amount>[%] [category_id]
  apply   increase|decrease <amount>[%] [category_id]
  history
  revert <entry_id>
  quit
"""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from price_ledger.domain.exceptions import LedgerError  # noqa: E402
from price_ledger.domain.entities.price_change import ChangeSpecification  # noqa: E402
from price_ledger.wiring.dependencies import (  # noqa: E402
    get_apply_use_case,
    get_list_journal_use_case,
    get_preview_use_case,
    get_revert_use_case,
)


def _parse_spec(args: list[str]) -> ChangeSpecification:
    if len(args) < 2:
        raise LedgerError("usage: <increase|decrease> <amount>[%] [category_id]")
    amount = args[1]
    is_percentage = amount.endswith("%")
    return ChangeSpecification(
        kind=args[0],
        amount=amount.rstrip("%"),
        is_percentage=is_percentage,
        category_id=args[2] if len(args) > 2 else None,
    )


def _print_history() -> None:
    listings = get_list_journal_use_case().execute()
    if not listings:
        print("(journal is empty)")
        return
    for listing in listings:
        entry = listing.entry
        marker = "R" if entry.is_reverted else ("*" if listing.can_revert else " ")
        print(f"{marker} {entry.id}  {entry.created_at:%Y-%m-%d %H:%M}  {entry.describe()}  ({entry.affected_count} services)")


def _handle(command: str, args: list[str]) -> None:
    if command == "preview":
        result = get_preview_use_case().execute(_parse_spec(args))
        print(f"affected: {result.affected_count}")
        print(f"current:  {result.current_price_range.min} - {result.current_price_range.max}")
        print(f"new:      {result.new_price_range.min} - {result.new_price_range.max}")
        for item in result.items:
            print(f"  {item.service_id:<12} {item.old_price} -> {item.new_price} ({item.percent_difference}%)")
    elif command == "apply":
        entry = get_apply_use_case().execute(_parse_spec(args), performed_by="local")
        print(f"applied {entry.describe()} to {entry.affected_count} services, id={entry.id}")
    elif command == "history":
        _print_history()
    elif command == "revert":
        if not args:
            raise LedgerError("usage: revert <entry_id>")
        counter = get_revert_use_case().execute(args[0], performed_by="local")
        print(f"reverted, counter entry id={counter.id}")
    else:
        print(__doc__)


def main() -> None:
    print("Price ledger local harness. Type 'help' for commands.")
    while True:
        try:
            line = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return
        if not line:
            continue
        command, *args = line.split()
        if command in ("quit", "exit"):
            print("Bye!")
            return
        try:
            _handle(command.lower(), args)
        except LedgerError as e:
            print(f"ERROR [{e.code}]: {e}")


if __name__ == "__main__":
    main()
