from __future__ import annotations


class LedgerError(RuntimeError):
    """Base class for every error the price ledger reports to its callers."""
    code = "ledger_error"


class ValidationError(LedgerError):
    """Raised when a change specification is malformed (amount <= 0, unknown kind)."""
    code = "validation_error"


class NoMatchingServices(LedgerError):
    """Raised when a bulk change selects no active catalog entries."""
    code = "no_matching_services"


class TransactionAborted(LedgerError):
    """Raised when the underlying store fails. Nothing was written; safe to retry in full."""
    code = "transaction_aborted"


class NotFound(LedgerError):
    """Raised when a journal entry id does not exist."""
    code = "not_found"


class CatalogEntryMissing(NotFound):
    """Raised when a snapshot references a catalog entry that no longer exists."""

    def __init__(self, service_id: str) -> None:
        super().__init__(f"Catalog entry {service_id} no longer exists")
        self.service_id = service_id


class AlreadyReverted(LedgerError):
    code = "already_reverted"


class RevertOfRevertNotAllowed(LedgerError):
    code = "revert_of_revert_not_allowed"


class OutOfOrderRevert(LedgerError):
    """Raised when newer, still-applied entries must be reverted first."""
    code = "out_of_order_revert"

    def __init__(self, entry_id: str, blocking_entry_ids: list[str]) -> None:
        super().__init__(
            f"Entry {entry_id} cannot be reverted before newer entries: "
            + ", ".join(blocking_entry_ids)
        )
        self.entry_id = entry_id
        self.blocking_entry_ids = list(blocking_entry_ids)
