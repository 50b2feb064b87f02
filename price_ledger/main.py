import logging

from fastapi import FastAPI

from price_ledger.api.v1.price_changes import router as price_changes_router
from price_ledger.core.config import settings

class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("journal_entry_id", "record_kind", "affected_count", "category_id", "blocking", "reason", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title="Service Price Ledger", version="1.0.0")

app.include_router(price_changes_router, prefix="/api/v1", tags=["price-changes"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
