from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # "memory", "json" or "sql"
    STORE_PROVIDER: str = "memory"
    JSON_STORE_PATH: str = "./data/ledger.json"
    DATABASE_URL: str = "sqlite:///./ledger.db"

    # Optional JSON file with {"categories": [...], "services": [...]} loaded at startup
    CATALOG_SEED_PATH: str | None = None


settings = Settings()
