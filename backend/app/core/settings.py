from pydantic import BaseModel
import os


class MissingStoreConfiguration(RuntimeError):
    """Raised at start-up when the store cannot be addressed or authenticated."""


class Settings(BaseModel):
    database_url: str | None = os.getenv("DATABASE_URL")
    database_service_key: str | None = os.getenv("DATABASE_SERVICE_KEY")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def require_store_settings(current: Settings) -> tuple[str, str]:
    missing = [
        name
        for name, value in (
            ("DATABASE_URL", current.database_url),
            ("DATABASE_SERVICE_KEY", current.database_service_key),
        )
        if not value
    ]
    if missing:
        raise MissingStoreConfiguration(f"Missing store configuration: {', '.join(missing)}")
    return current.database_url, current.database_service_key


settings = Settings()
