from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Gaming Site Directory"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = True

    # Database (unset = run against the static seed dataset)
    DATABASE_URL: Optional[str] = None
    SEED_DATA_PATH: str = "data/seed/sites_seed.json"

    # Site queries
    LOCAL_TIMEZONE: str = "America/Chicago"  # all listed sites are in MN
    DEFAULT_PAGE_LIMIT: int = 100
    MAX_PAGE_LIMIT: int = 1000

    # Identity header set by the auth proxy in front of the API
    USER_ID_HEADER: str = "X-User-Id"

    @property
    def uses_database(self) -> bool:
        """True when a relational store is configured."""
        return bool(self.DATABASE_URL)

    # CORS
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
