from functools import lru_cache
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG, DATA_DIR, DB_NAME, EXCHANGE_RATES_URL).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "Cost Manager"
    debug: bool = False
    version: str = "0.1.0"

    # Data & persistence
    data_dir: Path = Path("data")
    db_name: str = "costsdb"
    db_path: Optional[Path] = None  # derived if not provided
    schema_version: int = 2

    # Exchange rates
    # Fallback when no URL has been saved through the settings endpoint.
    exchange_rates_url: Optional[str] = None
    http_timeout_seconds: Optional[float] = None  # None -> platform default
    default_currency: str = "USD"

    def init_post_load(self) -> None:
        """Finalize derived fields and ensure directories exist."""
        if self.db_path is None:
            self.db_path = self.data_dir / f"{self.db_name}.sqlite3"
        # Ensure persistence directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        if self.schema_version < 1:
            raise ValueError(
                f"schema_version must be a positive integer, got {self.schema_version}"
            )


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
