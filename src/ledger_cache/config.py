import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Ledger service
    ledger_api_url: str = os.getenv("LEDGER_API_URL", "http://localhost:8080/api/v1")
    ledger_api_token: str | None = os.getenv("LEDGER_API_TOKEN")
    ledger_timeout: float = float(os.getenv("LEDGER_TIMEOUT", "10.0"))
    # Page size used when walking paginated expense listings
    ledger_page_size: int = int(os.getenv("LEDGER_PAGE_SIZE", "100"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "info")
    log_json: bool = os.getenv("LOG_JSON", "false").lower() == "true"

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "false").lower() == "true"

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.ledger_timeout <= 0:
            raise ValueError("LEDGER_TIMEOUT must be greater than 0")

        if self.ledger_page_size < 1:
            raise ValueError(f"LEDGER_PAGE_SIZE must be at least 1, got {self.ledger_page_size}")

        if self.log_level.lower() not in ("debug", "info", "warning", "error", "critical"):
            raise ValueError(f"LOG_LEVEL must be a standard level name, got {self.log_level!r}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
