import logging
import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _env(name: str, default: str):
    """Field default read from the environment each time Settings() is built."""
    return field(default_factory=lambda: os.getenv(name, default))


def _env_flag(name: str, default: str):
    return field(default_factory=lambda: os.getenv(name, default).lower() in ("true", "1", "yes"))


@dataclass
class Settings:
    # API settings
    api_host: str = _env("API_HOST", "localhost")
    api_port: int = field(default_factory=lambda: int(os.getenv("API_PORT", "9000")))
    cors_origins: List[str] = field(
        default_factory=lambda: [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    )

    # Application settings
    app_name: str = _env("APP_NAME", "Bookshelf API")
    app_version: str = _env("APP_VERSION", "1.0.0")
    debug: bool = _env_flag("DEBUG", "False")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Behaviour switches
    # Restores the behaviour where only the last list filter supplied applies.
    legacy_list_filters: bool = _env_flag("LEGACY_LIST_FILTERS", "False")
    recompute_finished_on_update: bool = _env_flag("RECOMPUTE_FINISHED_ON_UPDATE", "True")

    # CLI client settings
    api_url: str = _env("API_URL", "")
    client_timeout: float = field(default_factory=lambda: float(os.getenv("CLIENT_TIMEOUT", "10")))

    def __post_init__(self) -> None:
        if not self.api_url:
            self.api_url = f"http://{self.api_host}:{self.api_port}"


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the API and the CLI."""
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
