"""
Configuration for the Health Assessment client.

PERSISTENCE:
- Profile, reports and session scratch live under storage_dir
- No credentials are configured here (no authentication)
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Remote assessment/chat service
    api_base_url: str = "http://localhost:8000"
    request_timeout: float = 30.0

    # Local persistence
    storage_dir: str = ".health_assessment"

    # Upper bound on consecutive auto-filled questions in one chain
    max_autofill_depth: int = 50

    log_level: str = "INFO"

    # Reference service settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    model_config = {"env_prefix": "HEALTH_ASSESSMENT_"}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Install a single stream handler on the root logger."""
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel((level or get_settings().log_level).upper())

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
    root.addHandler(handler)
