"""
EcoVision configuration.

Settings are read from ``ECOVISION_*`` environment variables.
"""

import secrets
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime settings for the record store, sessions and notifications.
    """

    model_config = SettingsConfigDict(env_prefix="ECOVISION_")

    # Session claims
    secret_key: str = Field(default_factory=lambda: secrets.token_urlsafe(64))
    jwt_algorithm: str = "HS256"
    claim_ttl_hours: int = 24

    # Notifications
    dedup_window_seconds: float = 5.0
    notification_capacity: int = 10

    # Stats
    recent_activity_limit: int = 5
    certificate_threshold: int = 10

    # Collaborators (classifier, exporter, locator)
    collaborator_timeout_seconds: float = 10.0

    # Storage - None keeps everything in memory
    database_path: Optional[str] = None

    # Report private records the actor cannot read as missing instead of forbidden
    conceal_private_records: bool = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
