# ============================================================================
# src/medibill_client/config/storage_config.py
# ============================================================================
"""
Local Storage Settings
- Storage file location
- Keys for the persisted token and dashboard statistics
"""

from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class StorageSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    STORAGE_PATH: Path = Field(
        default=Path("data/local_storage.json"),
        description="JSON file backing client-local storage (not synced)"
    )
    TOKEN_KEY: str = Field(
        default="token",
        description="Storage key for the bearer token"
    )
    STATS_KEY: str = Field(
        default="medibill_dashboard_stats",
        description="Storage key for the dashboard summary"
    )

storage_settings = StorageSettings()
