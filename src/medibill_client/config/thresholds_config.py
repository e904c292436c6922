# ============================================================================
# src/medibill_client/config/thresholds_config.py
# ============================================================================
"""
Dashboard Policy Thresholds
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class ThresholdSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    HIGH_COMPLIANCE_THRESHOLD: float = Field(
        default=0.8,
        ge=0.0, le=1.0,
        description="Compliance scores strictly above this count as high compliance"
    )

threshold_settings = ThresholdSettings()
