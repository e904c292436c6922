# ============================================================================
# src/medibill_client/config/client_config.py
# ============================================================================
"""
Backend Connection Settings
- Base URL
- Timeout
- Tunnel interstitial bypass headers
- Error message extraction
"""

from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    API_BASE_URL: str = Field(
        default="http://localhost:5000",
        description="MediBill backend base URL (may be a temporary public tunnel)"
    )
    REQUEST_TIMEOUT: Optional[float] = Field(
        default=None,
        gt=0,
        description="Total request timeout in seconds. Unset = aiohttp default"
    )
    SEND_TUNNEL_BYPASS_HEADERS: bool = Field(
        default=True,
        description="Send headers asking ngrok/localtunnel to skip their warning page"
    )
    ERROR_TEXT_MAX_LENGTH: int = Field(
        default=200,
        ge=1,
        description="Plain-text error bodies shorter than this are shown verbatim"
    )
    AUTH_REJECTED_STATUSES: List[int] = Field(
        default_factory=lambda: [401],
        description="HTTP statuses meaning the bearer token is invalid or expired"
    )

    @field_validator("API_BASE_URL")
    @classmethod
    def _strip_base_url(cls, value: str) -> str:
        return value.strip().rstrip("/")

client_settings = ClientSettings()
