"""
Vortex client configuration

Settings are read from the environment (``VORTEX_`` prefix) each time a
:class:`VortexSettings` is instantiated, i.e. once per client construction.

    VORTEX_API_BASE_URL=https://api.staging.vortexsoftware.com
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_BASE_URL = "https://api.vortexsoftware.com"


class VortexSettings(BaseSettings):
    """Environment-backed settings for the Vortex client."""

    model_config = SettingsConfigDict(env_prefix="VORTEX_", extra="ignore")

    # Host only; endpoint paths carry the /api/v1 prefix
    api_base_url: str = DEFAULT_API_BASE_URL

    @field_validator("api_base_url")
    @classmethod
    def _blank_means_default(cls, value: str) -> str:
        value = value.strip()
        return value.rstrip("/") if value else DEFAULT_API_BASE_URL
