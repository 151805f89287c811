"""
Environment configuration for the bridge.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import Credentials


class Settings(BaseSettings):
    """Process-wide settings, read once from the environment at startup."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False, extra="ignore")

    api_key: Optional[str] = Field(default=None)
    bearer_token: Optional[str] = Field(default=None)
    basic_auth: Optional[str] = Field(default=None)

    openapi_base_url: Optional[str] = Field(default=None)
    include_desc_regex: Optional[str] = Field(default=None)
    exclude_desc_regex: Optional[str] = Field(default=None)

    mcp_log_http: bool = Field(default=False)
    debug: bool = Field(default=False)
    request_timeout_seconds: float = Field(default=30)
    log_level: str = Field(default="INFO")

    @property
    def log_http(self) -> bool:
        return self.mcp_log_http or self.debug

    def credentials(self) -> Credentials:
        """Startup credentials, used whenever a call carries none of its own."""
        return Credentials(
            api_key=self.api_key or None,
            bearer_token=self.bearer_token or None,
            basic_auth=self.basic_auth or None,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
