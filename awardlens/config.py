"""Configuration management for AwardLens."""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # NYC Open Data (SODA) source
    soda_base_url: str = Field(
        default="https://data.cityofnewyork.us/resource/dg92-zbpx.json"
    )
    soda_app_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SODA_APP_TOKEN", "SOCRATA_APP_TOKEN"),
    )
    page_size: int = Field(default=10_000)
    max_records: int = Field(
        default=100_000, description="Hard safety cap on rows fetched per refresh"
    )

    # HTTP Client Defaults
    http_timeout_seconds: float = Field(default=30.0)
    user_agent: str = Field(default="AwardLens/1.0 (Contract Awards Explorer)")

    # Filter defaults
    default_start_date: str = Field(default="2026-01-01")

    # Rendering caps (presentation only, never applied to totals)
    max_flow_links: int = Field(default=100)
    max_matrix_vendors: int = Field(default=50)
    max_matrix_agencies: int = Field(default=30)

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False, description="Emit logs as JSON lines")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def request_headers(self) -> dict:
        """Headers sent with every SODA request."""
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        if self.soda_app_token:
            headers["X-App-Token"] = self.soda_app_token
        return headers


# Global settings instance
settings = Settings()
