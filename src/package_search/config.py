"""Centralized configuration for the package search index using Pydantic Settings."""

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from package_search.search.sdk_registry import DEFAULT_SDK_LIBRARIES


class Settings(BaseSettings):
    """Strictly typed configuration loaded from environment variables.

    All environment variables are validated at startup with proper types.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",  # Ignore extra env vars not defined in model
    )

    # Paging
    default_page_size: int = Field(default=10, ge=1, description="Page size used when a query omits the limit")
    max_page_size: int = Field(default=100, ge=1, description="Upper bound for a requested page size")

    # SDK library registry
    sdk_libraries: str = Field(
        default=",".join(DEFAULT_SDK_LIBRARIES),
        description="Comma-separated SDK library names matched alongside packages",
    )

    # Refresh settings
    refresh_enabled: bool = Field(default=True, description="Enable the periodic index rebuild")
    refresh_schedule: str = Field(default="*/15 * * * *", description="Cron schedule for index rebuilds")
    documents_path: str = Field(
        default="",
        description="Optional JSON-lines file of package documents loaded before every rebuild",
    )

    # Server settings
    host: str = Field(default="127.0.0.1", description="HTTP server host")
    port: int = Field(default=8080, ge=1, le=65535, description="HTTP server port")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @model_validator(mode="after")
    def _check_page_sizes(self) -> "Settings":
        if self.max_page_size < self.default_page_size:
            raise ValueError(
                f"MAX_PAGE_SIZE ({self.max_page_size}) must be at least DEFAULT_PAGE_SIZE ({self.default_page_size})"
            )
        return self

    def get_sdk_libraries(self) -> list[str]:
        """Get list of SDK library names (comma-separated)."""
        if not self.sdk_libraries:
            return []
        return [name.strip() for name in self.sdk_libraries.split(",") if name.strip()]

    def get_documents_path(self) -> Path | None:
        """Return the seed document file, or None when not configured."""
        if not self.documents_path.strip():
            return None
        return Path(self.documents_path.strip()).expanduser()
