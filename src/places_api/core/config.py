"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_UPSTREAM_ENDPOINTS = "https://overpass-api.de/api/interpreter,https://overpass.kumi.systems/api/interpreter"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str | None = Field(
        default=None,
        description="Async SQLAlchemy connection string for the cache tables (in-memory stores when unset)",
    )

    # Upstream geodata service
    upstream_endpoints: str = Field(
        default=DEFAULT_UPSTREAM_ENDPOINTS,
        description="Comma-separated Overpass endpoints, tried in order",
    )
    upstream_timeout: float = Field(
        default=15.0,
        description="Per-endpoint request timeout in seconds",
        gt=0,
    )
    upstream_user_agent: str = Field(
        default="places-api/1.0",
        description="User-Agent header sent to the upstream service",
    )
    upstream_log_detail: bool = Field(
        default=True,
        description="Log every upstream attempt with endpoint and timing",
    )
    territory_code: str = Field(
        default="KR",
        description="ISO 3166-1 code of the territory used when no bbox is given",
    )

    @field_validator("territory_code")
    @classmethod
    def validate_territory_code(cls, v: str) -> str:
        v = v.strip().upper()
        if len(v) != 2 or not v.isalpha():
            msg = "territory_code must be a two-letter ISO 3166-1 code"
            raise ValueError(msg)
        return v

    @property
    def upstream_endpoint_list(self) -> list[str]:
        """Parse the endpoint string into an ordered list of URLs."""
        if not self.upstream_endpoints.strip():
            return []
        return [e.strip() for e in self.upstream_endpoints.split(",") if e.strip()]

    # Cache keys and TTLs (seconds)
    cache_key_precision: int = Field(
        default=2,
        description="Decimal digits kept when rounding bbox bounds into a cache key (clamped to 0-6)",
    )

    @field_validator("cache_key_precision", mode="before")
    @classmethod
    def clamp_cache_key_precision(cls, v: object) -> int:
        try:
            parsed = int(v)  # type: ignore[call-overload]
        except (TypeError, ValueError):
            return 2
        return max(0, min(parsed, 6))

    bbox_ttl_seconds: int = Field(default=5 * 60, description="Fresh window for bbox queries", gt=0)
    bbox_stale_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        description="Stale-but-usable window for bbox queries",
        gt=0,
    )
    territory_ttl_seconds: int = Field(default=30 * 60, description="Fresh window for territory queries", gt=0)
    territory_stale_ttl_seconds: int = Field(
        default=7 * 24 * 60 * 60,
        description="Stale-but-usable window for territory queries",
        gt=0,
    )
    snapshot_ttl_seconds: int = Field(
        default=60,
        description="Lifetime of a rendered snapshot used to absorb request bursts",
        gt=0,
    )

    @model_validator(mode="after")
    def validate_stale_windows(self) -> "Settings":
        if self.bbox_stale_ttl_seconds < self.bbox_ttl_seconds:
            msg = "bbox_stale_ttl_seconds must not be shorter than bbox_ttl_seconds"
            raise ValueError(msg)
        if self.territory_stale_ttl_seconds < self.territory_ttl_seconds:
            msg = "territory_stale_ttl_seconds must not be shorter than territory_ttl_seconds"
            raise ValueError(msg)
        return self

    # Internal record sources
    curated_file: str | None = Field(
        default=None,
        description="Path to the curated places JSON array",
    )
    operator_file: str | None = Field(
        default=None,
        description="Path to the operator-entered places JSON array",
    )
    community_file: str | None = Field(
        default=None,
        description="Path to the approved community submissions JSON array",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )

    # API
    api_v1_prefix: str = Field(
        default="/api/v1",
        description="API version prefix",
    )


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
