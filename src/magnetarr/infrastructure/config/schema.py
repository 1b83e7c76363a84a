"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
CacheBackendName = Literal["memory", "diskcache", "redis"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class CacheConfig(BaseModel):
    """Cache configuration (backend-agnostic).

    TTLs are per cache kind; ``None`` keeps entries until they are evicted
    by the magnet quota manager (or forever).
    """

    backend: CacheBackendName = Field(
        default="diskcache",
        description=(
            "Cache backend: 'diskcache' (SQLite), 'redis' or 'memory' (not persisted)"
        ),
    )
    directory: Path = Field(
        default=Path("./.cache/magnetarr"),
        validation_alias=AliasChoices("directory", "dir"),
        description="Diskcache SQLite DB path",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (only when backend=redis)",
    )
    max_concurrent: int = Field(
        default=10,
        description="Max parallel cache ops (semaphore limit)",
    )

    metadata_ttl_seconds: Optional[int] = Field(default=None)
    search_ttl_seconds: Optional[int] = Field(default=None)
    magnet_ttl_seconds: Optional[int] = Field(default=None)
    files_ttl_seconds: Optional[int] = Field(default=None)
    streams_ttl_seconds: Optional[int] = Field(default=None)

    @field_validator("directory", mode="before")
    @classmethod
    def _validate_directory(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator(
        "metadata_ttl_seconds",
        "search_ttl_seconds",
        "magnet_ttl_seconds",
        "files_ttl_seconds",
        "streams_ttl_seconds",
    )
    @classmethod
    def _validate_ttl(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("cache TTLs must be > 0 (or null for no expiry)")
        return v


class IndexersConfig(BaseModel):
    """Torrent indexer sources."""

    timeout_seconds: float = Field(
        default=20.0,
        description="Upper bound for one indexer search (incl. alternate title).",
    )
    max_results: int = Field(
        default=100,
        description="Results requested per search page.",
    )
    ygg_enabled: bool = Field(default=True)
    ygg_base_url: str = Field(default="https://yggapi.eu")
    sharewood_passkey: Optional[str] = Field(
        default=None,
        description="Sharewood API passkey. Source is disabled when unset.",
    )
    sharewood_base_url: str = Field(default="https://www.sharewood.tv")

    @field_validator("timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("indexers.timeout_seconds must be > 0")
        return v


class ClassifierConfig(BaseModel):
    """Candidate classification options."""

    gate_series_packs: bool = Field(
        default=True,
        description=(
            "Require complete-series and complete-season candidates to match "
            "the resolution/language/codec preference lists."
        ),
    )
    complete_marker: str = Field(
        default="COMPLETE",
        description="Token marking a complete-series pack.",
    )


class QuotaConfig(BaseModel):
    """Debrid account magnet quota management."""

    enabled: bool = Field(default=True)
    max_tracked_magnets: int = Field(
        default=500,
        description="Cleanup runs when more magnets than this are tracked.",
    )
    delete_count: int = Field(
        default=100,
        description="Number of oldest magnets removed per cleanup run.",
    )
    debounce_seconds: float = Field(
        default=60.0,
        description="Delay after the last upload before a cleanup run.",
    )

    @field_validator("max_tracked_magnets", "delete_count")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("quota limits must be > 0")
        return v


class TmdbConfig(BaseModel):
    base_url: str = Field(default="https://api.themoviedb.org/3")


class AllDebridConfig(BaseModel):
    base_url: str = Field(default="https://api.alldebrid.com/v4")
    agent: str = Field(default="magnetarr")


class StremioConfig(BaseModel):
    """Addon defaults used when the user configuration omits a value."""

    addon_id: str = Field(default="community.magnetarr")
    addon_name: str = Field(default="Magnetarr")
    default_output_cap: int = Field(default=5)
    max_output_cap: int = Field(
        default=20,
        description="Upper bound accepted for FILES_TO_SHOW.",
    )
    default_resolutions: list[str] = Field(
        default_factory=lambda: ["2160p", "1080p", "720p"]
    )
    default_languages: list[str] = Field(default_factory=lambda: ["MULTI", "FRENCH"])
    default_codecs: list[str] = Field(default_factory=lambda: ["x265", "x264", "h264"])


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/cache/indexers/...).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    app_name: str = Field(default="magnetarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP client (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=15.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Per-request timeout for every upstream call.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
    )
    http_user_agent: str = Field(
        default="Magnetarr/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Credentials (YAML section: credentials.*)
    tmdb_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "tmdb_api_key",
            AliasPath("credentials", "tmdb_api_key"),
        ),
    )
    alldebrid_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "alldebrid_api_key",
            AliasPath("credentials", "alldebrid_api_key"),
        ),
    )

    tmdb: TmdbConfig = Field(default_factory=TmdbConfig)
    alldebrid: AllDebridConfig = Field(default_factory=AllDebridConfig)
    indexers: IndexersConfig = Field(default_factory=IndexersConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    quota: QuotaConfig = Field(default_factory=QuotaConfig)
    stremio: StremioConfig = Field(default_factory=StremioConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Supported env var examples (flat, explicit):
    - MAGNETARR_TMDB_API_KEY
    - MAGNETARR_ALLDEBRID_API_KEY
    - MAGNETARR_SHAREWOOD_PASSKEY
    - MAGNETARR_CACHE_BACKEND
    - MAGNETARR_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="MAGNETARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    tmdb_api_key: Optional[str] = None
    alldebrid_api_key: Optional[str] = None
    sharewood_passkey: Optional[str] = None

    cache_backend: Optional[CacheBackendName] = None
    cache_dir: Optional[Path] = None
    cache_redis_url: Optional[str] = None

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
