"""Application settings and configuration.

This module defines all configuration options for the confession board.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Confession Board", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./confessions.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    create_tables_on_startup: bool = Field(default=True, alias="CREATE_TABLES_ON_STARTUP")

    # Redis configuration for quota counters
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")

    # Pagination limits exposed to the HTTP boundary
    default_page_size: int = Field(default=20, alias="DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(default=50, alias="MAX_PAGE_SIZE")
    admin_max_page_size: int = Field(default=100, alias="ADMIN_MAX_PAGE_SIZE")
    featured_limit: int = Field(default=10, alias="FEATURED_LIMIT")

    # Content lifecycle
    confession_ttl_days: int = Field(default=30, alias="CONFESSION_TTL_DAYS")
    new_user_reputation: int = Field(default=10, alias="NEW_USER_REPUTATION")

    # Quotas: maximum actions per window, per user
    confession_quota: int = Field(default=5, alias="CONFESSION_QUOTA")
    confession_quota_window_seconds: int = Field(
        default=3600,
        alias="CONFESSION_QUOTA_WINDOW_SECONDS",
    )
    vote_quota: int = Field(default=10, alias="VOTE_QUOTA")
    vote_quota_window_seconds: int = Field(default=60, alias="VOTE_QUOTA_WINDOW_SECONDS")
    comment_quota: int = Field(default=20, alias="COMMENT_QUOTA")
    comment_quota_window_seconds: int = Field(
        default=60,
        alias="COMMENT_QUOTA_WINDOW_SECONDS",
    )

    # Background repair of denormalized counters
    counter_repair_enabled: bool = Field(default=False, alias="COUNTER_REPAIR_ENABLED")
    counter_repair_interval_seconds: float = Field(
        default=900.0,
        alias="COUNTER_REPAIR_INTERVAL_SECONDS",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def quotas(self) -> dict[str, tuple[int, int]]:
        """Return quota limits keyed by action name.

        Returns:
            Mapping of action to ``(max_actions, window_seconds)``
        """
        return {
            "confession": (self.confession_quota, self.confession_quota_window_seconds),
            "vote": (self.vote_quota, self.vote_quota_window_seconds),
            "comment": (self.comment_quota, self.comment_quota_window_seconds),
        }


settings = Settings()  # type: ignore[call-arg]
