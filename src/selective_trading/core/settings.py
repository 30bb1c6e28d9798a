"""Application settings and configuration.

This module defines all configuration options for the Selective Trading
ordering service. Settings are loaded from environment variables with
sensible defaults.
"""

from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Selective Trading", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./selective.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    # Upper bound for lock waits, statements and pool checkout.
    db_timeout_seconds: float = Field(default=5.0, alias="DB_TIMEOUT_SECONDS")

    # Session tokens (JWT in cookies)
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_days: int = Field(default=90, alias="ACCESS_TOKEN_EXPIRE_DAYS")
    auth_cookie_name: str = Field(default="auth-token", alias="AUTH_COOKIE_NAME")
    verified_cookie_name: str = Field(default="auth-verified", alias="VERIFIED_COOKIE_NAME")
    cookie_secure: bool = Field(default=False, alias="COOKIE_SECURE")

    # Order numbering
    order_number_prefix: str = Field(default="ST", alias="ORDER_NUMBER_PREFIX")
    order_number_width: int = Field(default=4, ge=1, alias="ORDER_NUMBER_WIDTH")
    # Day keys and date filters are computed in this zone. Changing it on a
    # live database shifts day boundaries for existing counters.
    business_timezone: str = Field(default="UTC", alias="BUSINESS_TIMEZONE")

    # Ordering rules
    order_edit_window_hours: int = Field(default=2, ge=0, alias="ORDER_EDIT_WINDOW_HOURS")
    min_order_items: int = Field(default=2, ge=1, alias="MIN_ORDER_ITEMS")

    # Verification codes
    verification_code_ttl_minutes: int = Field(
        default=30,
        ge=1,
        alias="VERIFICATION_CODE_TTL_MINUTES",
    )

    # Outbound email
    smtp_host: str = Field(default="smtp.gmail.com", alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_username: str | None = Field(default=None, alias="SMTP_USERNAME")
    smtp_password: str | None = Field(default=None, alias="SMTP_PASSWORD")
    smtp_use_tls: bool = Field(default=True, alias="SMTP_USE_TLS")
    smtp_timeout_seconds: float = Field(default=10.0, alias="SMTP_TIMEOUT_SECONDS")
    email_from: str = Field(default="no-reply@selectivetrading.com", alias="EMAIL_FROM")
    email_from_name: str = Field(default="Selective Trading", alias="EMAIL_FROM_NAME")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def business_tz(self) -> ZoneInfo:
        """Return the configured business time zone."""
        return ZoneInfo(self.business_timezone)

    @property
    def smtp_configured(self) -> bool:
        """Return True when credentials for the SMTP relay are present."""
        return bool(self.smtp_username and self.smtp_password)

    @property
    def access_token_max_age(self) -> int:
        """Cookie lifetime in seconds, aligned with the JWT expiry."""
        return self.access_token_expire_days * 24 * 60 * 60


settings = Settings()  # type: ignore[call-arg]
