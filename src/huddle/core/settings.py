"""Application settings and configuration.

This module defines all configuration options for the Huddle server.
Settings are loaded once per process from environment variables (or an
``.env`` file) with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Huddle", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and session tokens
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 12,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    password_schemes: list[str] = Field(
        default=["pbkdf2_sha256"],
        alias="PASSWORD_SCHEMES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./huddle.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    db_pool_size: int = Field(default=10, alias="DB_POOL_SIZE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Naming / bind address. Clients on other machines need the advertised
    # hostname to reach the callback channel.
    server_host: str = Field(default="localhost", alias="SERVER_HOST")
    server_port: int = Field(default=1099, alias="SERVER_PORT")
    public_hostname: str | None = Field(default=None, alias="PUBLIC_HOSTNAME")

    # Optional TLS material; a CA file turns on client certificate checks.
    tls_cert_file: str | None = Field(default=None, alias="TLS_CERT_FILE")
    tls_key_file: str | None = Field(default=None, alias="TLS_KEY_FILE")
    tls_ca_file: str | None = Field(default=None, alias="TLS_CA_FILE")

    # Push delivery
    push_timeout_seconds: float = Field(default=5.0, alias="PUSH_TIMEOUT_SECONDS")

    # Call signaling
    call_ring_timeout_seconds: float = Field(default=45.0, alias="CALL_RING_TIMEOUT_SECONDS")
    call_terminal_grace_seconds: float = Field(
        default=5.0,
        alias="CALL_TERMINAL_GRACE_SECONDS",
    )
    call_max_duration_seconds: float = Field(
        default=4 * 3600.0,
        alias="CALL_MAX_DURATION_SECONDS",
    )

    # Banking variant
    accounts_file: str = Field(default="accounts.txt", alias="ACCOUNTS_FILE")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def advertised_host(self) -> str:
        """Return the hostname clients should use to reach this server."""
        return self.public_hostname or self.server_host

    @property
    def tls_enabled(self) -> bool:
        """Return True when both a certificate and a key are configured."""
        return bool(self.tls_cert_file and self.tls_key_file)


settings = Settings()  # type: ignore[call-arg]
