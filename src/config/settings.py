"""Application settings using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="agora", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment name"
    )
    debug: bool = Field(default=False, description="Debug mode")
    api_prefix: str = Field(default="/api/v1", description="Prefix for API routes")

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=5000, description="API port")

    # MongoDB
    mongo_uri: str | None = Field(
        default=None, description="MongoDB connection string (required)"
    )
    mongo_database: str = Field(default="agora", description="MongoDB database")
    mongo_server_selection_timeout_ms: int = Field(
        default=10_000, description="Server selection timeout (ms)"
    )
    mongo_socket_timeout_ms: int = Field(
        default=45_000, description="Socket timeout (ms)"
    )

    # Authentication
    jwt_secret: str | None = Field(
        default=None, description="JWT signing key (required)"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT algorithm")
    jwt_expire: str | None = Field(
        default=None,
        description="Token lifetime as <integer><unit>, unit in s,m,h,d,w,M,y",
    )
    auth_cookie_name: str = Field(default="token", description="Session cookie name")
    auth_cookie_expire_days: int = Field(
        default=30, description="Session cookie lifetime (days)"
    )
    auth_cookie_domain: str | None = Field(
        default=None, description="Cookie domain (production only)"
    )

    # Redis
    redis_enabled: bool = Field(default=True, description="Use Redis rate limiting")
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    redis_max_connections: int = Field(default=10, description="Max Redis connections")
    redis_socket_timeout: float = Field(default=5.0, description="Redis socket timeout")
    redis_socket_connect_timeout: float = Field(
        default=5.0, description="Redis connect timeout"
    )

    # Rate limiting
    rate_limit_requests: int = Field(
        default=100, description="Requests allowed per window per client IP"
    )
    rate_limit_window_seconds: int = Field(
        default=15 * 60, description="Rate limit window (seconds)"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_json: bool | None = Field(
        default=None,
        description="Render console logs as JSON (default: all but development)",
    )
    log_dir: str = Field(default="logs", description="Directory for log files")
    log_file_enabled: bool = Field(default=True, description="Write log files")
    log_file_max_bytes: int = Field(
        default=10 * 1024 * 1024, description="Max size per log file (10MB default)"
    )
    log_file_backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )
    log_requests: bool = Field(
        default=True, description="Log HTTP request start/finish"
    )
    log_exclude_paths: list[str] = Field(
        default=["/health", "/api/health"],
        description="Paths to exclude from request logging",
    )

    # CORS
    cors_origins: list[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="CORS origins",
    )
    trusted_proxies: list[str] = Field(
        default=["127.0.0.1", "::1"],
        description="Peers whose X-Forwarded-For hop is trusted for client IPs",
    )
    cors_allow_credentials: bool = Field(default=True, description="Allow credentials")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        description="Allowed methods",
    )
    cors_allow_headers: list[str] = Field(
        default=["Content-Type", "Authorization", "X-Requested-With"],
        description="Allowed headers",
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing"

    @property
    def cookie_max_age(self) -> int:
        """Session cookie lifetime in seconds."""
        return self.auth_cookie_expire_days * 24 * 60 * 60


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
