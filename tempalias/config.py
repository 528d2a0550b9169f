"""
Configuration Management

Centralized configuration using Pydantic Settings with environment variables.
Variable names match the ones existing deployments already export
(PORT, DB_PATH, CF_*).
"""

from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    
    Provider credentials default to empty strings so the service can boot
    without them; every provider call then fails with a ProviderError.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )
    
    # ===================================
    # Application Settings
    # ===================================
    APP_ENV: str = Field(default="production", description="Environment: development, staging, production")
    APP_NAME: str = Field(default="TempAlias", description="Application name")
    HOST: str = Field(default="0.0.0.0", description="Host to bind to")
    PORT: int = Field(default=8086, ge=1, le=65535, description="Port to bind to")
    
    # ===================================
    # Database Configuration
    # ===================================
    DB_PATH: str = Field(default="./data/emails.db", description="SQLite database file")
    DATABASE_ECHO: bool = Field(default=False, description="Echo SQL queries (debug)")
    
    # ===================================
    # Cloudflare Email Routing
    # ===================================
    CF_EMAIL_DOMAIN: str = Field(default="", description="Domain used for generated aliases")
    CF_DESTINATION_EMAIL: str = Field(default="", description="Mailbox every alias forwards to")
    CF_ZONE_ID: str = Field(default="", description="Cloudflare zone ID")
    CF_API_TOKEN: str = Field(default="", description="Cloudflare API token")
    CF_API_BASE_URL: str = Field(
        default="https://api.cloudflare.com/client/v4",
        description="Cloudflare API base URL",
    )
    PROVIDER_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0, description="Timeout for each provider request")
    
    # ===================================
    # Alias Settings
    # ===================================
    ALIAS_TTL_MINUTES: int = Field(default=60, ge=1, description="Lifetime granted by generate, recreate and renew")
    ALIAS_LENGTH: int = Field(default=8, ge=4, le=64, description="Length of the random local part")
    
    # ===================================
    # Worker Settings
    # ===================================
    SWEEP_INTERVAL_SECONDS: float = Field(default=60.0, gt=0, description="Expiration sweep interval in seconds")
    
    # ===================================
    # Logging Configuration
    # ===================================
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="json", description="Log format: json or text")
    LOG_FILE: Optional[str] = Field(default=None, description="Log file path")
    
    # ===================================
    # Monitoring
    # ===================================
    ENABLE_METRICS: bool = Field(default=True, description="Expose Prometheus metrics at /metrics")
    
    # ===================================
    # Validators
    # ===================================
    
    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v
    
    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v):
        """Validate log format."""
        v = v.lower()
        if v not in ("json", "text"):
            raise ValueError("Log format must be one of: ['json', 'text']")
        return v
    
    @field_validator("APP_ENV")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment."""
        valid_envs = ["development", "staging", "production"]
        v = v.lower()
        if v not in valid_envs:
            raise ValueError(f"Environment must be one of: {valid_envs}")
        return v
    
    @field_validator("CF_API_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")
    
    # ===================================
    # Computed Properties
    # ===================================
    
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.APP_ENV == "development"
    
    @property
    def database_url(self) -> str:
        """SQLAlchemy URL for the aiosqlite driver."""
        return f"sqlite+aiosqlite:///{self.DB_PATH}"
    
    @property
    def database_dir(self) -> Path:
        """Directory holding the SQLite file."""
        return Path(self.DB_PATH).expanduser().resolve().parent
    
    @property
    def alias_ttl(self) -> timedelta:
        """Lifetime of an alias."""
        return timedelta(minutes=self.ALIAS_TTL_MINUTES)
    
    @property
    def provider_configured(self) -> bool:
        """Check if every Cloudflare value is present."""
        return all((
            self.CF_EMAIL_DOMAIN,
            self.CF_DESTINATION_EMAIL,
            self.CF_ZONE_ID,
            self.CF_API_TOKEN,
        ))


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    
    Using lru_cache ensures settings are loaded only once.
    
    Returns:
        Settings: Application settings
    """
    return Settings()
