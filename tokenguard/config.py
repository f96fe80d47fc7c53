"""Application configuration"""
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    # Token lifetimes (seconds)
    JWT_TOKEN_EXPIRES: int = 5     # how long a token authorizes requests
    JWT_TOKEN_REFRESH: int = 10    # grace after expiry during which it can be refreshed once

    # Signing
    JWT_PRIVATE_KEY: Optional[str] = None   # HMAC secret for HS*, PEM private key for RS*/ES*; required
    JWT_ALGORITHM: str = "HS256"
    JWT_KEY_ID: Optional[str] = None        # kid header for key rotation tracking

    # Refresh bookkeeping
    REVOCATION_BACKEND: Literal["memory", "database"] = "memory"
    REVOCATION_SWEEP_INTERVAL: int = 60     # seconds
    DATABASE_URL: str = "sqlite:///./tokenguard.db"

    # Server
    HOST: str = "127.0.0.1"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_LOGIN: str = "20/minute"
    RATE_LIMIT_REFRESH: str = "20/minute"
    RATE_LIMIT_STORAGE_URI: str = "memory://"  # Use redis:// for production

    # Monitoring
    METRICS_ENABLED: bool = True
    METRICS_PATH: str = "/metrics"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()
