"""Application configuration management."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite:///./vidtube.db"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20

    # Security
    ACCESS_TOKEN_SECRET: str = "dev-access-secret"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours
    REFRESH_TOKEN_SECRET: str = "dev-refresh-secret"
    REFRESH_TOKEN_EXPIRE_DAYS: int = 10
    JWT_ALGORITHM: str = "HS256"
    COOKIE_SECURE: bool = True

    # CORS
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    # Media host (S3 compatible)
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    S3_BUCKET: str = "vidtube-media"
    S3_ENDPOINT_URL: Optional[str] = None
    MEDIA_BASE_URL: Optional[str] = None

    # Uploads
    UPLOAD_TEMP_DIR: str = "./public/temp"
    MAX_UPLOAD_MB: int = 500

    # Error tracking
    SENTRY_DSN: Optional[str] = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    # Application
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True
    )

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse ALLOWED_ORIGINS comma-separated string into list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def media_base_url(self) -> str:
        """Public base URL objects in the media bucket are served from."""
        if self.MEDIA_BASE_URL:
            return self.MEDIA_BASE_URL.rstrip("/")
        if self.S3_ENDPOINT_URL:
            return f"{self.S3_ENDPOINT_URL.rstrip('/')}/{self.S3_BUCKET}"
        return f"https://{self.S3_BUCKET}.s3.{self.AWS_REGION}.amazonaws.com"


# Global settings instance
settings = Settings()
