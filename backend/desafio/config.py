from __future__ import annotations
import os
from pydantic import BaseModel, Field

def admin_password_from_env() -> str:
    return os.getenv("ADMIN_PANEL_PASSWORD") or os.getenv("ADMIN_DASHBOARD_PASSWORD", "")

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "desafio-conclusoes-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "Desafio da Japa")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/desafio_dev")
    s3_endpoint: str = os.getenv("S3_ENDPOINT", "http://minio:9000")
    s3_access_key: str = os.getenv("S3_ACCESS_KEY", "minioadmin")
    s3_secret_key: str = os.getenv("S3_SECRET_KEY", "minioadmin")
    s3_bucket_prints: str = os.getenv("S3_BUCKET_PRINTS", "challenge-prints")
    # Base used to build the public URL of an uploaded print; defaults to the S3 endpoint
    s3_public_url: str = os.getenv("S3_PUBLIC_URL", "") or os.getenv("S3_ENDPOINT", "http://minio:9000")

    # Admin panel
    admin_panel_password: str = Field(default_factory=admin_password_from_env)
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    admin_session_ttl_min: int = int(os.getenv("ADMIN_SESSION_TTL_MIN", "240"))  # 4h

    # Intake
    max_screenshot_mb: int = int(os.getenv("MAX_SCREENSHOT_MB", "5"))

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

settings = Settings()
