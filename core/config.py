from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):

    DATABASE_URL: str = "sqlite+aiosqlite:///./keepsake.db"

    AWS_ACCESS_KEY_ID: str = "minioadmin"
    AWS_SECRET_ACCESS_KEY: str = "minioadmin"
    AWS_S3_BUCKET_NAME: str = "photos"
    AWS_S3_ENDPOINT_URL: str = "http://localhost:9000"
    AWS_S3_REGION: str = "us-east-1"
    AWS_S3_SECURE: bool = False

    # Base for public links, defaults to "<endpoint>/<bucket>"
    PUBLIC_STORAGE_URL: Optional[str] = None
    # None keeps the uploaded bytes untouched
    PHOTO_COMPRESS_QUALITY: Optional[int] = None

    NOTE_MAX_LENGTH: int = 500
    # Deepest allowed reply level, a root note is level 0
    NOTE_MAX_DEPTH: int = 50
    CAPTION_MAX_LENGTH: int = 200

    CORS_ORIGINS: str = "*"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings object, imported everywhere
settings = Settings()
