import os
from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv()


class Settings:
    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent.parent.parent
        self.APP_NAME: str = os.getenv("APP_NAME", "Field Service API")
        self.SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-change-me")
        self.ACCESS_TOKEN_EXPIRE_HOURS: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_HOURS", "24"))
        self.ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
        self.SQLALCHEMY_DATABASE_URI: str = os.getenv(
            "SQLALCHEMY_DATABASE_URI",
            f"sqlite:///{(base_dir / 'fieldservice.db').as_posix()}",
        )
        self.ENV: str = os.getenv("ENV", "development")

        self.GCS_BUCKET: str | None = os.getenv("GCS_BUCKET")
        self.LOCAL_STORAGE: bool = os.getenv("LOCAL_STORAGE", "0") == "1" or not self.GCS_BUCKET
        self.LOCAL_STORAGE_DIR: str = os.getenv("LOCAL_STORAGE_DIR", "storage")
        self.SIGNED_URL_TTL_MINUTES: int = int(os.getenv("SIGNED_URL_TTL_MINUTES", "60"))
        self.MAX_UPLOAD_BYTES: int = int(os.getenv("MAX_UPLOAD_BYTES", str(25 * 1024 * 1024)))

        default_cors = [
            "http://localhost",
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ]
        cors_origins = os.getenv("BACKEND_CORS_ORIGINS")
        self.BACKEND_CORS_ORIGINS: List[str] = (
            [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
            if cors_origins
            else default_cors
        )

    @property
    def is_development(self) -> bool:
        return self.ENV.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
