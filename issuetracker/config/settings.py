# issuetracker/config/settings.py
# Application configuration read from the environment (.env supported)

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Runtime settings for the issue tracker"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./issuetracker.db")
    DB_SSLMODE: str = os.getenv("DB_SSLMODE", "require")

    # JWT
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-key-please-change-in-production")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))

    # Runtime
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "standard")  # standard or json

    # Server (start_server.py)
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 8000))
    RELOAD: bool = os.getenv("RELOAD", "true").lower() == "true"

    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS",
            "http://localhost:4200,http://127.0.0.1:4200,http://localhost:3000",
        ).split(",")
        if origin.strip()
    ]

    # Dashboards
    RECENT_ACTIVITY_LIMIT: int = int(os.getenv("RECENT_ACTIVITY_LIMIT", 8))

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT.lower() == "production"

    @classmethod
    def is_sqlite(cls) -> bool:
        return cls.DATABASE_URL.lower().startswith("sqlite")


settings = Settings()
