import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """
    Application configuration settings.
    Loads from environment variables with defaults.
    """
    PROJECT_NAME: str = "Momentum Issue Tracker API"
    PROJECT_VERSION: str = "1.0.0"

    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./momentum.db")

    SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key")
    ALGORITHM: str = "HS256"
    # Sessions last a week
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    WEBHOOK_USER_AGENT: str = "Momentum-Webhook/1.0"
    WEBHOOK_TIMEOUT_SECONDS: float = float(os.getenv("WEBHOOK_TIMEOUT_SECONDS", 10))
    WEBHOOK_MAX_WORKERS: int = int(os.getenv("WEBHOOK_MAX_WORKERS", 4))

    DEFAULT_PROJECT_COLOR: str = "#9D58BF"

    ALLOWED_ORIGINS: list = [
        origin.strip()
        for origin in os.getenv(
            "ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
        ).split(",")
        if origin.strip()
    ]


settings = Settings()
