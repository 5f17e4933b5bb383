# classroom/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


_DEV_SECRET = "dev-only-change-me"


class Settings(BaseSettings):
    """Application configuration settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,  # Environment vars are uppercase
        extra="ignore",      # Ignore unexpected vars instead of raising
    )

    # Core application settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./classroom.db"
    DATABASE_ECHO: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8101
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_FILE: str | None = "classroom.log"

    # CORS settings
    ALLOWED_ORIGINS: list[str] = ["*"]  # In production, specify actual origins
    ALLOW_CREDENTIALS: bool = True
    ALLOWED_METHODS: list[str] = ["*"]
    ALLOWED_HEADERS: list[str] = ["*"]

    # JWT settings
    JWT_SECRET: str = _DEV_SECRET
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 720
    JWT_REFRESH_SECRET: str = _DEV_SECRET + "-refresh"
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Attempt settings
    ATTEMPT_TICK_SECONDS: float = 1.0
    CODE_LANGUAGES: list[str] = ["c", "cpp", "python", "java", "javascript"]
    DEFAULT_CODE_LANGUAGE: str = "c"
    SUBMISSION_PREVIEW_CHARS: int = 100


def _validate_settings(settings: Settings) -> None:
    """Validate critical application settings."""
    if not settings.DATABASE_URL:
        raise ValueError("DATABASE_URL is required")
    if settings.ATTEMPT_TICK_SECONDS <= 0:
        raise ValueError("ATTEMPT_TICK_SECONDS must be positive")
    if settings.DEFAULT_CODE_LANGUAGE not in settings.CODE_LANGUAGES:
        raise ValueError("DEFAULT_CODE_LANGUAGE must be one of CODE_LANGUAGES")

    # Environment-specific validations
    if settings.ENVIRONMENT == "production" and settings.DEBUG:
        print("WARNING: DEBUG is enabled in production. Consider setting DEBUG=False.")
    # Never ship the development signing keys
    if settings.ENVIRONMENT == "production" and (
        settings.JWT_SECRET.startswith(_DEV_SECRET)
        or settings.JWT_REFRESH_SECRET.startswith(_DEV_SECRET)
    ):
        raise ValueError("JWT_SECRET and JWT_REFRESH_SECRET must be set in production")


# Initialize settings with error handling
try:
    settings = Settings()
    _validate_settings(settings)
except Exception as e:
    print(f"Error initializing settings: {e}")
    raise
