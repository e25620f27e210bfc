"""Application configuration with environment variables."""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite:///./docdot.db"

    # JWT Settings
    SECRET_KEY: str = "your-secret-key-change-this-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours

    # Signed cookie carrying the web session
    SESSION_SECRET_KEY: str = "your-session-secret-change-this-in-production"

    # Application
    APP_NAME: str = "Docdot API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = True
    SEED_SAMPLE_DATA: bool = True

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    # AI tutor (any OpenAI-compatible endpoint, OpenRouter by default)
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: str = "https://openrouter.ai/api/v1"
    OPENAI_MODEL: str = "anthropic/claude-3-opus"
    AI_TIMEOUT_SECONDS: float = 30.0
    AI_MAX_TOKENS: int = 1000

    # Telegram
    TELEGRAM_BOT_TOKEN: Optional[str] = None
    TELEGRAM_BOT_USERNAME: str = "docdotbot"
    TELEGRAM_LINK_HOST: str = "t.me"
    WEB_BASE_URL: str = "http://localhost:8000"
    HANDSHAKE_TTL_MINUTES: int = 10
    # Callbacks without an issued token log in on the Telegram id alone
    # (links built by the bot without a handshake). Set False to require one.
    HANDSHAKE_ACCEPT_UNISSUED: bool = True

    # Quiz
    DEFAULT_QUIZ_LENGTH: int = 10
    DEFAULT_LANDING_PATH: str = "/"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Quiz categories and their subcategories
CATEGORIES: dict[str, list[str]] = {
    "Anatomy": [
        "Head and Neck",
        "Upper Limb",
        "Thorax",
        "Lower Limb",
        "Pelvis and Perineum",
        "Neuroanatomy",
        "Abdomen",
    ],
    "Physiology": [
        "Cell",
        "Nerve and Muscle",
        "Blood",
        "Endocrine",
        "Reproductive",
        "Gastrointestinal Tract",
        "Renal",
        "Cardiovascular System",
        "Respiration",
        "Medical Genetics",
        "Neurophysiology",
    ],
}


# Create global settings instance
settings = Settings()
