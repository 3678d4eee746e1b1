"""
Application configuration, read from environment variables and .env.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── App ──────────────────────────────────────────────
    APP_NAME: str = "Chat Widget Bot"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: str = "*"

    # ── Training corpus ──────────────────────────────────
    CORPUS_PATH: str = "./data/training.json"
    DEFAULT_INSTRUCTIONS: str = "You are a helpful customer service assistant."

    # ── Sessions / history ───────────────────────────────
    MAX_STORED_MESSAGES: int = 50
    MAX_SESSIONS: int = 1000

    # ── Completion service (OpenAI) ──────────────────────
    COMPLETION_ENABLED: bool = False
    OPENAI_API_KEY: str = "sk-your-api-key-here"
    OPENAI_BASE_URL: str = ""
    OPENAI_MODEL: str = "gpt-3.5-turbo"
    COMPLETION_MAX_TOKENS: int = 300
    COMPLETION_TEMPERATURE: float = 0.7
    REQUEST_TIMEOUT_MS: int = 15000

    # ── Per-session rate limiting ────────────────────────
    MAX_MESSAGES_PER_WINDOW: int = 10
    RATE_LIMIT_WINDOW_MS: int = 60000
    RATE_LIMIT_COOLDOWN_MS: int = 30000

    # ── Per-IP rate limiting (HTTP) ──────────────────────
    RATE_LIMIT_PER_MINUTE: int = 60

    # ── Response shaping ─────────────────────────────────
    RESPONSE_MAX_LENGTH: int = 500
    THINKING_TIME_MIN: int = 800
    THINKING_TIME_MAX: int = 2500
    WORDS_PER_MS: float = 0.05
    SIMULATE_THINKING: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
