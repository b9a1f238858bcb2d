"""Application configuration loaded from environment variables and .env file."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables first,
    then from a .env file in the project root as fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    DATABASE_URL: str = "sqlite:///./tribesim.db"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Persistence backend: "sql" (DATABASE_URL) or "memory"
    SAVE_BACKEND: str = "sql"

    # Seed data (npcs.json, events.json)
    DATA_DIR: str = "src/data"

    # Sessions
    DEFAULT_DIFFICULTY: str = "Normal"
    MAX_SESSIONS: int = 100


settings = Settings()
