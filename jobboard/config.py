from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Portal settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    # Job board REST backend
    api_base_url: str = "http://localhost:5000/api"
    api_timeout_seconds: float = 30.0  # applies to every call, uploads included

    # Local persistent storage (session store)
    database_url: str = "sqlite+aiosqlite:///./jobboard_portal.db"
    session_cookie_name: str = "portal_id"

    # Application form
    cv_max_size_mb: int = 5
    cover_letter_min_length: int = 100

    # Boards
    cover_letter_preview_length: int = 150
    highlight_seconds: int = 3

    # App
    debug: bool = False
    allowed_origins: Optional[str] = None


settings = Settings()
