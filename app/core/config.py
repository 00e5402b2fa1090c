"""Application configuration via pydantic-settings.

Loads all settings from environment variables with sensible defaults.
A global `settings` singleton is available for import throughout the app.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Supabase
    SUPABASE_URL: str
    SUPABASE_KEY: str

    # Intake shared secret (Apps Script -> POST /api/candidates)
    API_KEY: str = ""

    # Brevo
    BREVO_API_KEY: str = ""
    BREVO_LIST_ID: int = 0
    BREVO_API_URL: str = "https://api.brevo.com/v3"

    # Telegram
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_ADMIN_CHAT_ID: str = ""
    TELEGRAM_API_URL: str = "https://api.telegram.org"

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # CORS
    ALLOWED_ORIGINS: str = "*"

    # Logging
    LOG_LEVEL: str = "INFO"


settings = Settings()  # type: ignore[call-arg]
