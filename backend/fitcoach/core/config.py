"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "FitCoach Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://fitcoach@localhost:5432/fitcoach"

    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "fitcoach"

    scheduler_enabled: bool = True
    # None falls back to the host's local timezone.
    scheduler_timezone: str | None = None
    scheduler_pool_size: int = 10
    scheduler_shutdown_wait: bool = True

    llm_base_url: str = "http://localhost:11434/v1"
    llm_api_key: str = "ollama"
    llm_model: str = "llama3.2"
    llm_temperature: float = 0.7
    llm_timeout_seconds: float = 300.0

    journey_total_days: int = 7
    pdf_output_path: str = "./reports"

    email_provider: str = "noop"
    email_from: str = "no-reply@fitcoach.local"
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True

    whatsapp_enabled: bool = False
    whatsapp_api_url: str = "https://graph.facebook.com/v18.0"
    whatsapp_phone_number_id: str | None = None
    whatsapp_access_token: str | None = None
    whatsapp_default_country_code: str = "91"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
