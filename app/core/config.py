"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "juniorhub"

    # JWT Auth - access and refresh tokens use separate secrets
    jwt_secret_key: str = "juniorhub_secret_key_change_in_production"
    jwt_refresh_secret_key: str = "juniorhub_refresh_secret_key_change_in_production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    refresh_token_expire_days: int = 7

    # Frontend URL for CORS
    client_url: str = "http://localhost:4200"

    # Groq AI (OpenAI-compatible)
    groq_api_key: str = ""
    groq_base_url: str = "https://api.groq.com/openai/v1"
    groq_model: str = "mixtral-8x7b-32768"
    groq_temperature: float = 0.7
    groq_max_tokens: int = 1000

    # Google sign-in
    google_userinfo_url: str = "https://www.googleapis.com/oauth2/v3/userinfo"

    # Uploads
    upload_dir: str = "uploads"
    max_image_size_mb: int = 5

    # Business rules
    # When True, accepting one application stops the project taking new ones
    close_project_on_accept: bool = False

    # App
    log_level: str = "INFO"
    debug: bool = True

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
