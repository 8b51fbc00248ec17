"""Application configuration."""
from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from .env and environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str = ""
    ai_timeout: float = 120.0
    ai_temperature: float = 0.2
    database_url: str = Field(
        default="sqlite:///./modelflow.db",
        validation_alias=AliasChoices("DATABASE_URL", "MODELFLOW_DATABASE_URL"),
    )
    renderer_backend: str = "kroki"  # kroki | docker
    kroki_url: str = "https://kroki.io"
    mermaid_renderer_image: str = "minlag/mermaid-cli:latest"
    render_timeout: float = 30.0
    output_dir: str = "outputs"
    min_description_length: int = 10
    min_sql_source_length: int = 10
    log_level: str = "INFO"


settings = Settings()
