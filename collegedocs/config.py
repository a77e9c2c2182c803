from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    app_name: str = 'College Documents Backend'

    data_dir: Path = Field(default=Path('./data'))

    # OpenAI-compatible chat completions gateway
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices('OPENAI_API_KEY', 'API_KEY', 'LLM_API_KEY'),
    )
    openai_base_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices('BASE_URL', 'OPENAI_BASE_URL', 'LLM_BASE_URL'),
    )
    generation_model: str = 'google/gemini-3-flash-preview'
    generation_temperature: float = 0.7
    generation_max_tokens: int = 6000
    generation_timeout_seconds: int = 120

    # Letterhead logo
    logo_fetch_timeout_seconds: float = 10.0

    # Image export
    image_render_timeout_ms: int = 30000

    log_level: str = 'INFO'


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    (settings.data_dir / 'owners').mkdir(parents=True, exist_ok=True)
    return settings
