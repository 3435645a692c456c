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
        populate_by_name=True,
    )

    brand_name: str = 'COMPA AI'
    log_level: str = 'INFO'

    data_dir: Path = Field(default=Path('./data'))

    # Report-content provider (REST backend)
    report_api_base_url: str = Field(
        default='http://localhost:5000/api',
        validation_alias=AliasChoices('REPORT_API_BASE_URL', 'API_BASE', 'API_BASE_URL'),
    )
    report_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices('REPORT_API_KEY', 'API_KEY'),
    )
    report_endpoint_template: str = '/generate-report/{report_type_id}'
    report_fetch_timeout_seconds: int = 300

    # Summarization provider. Falls back to an OpenAI-compatible model when
    # no summary base URL is configured.
    summary_api_base_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices('SUMMARY_API_BASE_URL', 'SUMMARY_BASE_URL'),
    )
    summary_endpoint: str = '/generate-summary-report'
    summary_timeout_seconds: int = 600

    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices('OPENAI_API_KEY', 'LLM_API_KEY'),
    )
    openai_base_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices('OPENAI_BASE_URL', 'LLM_BASE_URL'),
    )
    summary_model: str = 'gpt-4o-mini'
    summary_temperature: float = 0.3
    summary_max_tokens: int = 4096
    max_report_chars_to_model: int = 120000

    # PDF export
    pdf_font_name: str = 'Helvetica'
    pdf_bold_font_name: str = 'Helvetica-Bold'
    pdf_page_margin: float = 40.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    (settings.data_dir / 'exports').mkdir(parents=True, exist_ok=True)
    (settings.data_dir / 'jobs').mkdir(parents=True, exist_ok=True)
    return settings
