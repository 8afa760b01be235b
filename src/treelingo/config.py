"""Configuration management for TreeLingo."""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from treelingo.core.fields import FieldKey

SUPPORTED_PROVIDERS = ("deepl", "openai")


class TreeLingoConfig(BaseSettings):
    """Application configuration with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="TREELINGO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Translation provider
    provider: str = Field(default="deepl", description="Translation provider (deepl, openai)")
    deepl_api_key: Optional[str] = Field(default=None, description="DeepL API key")
    deepl_base_url: str = Field(
        default="https://api-free.deepl.com/v2",
        description="DeepL API base URL",
    )
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI API base URL",
    )
    openai_model: str = Field(default="gpt-4o", description="LLM model for the openai provider")

    # Document store
    sanity_project_id: Optional[str] = Field(default=None, description="Sanity project id")
    sanity_dataset: str = Field(default="production", description="Sanity dataset")
    sanity_api_version: str = Field(default="v2024-01-01", description="Sanity API version")
    sanity_token: Optional[str] = Field(default=None, description="Sanity API token")

    # Engine
    batch_size: int = Field(default=50, description="Texts per provider request")
    reference_concurrency: int = Field(
        default=3,
        description="Reference lookups in flight at once",
    )
    custom_field_keys: list[FieldKey] = Field(default_factory=list)
    exclude_field_keys: list[str] = Field(default_factory=list)
    custom_array_field_keys: list[str] = Field(default_factory=list)
    exclude_array_field_keys: list[str] = Field(default_factory=list)
    custom_media_field_keys: list[str] = Field(default_factory=list)

    # HTTP settings
    http_timeout: int = Field(default=30, description="HTTP timeout in seconds")
    http_max_retries: int = Field(default=3, description="Maximum HTTP retry attempts")

    # Logging settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Log file path")
    log_json: bool = Field(default=False, description="Write the log file as JSON lines")

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        """Validate provider name."""
        v = v.lower()
        if v not in SUPPORTED_PROVIDERS:
            raise ValueError(f"provider must be one of {list(SUPPORTED_PROVIDERS)}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v

    @field_validator("http_timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout values."""
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    @field_validator("batch_size")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        # DeepL accepts at most 50 texts per request
        if v < 1 or v > 50:
            raise ValueError("batch_size must be between 1 and 50")
        return v

    @field_validator("reference_concurrency")
    @classmethod
    def validate_reference_concurrency(cls, v: int) -> int:
        if v < 1 or v > 20:
            raise ValueError("reference_concurrency must be between 1 and 20")
        return v


def load_config() -> TreeLingoConfig:
    """Load configuration from environment and .env file."""
    return TreeLingoConfig()
