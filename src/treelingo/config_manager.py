"""Configuration management utilities."""

import os
from enum import Enum
from typing import Any

from treelingo.config import TreeLingoConfig

ENV_PREFIX = "TREELINGO_"
SECRET_MARKERS = ("api_key", "token")


class ConfigSource(Enum):
    """Configuration source."""

    ENVIRONMENT = "env"
    DEFAULT = "default"
    NOT_SET = "not set"


class ConfigItem:
    """Configuration item with metadata."""

    def __init__(
        self,
        key: str,
        value: Any,
        source: ConfigSource,
        category: str = "",
        description: str = "",
        required: bool = False,
    ):
        self.key = key
        self.value = value
        self.source = source
        self.category = category
        self.description = description
        self.required = required

    @property
    def is_secret(self) -> bool:
        return any(marker in self.key.lower() for marker in SECRET_MARKERS)

    def display_value(self) -> str:
        """Get display value with masking for sensitive info."""
        if self.value is None or self.value == "" or self.value == []:
            return "[NOT SET]"

        if self.is_secret and isinstance(self.value, str):
            if len(self.value) > 9:
                # Show first 5 and last 4 characters
                return f"{self.value[:5]}***{self.value[-4:]}"
            return "****"

        return str(self.value)

    def source_display(self) -> str:
        """Get source display string."""
        if self.source == ConfigSource.ENVIRONMENT:
            return f"({self.source.value}: {ENV_PREFIX}{self.key.upper()})"
        if self.source == ConfigSource.DEFAULT:
            return f"({self.source.value})"
        return ""

    def status_display(self) -> str:
        """Get status indicator."""
        if self.value is None or self.value == "" or self.value == []:
            if self.required:
                return "[MISSING]"
            return "[OPTIONAL]"
        return "[SET]"


# category -> (key, description, required)
CONFIG_LAYOUT: dict[str, list[tuple[str, str, bool]]] = {
    "Provider Configuration": [
        ("provider", "Translation provider (deepl, openai)", False),
        ("deepl_api_key", "DeepL API key", False),
        ("deepl_base_url", "DeepL API base URL", False),
        ("openai_api_key", "OpenAI/LLM API key", False),
        ("openai_base_url", "OpenAI/LLM API base URL", False),
        ("openai_model", "LLM model name to use", False),
    ],
    "Store Configuration": [
        ("sanity_project_id", "Sanity project id", False),
        ("sanity_dataset", "Sanity dataset", False),
        ("sanity_api_version", "Sanity API version", False),
        ("sanity_token", "Sanity API token", False),
    ],
    "Engine Configuration": [
        ("batch_size", "Texts per provider request (1-50)", False),
        ("reference_concurrency", "Reference lookups in flight at once (1-20)", False),
        ("custom_field_keys", "Extra translatable field keys (JSON list)", False),
        ("exclude_field_keys", "Field keys never translated (JSON list)", False),
        ("custom_array_field_keys", "Extra whole-array field keys (JSON list)", False),
        ("exclude_array_field_keys", "Array field keys never translated (JSON list)", False),
        ("custom_media_field_keys", "Extra media field keys copied by sync-media (JSON list)", False),
    ],
    "HTTP Configuration": [
        ("http_timeout", "HTTP request timeout (seconds)", False),
        ("http_max_retries", "Maximum HTTP retry attempts", False),
    ],
    "Logging Configuration": [
        ("log_level", "Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)", False),
        ("log_file", "Log file path (optional)", False),
        ("log_json", "Write the log file as JSON lines", False),
    ],
}


def get_config_items() -> dict[str, list[ConfigItem]]:
    """
    Get all configuration items grouped by category.

    The credential of the selected provider is marked as required.

    Returns:
        Dictionary mapping category to list of ConfigItem
    """
    config = TreeLingoConfig()
    provider_key = f"{config.provider}_api_key"

    items: dict[str, list[ConfigItem]] = {}
    for category, entries in CONFIG_LAYOUT.items():
        items[category] = [
            ConfigItem(
                key,
                getattr(config, key),
                _get_source(key),
                category=category.split()[0],
                description=description,
                required=required or key == provider_key,
            )
            for key, description, required in entries
        ]
    return items


def _get_source(key: str) -> ConfigSource:
    """
    Determine configuration source.

    Args:
        key: Setting name (without prefix)

    Returns:
        ConfigSource enum value
    """
    if os.getenv(f"{ENV_PREFIX}{key.upper()}"):
        return ConfigSource.ENVIRONMENT
    if TreeLingoConfig.model_fields[key].get_default(call_default_factory=True) is not None:
        return ConfigSource.DEFAULT
    return ConfigSource.NOT_SET


def validate_config() -> tuple[bool, list[str], list[str]]:
    """
    Validate configuration.

    Returns:
        (is_valid, warnings, errors)
    """
    from pydantic import ValidationError
    from pydantic_settings import SettingsConfigDict

    warnings = []
    errors = []

    # Validate only the current runtime environment, not the .env file
    class _ValidationConfig(TreeLingoConfig):
        model_config = SettingsConfigDict(
            env_prefix=ENV_PREFIX,
            env_file=None,
            env_file_encoding="utf-8",
            case_sensitive=False,
        )

    try:
        config = _ValidationConfig()
    except ValidationError as e:
        for error in e.errors():
            field = error.get("loc", ["unknown"])[0]
            msg = error.get("msg", "validation error")
            errors.append(f"{field}: {msg}")
        return False, warnings, errors

    if config.provider == "deepl" and not config.deepl_api_key:
        errors.append(
            "deepl_api_key is required for the deepl provider. "
            f"Set it with: export {ENV_PREFIX}DEEPL_API_KEY=your_key"
        )
    if config.provider == "openai" and not config.openai_api_key:
        errors.append(
            "openai_api_key is required for the openai provider. "
            f"Set it with: export {ENV_PREFIX}OPENAI_API_KEY=your_key"
        )

    if not config.sanity_project_id:
        warnings.append(
            "sanity_project_id is not set. Store commands need --store-file. "
            f"Set it with: export {ENV_PREFIX}SANITY_PROJECT_ID=your_project"
        )
    if not config.sanity_token:
        warnings.append(
            "sanity_token is not set. Store commands need --store-file. "
            f"Set it with: export {ENV_PREFIX}SANITY_TOKEN=your_token"
        )

    if config.http_max_retries < 1:
        errors.append(f"http_max_retries must be at least 1, got {config.http_max_retries}")

    is_valid = len(errors) == 0

    return is_valid, warnings, errors
