"""Provider selection from configuration."""

from typing import Optional

from treelingo.config import TreeLingoConfig
from treelingo.exceptions import ConfigurationError
from treelingo.providers.base import TranslationProvider
from treelingo.providers.deepl import DeepLProvider
from treelingo.providers.llm import LLMProvider


def create_provider(config: TreeLingoConfig, name: Optional[str] = None) -> TranslationProvider:
    """
    Build the configured translation provider.

    Args:
        config: Application configuration
        name: Provider name overriding ``config.provider``

    Raises:
        ConfigurationError: For an unknown provider or missing credentials
    """
    provider = (name or config.provider).lower()
    if provider == "deepl":
        return DeepLProvider(config)
    if provider == "openai":
        return LLMProvider(config)
    raise ConfigurationError(f"Unknown translation provider: {provider}")
