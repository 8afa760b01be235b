"""DeepL translation provider."""

import logging
from typing import Any, Optional

from treelingo.config import TreeLingoConfig
from treelingo.exceptions import ConfigurationError, TranslationError, TreeLingoException
from treelingo.providers.base import MARKUP_MODE_HTML, TranslationProvider
from treelingo.utils.http import HTTPClient

# DeepL rejects these bare codes as target languages.
TARGET_LANGUAGE_ALIASES = {
    "EN": "EN-US",
    "PT": "PT-PT",
}


def normalize_target_language(language: str) -> str:
    """
    Map a document language code to a DeepL target code.

    Examples:
        >>> normalize_target_language("en")
        'EN-US'
        >>> normalize_target_language("de")
        'DE'
        >>> normalize_target_language("en_gb")
        'EN-GB'
    """
    code = language.strip().replace("_", "-").upper()
    return TARGET_LANGUAGE_ALIASES.get(code, code)


class DeepLProvider(TranslationProvider):
    """Provider backed by the DeepL REST API."""

    name = "deepl"

    def __init__(self, config: TreeLingoConfig):
        """
        Initialize DeepL provider.

        Args:
            config: Application configuration

        Raises:
            ConfigurationError: If the API key is missing
        """
        self.config = config
        self.logger = logging.getLogger("treelingo.providers.deepl")

        if not config.deepl_api_key:
            raise ConfigurationError("DeepL API key is required (TREELINGO_DEEPL_API_KEY)")

        self.http_client = HTTPClient(
            timeout=config.http_timeout,
            max_retries=config.http_max_retries,
            headers={
                "Authorization": f"DeepL-Auth-Key {config.deepl_api_key}",
                "Content-Type": "application/json",
            },
        )

    async def translate_batch(
        self,
        texts: list[str],
        target_language: str,
        context: Optional[str] = None,
        markup_mode: Optional[str] = None,
    ) -> list[str]:
        if not texts:
            return []

        payload: dict[str, Any] = {
            "text": texts,
            "target_lang": normalize_target_language(target_language),
        }
        if context:
            payload["context"] = context
        if markup_mode == MARKUP_MODE_HTML:
            payload["tag_handling"] = "html"

        try:
            response = await self.http_client.post(
                f"{self.config.deepl_base_url.rstrip('/')}/translate",
                json=payload,
            )
            translations = response.json()["translations"]
        except TreeLingoException as e:
            raise TranslationError(f"DeepL request failed: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise TranslationError(f"Unexpected DeepL response: {e}") from e

        self.logger.debug(f"DeepL translated {len(texts)} texts to {payload['target_lang']}")
        return [t["text"] for t in translations]
