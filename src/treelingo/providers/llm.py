"""Translation provider using an OpenAI-compatible chat completions API."""

import logging
from typing import Optional

from treelingo.config import TreeLingoConfig
from treelingo.exceptions import ConfigurationError, TranslationError
from treelingo.providers.base import MARKUP_MODE_HTML, TranslationProvider
from treelingo.utils.http import HTTPClient

SPLIT_MARKER = "\n\n---SPLIT---\n\n"

LANGUAGE_NAMES = {
    "zh": "Chinese",
    "en": "English",
    "ja": "Japanese",
    "ko": "Korean",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
    "it": "Italian",
    "nl": "Dutch",
    "pl": "Polish",
    "pt": "Portuguese",
}


class LLMProvider(TranslationProvider):
    """Provider that prompts a chat model for translations."""

    name = "openai"

    def __init__(self, config: TreeLingoConfig, model: Optional[str] = None):
        """
        Initialize LLM provider.

        Args:
            config: Application configuration
            model: Model name (uses config default if not provided)

        Raises:
            ConfigurationError: If API key is missing
        """
        self.config = config
        self.model = model or config.openai_model
        self.logger = logging.getLogger("treelingo.providers.llm")

        if not config.openai_api_key:
            raise ConfigurationError("OpenAI API key is required (TREELINGO_OPENAI_API_KEY)")

        self.http_client = HTTPClient(
            timeout=config.http_timeout,
            max_retries=config.http_max_retries,
            headers={
                "Authorization": f"Bearer {config.openai_api_key}",
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
        if len(texts) == 1:
            return [await self.translate_text(texts[0], target_language, context, markup_mode)]

        combined = SPLIT_MARKER.join(texts)
        system = (
            "You are a professional translator. Translate the given text accurately while "
            "preserving the ---SPLIT--- markers exactly as they appear."
        )
        translated = await self._complete(system, self._build_prompt(combined, target_language, context, markup_mode))
        parts = translated.split(SPLIT_MARKER)

        if len(parts) != len(texts):
            self.logger.warning(
                f"Translation split mismatch: expected {len(texts)}, got {len(parts)}; "
                "translating one by one"
            )
            return [
                await self.translate_text(text, target_language, context, markup_mode) for text in texts
            ]

        return [part.strip() for part in parts]

    async def translate_text(
        self,
        text: str,
        target_language: str,
        context: Optional[str] = None,
        markup_mode: Optional[str] = None,
    ) -> str:
        """
        Translate a single text.

        Raises:
            TranslationError: If the request fails
        """
        if not text.strip():
            return text
        system = (
            "You are a professional translator. Translate the given text accurately while "
            "preserving formatting and tone. Reply with the translation only."
        )
        return await self._complete(system, self._build_prompt(text, target_language, context, markup_mode))

    async def _complete(self, system: str, prompt: str) -> str:
        try:
            response = await self.http_client.post(
                f"{self.config.openai_base_url.rstrip('/')}/chat/completions",
                json={
                    "model": self.model,
                    "messages": [
                        {"role": "system", "content": system},
                        {"role": "user", "content": prompt},
                    ],
                    "temperature": 0.3,
                },
            )
            data = response.json()
            return data["choices"][0]["message"]["content"].strip()
        except Exception as e:
            raise TranslationError(f"LLM translation failed: {e}") from e

    def _build_prompt(
        self,
        text: str,
        target_language: str,
        context: Optional[str],
        markup_mode: Optional[str],
    ) -> str:
        """
        Build translation prompt.

        Args:
            text: Text to translate
            target_language: Target language code
            context: Optional surrounding text, not to be translated
            markup_mode: ``"html"`` when tags must be kept

        Returns:
            Translation prompt
        """
        base_code = target_language.split("-")[0].split("_")[0].lower()
        language = LANGUAGE_NAMES.get(base_code, target_language)

        lines = [f"Translate the following text to {language}."]
        if markup_mode == MARKUP_MODE_HTML:
            lines.append(
                "The text is HTML: keep every tag and attribute unchanged and translate only the text "
                "between tags."
            )
        if context:
            lines.append(f"For context only (do not translate it), the text is followed by:\n{context}")
        lines.append(f"\n{text}")
        return "\n".join(lines)
