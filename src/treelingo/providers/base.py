"""Translation provider capability."""

from abc import ABC, abstractmethod
from typing import Optional

MARKUP_MODE_HTML = "html"


class TranslationProvider(ABC):
    """Translates batches of strings (or HTML) into a target language."""

    name: str = "provider"

    @abstractmethod
    async def translate_batch(
        self,
        texts: list[str],
        target_language: str,
        context: Optional[str] = None,
        markup_mode: Optional[str] = None,
    ) -> list[str]:
        """
        Translate texts, preserving order.

        Args:
            texts: Source strings
            target_language: Target language code (e.g. 'de', 'en')
            context: Optional text that helps disambiguate the sources; it is
                not translated itself
            markup_mode: ``"html"`` when the texts are markup whose tags must
                survive translation

        Returns:
            One translation per input text, in input order

        Raises:
            TranslationError: If the provider call fails
        """
