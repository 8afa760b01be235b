"""Builders and fake providers shared by the tests."""

import asyncio
import re
from typing import Any, Callable, Optional

from treelingo.exceptions import TranslationError
from treelingo.providers.base import MARKUP_MODE_HTML, TranslationProvider

_TEXT_NODE = re.compile(r">([^<]+)<")


def fake_translate(text: str, target_language: str, markup_mode: Optional[str] = None) -> str:
    """Deterministic stand-in for a provider.

    Plain text gets a language suffix; markup gets its text nodes upper-cased
    so tags and attributes pass through untouched.
    """
    if markup_mode == MARKUP_MODE_HTML:
        return _TEXT_NODE.sub(lambda m: f">{m.group(1).upper()}<", text)
    return f"{text} [{target_language}]"


class FakeProvider(TranslationProvider):
    """Provider recording every call, optionally failing or slow."""

    name = "fake"

    def __init__(
        self,
        translate: Callable[[str, str, Optional[str]], str] = fake_translate,
        fail_when: Optional[Callable[[list[str]], bool]] = None,
        delay: float = 0,
    ):
        self.translate = translate
        self.fail_when = fail_when
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    async def translate_batch(
        self,
        texts: list[str],
        target_language: str,
        context: Optional[str] = None,
        markup_mode: Optional[str] = None,
    ) -> list[str]:
        self.calls.append(
            {
                "texts": list(texts),
                "target_language": target_language,
                "context": context,
                "markup_mode": markup_mode,
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_when and self.fail_when(texts):
            raise TranslationError("provider unavailable")
        return [self.translate(text, target_language, markup_mode) for text in texts]


class IdentityProvider(TranslationProvider):
    """Provider returning its input unchanged."""

    name = "identity"

    async def translate_batch(self, texts, target_language, context=None, markup_mode=None):
        return list(texts)


def span(key: str, text: str, marks: Optional[list[str]] = None) -> dict[str, Any]:
    return {"_type": "span", "_key": key, "text": text, "marks": list(marks or [])}


def block(
    key: str,
    children: list[dict[str, Any]],
    style: str = "normal",
    mark_defs: Optional[list[dict[str, Any]]] = None,
    **extra: Any,
) -> dict[str, Any]:
    return {
        "_type": "block",
        "_key": key,
        "style": style,
        "markDefs": list(mark_defs or []),
        "children": children,
        **extra,
    }

