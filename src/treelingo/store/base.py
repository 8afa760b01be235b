"""Document store capability."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class TranslationLink:
    """One language version of a document."""

    id: str
    language: Optional[str]


class DocumentStore(ABC):
    """Fetches and persists documents and knows their language versions."""

    @abstractmethod
    async def fetch_by_id(self, doc_id: str) -> Optional[dict[str, Any]]:
        """Return the document with ``doc_id``, or None if it does not exist."""

    @abstractmethod
    async def patch(self, doc_id: str, fields: dict[str, Any]) -> None:
        """Set ``fields`` on the document ``doc_id``."""

    @abstractmethod
    async def find_translations(self, doc_id: str) -> list[TranslationLink]:
        """Return every language version linked to ``doc_id`` (including itself when linked)."""
