"""Tests configuration and fixtures."""

import copy
from typing import Any

import pytest
from builders import FakeProvider, block, span

from treelingo.store.memory import MemoryStore


@pytest.fixture
def provider() -> FakeProvider:
    """Provider with deterministic translations."""
    return FakeProvider()


@pytest.fixture
def sample_document() -> dict[str, Any]:
    """Page document mixing plain fields, rich text, arrays and references."""
    return {
        "_id": "page-en",
        "_type": "page",
        "language": "en",
        "title": "Welcome",
        "slug": {"_type": "slug", "current": "welcome"},
        "seo": {"_type": "seo", "seoTitle": "Welcome page", "description": "All about us"},
        "keywords": ["hello", "world"],
        "body": [
            block("h1", [span("s1", "Our story")], style="h2"),
            block(
                "p1",
                [span("s2", "Read "), span("s3", "more", ["strong", "lnk"])],
                mark_defs=[{"_type": "link", "_key": "lnk", "href": "https://example.com"}],
            ),
            {"_type": "callout", "_key": "c1", "label": "Note", "tone": "info"},
        ],
        "category": {"_type": "reference", "_ref": "category-en"},
        "form": {"_type": "form", "name": "Contact", "formId": "contact-form"},
        "_translations": [{"title": "Ignored"}],
    }


def _metadata(doc_id: str, *refs: tuple[str, str]) -> dict[str, Any]:
    return {
        "_id": doc_id,
        "_type": "translation.metadata",
        "translations": [
            {"_key": language, "value": {"_type": "reference", "_ref": ref}} for language, ref in refs
        ],
    }


@pytest.fixture
def documents(sample_document) -> list[dict[str, Any]]:
    """English and German pages and categories linked by metadata documents."""
    page_de = copy.deepcopy(sample_document)
    page_de.update({"_id": "page-de", "language": "de"})
    return [
        sample_document,
        page_de,
        {"_id": "category-en", "_type": "category", "language": "en", "name": "News"},
        {"_id": "category-de", "_type": "category", "language": "de", "name": "Neuigkeiten"},
        _metadata("meta-page", ("en", "page-en"), ("de", "page-de")),
        _metadata("meta-category", ("en", "category-en"), ("de", "category-de")),
    ]


@pytest.fixture
def memory_store(documents) -> MemoryStore:
    """In-memory store holding the linked documents."""
    return MemoryStore(documents)
