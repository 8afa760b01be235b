"""In-memory document store, optionally backed by a JSON or YAML file."""

import copy
import json
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml

from treelingo.exceptions import DocumentNotFoundError, ValidationError
from treelingo.store.base import DocumentStore, TranslationLink

METADATA_TYPE = "translation.metadata"


def load_tree(path: Path) -> Any:
    """Load a JSON or YAML file (chosen by suffix)."""
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as e:
        raise ValidationError(f"Could not parse {path}: {e}") from e


def dump_tree(tree: Any, path: Path) -> None:
    """Write a tree as JSON or YAML (chosen by suffix)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() in (".yaml", ".yml"):
        content = yaml.safe_dump(tree, allow_unicode=True, sort_keys=False)
    else:
        content = json.dumps(tree, ensure_ascii=False, indent=2) + "\n"
    path.write_text(content, encoding="utf-8")


class MemoryStore(DocumentStore):
    """Dict-backed store.

    Language versions are linked the way the content lake links them: a
    ``translation.metadata`` document lists references to every version.
    """

    def __init__(self, documents: Optional[Iterable[dict[str, Any]]] = None, path: Optional[Path] = None):
        self.documents: dict[str, dict[str, Any]] = {}
        self.path = path
        for document in documents or ():
            self.add(document)

    @classmethod
    def from_file(cls, path: Path) -> "MemoryStore":
        """
        Load documents from a file holding a list of documents or ``{"documents": [...]}``.

        Raises:
            ValidationError: If the file does not hold documents
        """
        data = load_tree(path)
        if isinstance(data, dict):
            data = data.get("documents")
        if not isinstance(data, list):
            raise ValidationError(f"{path} must contain a list of documents")
        return cls(data, path=path)

    def add(self, document: dict[str, Any]) -> None:
        if not isinstance(document, dict) or not document.get("_id"):
            raise ValidationError("Documents need an _id")
        self.documents[document["_id"]] = document

    def save(self) -> None:
        """Write the documents back to the file they were loaded from."""
        if self.path is not None:
            dump_tree({"documents": list(self.documents.values())}, self.path)

    async def fetch_by_id(self, doc_id: str) -> Optional[dict[str, Any]]:
        document = self.documents.get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    async def patch(self, doc_id: str, fields: dict[str, Any]) -> None:
        if doc_id not in self.documents:
            raise DocumentNotFoundError(doc_id)
        self.documents[doc_id].update(copy.deepcopy(fields))

    async def find_translations(self, doc_id: str) -> list[TranslationLink]:
        links: list[TranslationLink] = []
        for metadata in self.documents.values():
            if metadata.get("_type") != METADATA_TYPE:
                continue
            ids = [
                (entry.get("value") or {}).get("_ref")
                for entry in metadata.get("translations") or []
                if isinstance(entry, dict)
            ]
            if doc_id not in ids:
                continue
            for linked_id in ids:
                linked = self.documents.get(linked_id) if linked_id else None
                if linked is not None:
                    links.append(TranslationLink(id=linked_id, language=linked.get("language")))
        return links
