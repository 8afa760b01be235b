"""Tests for document stores."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from treelingo.config import TreeLingoConfig
from treelingo.exceptions import APIError, ConfigurationError, DocumentNotFoundError, ValidationError
from treelingo.store.base import TranslationLink
from treelingo.store.memory import MemoryStore, dump_tree, load_tree
from treelingo.store.sanity import DOCUMENT_QUERY, SanityStore


def _response(payload) -> MagicMock:
    response = MagicMock()
    response.json.return_value = payload
    return response


class TestTreeFiles:
    """Tests for loading and dumping document files."""

    def test_json_and_yaml_round_trip(self, tmp_path, sample_document) -> None:
        """Test documents survive a write and read in both formats."""
        for name in ("doc.json", "doc.yaml"):
            path = tmp_path / name
            dump_tree(sample_document, path)
            assert load_tree(path) == sample_document

    def test_invalid_json_raises_validation_error(self, tmp_path) -> None:
        """Test unparsable files are reported as validation errors."""
        # Arrange
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        # Act & Assert
        with pytest.raises(ValidationError, match="Could not parse"):
            load_tree(path)


class TestMemoryStore:
    """Tests for MemoryStore."""

    @pytest.mark.asyncio
    async def test_fetch_returns_copy(self, memory_store) -> None:
        """Test fetched documents can be changed without touching the store."""
        # Act
        document = await memory_store.fetch_by_id("page-en")
        document["title"] = "Changed"

        # Assert
        assert memory_store.documents["page-en"]["title"] == "Welcome"

    @pytest.mark.asyncio
    async def test_fetch_unknown_returns_none(self, memory_store) -> None:
        """Test unknown ids return None."""
        assert await memory_store.fetch_by_id("nope") is None

    @pytest.mark.asyncio
    async def test_patch_updates_fields(self, memory_store) -> None:
        """Test patch sets the given fields only."""
        # Act
        await memory_store.patch("page-de", {"title": "Willkommen"})

        # Assert
        assert memory_store.documents["page-de"]["title"] == "Willkommen"
        assert memory_store.documents["page-de"]["language"] == "de"

    @pytest.mark.asyncio
    async def test_patch_unknown_raises(self, memory_store) -> None:
        """Test patching a missing document raises DocumentNotFoundError."""
        with pytest.raises(DocumentNotFoundError):
            await memory_store.patch("nope", {})

    @pytest.mark.asyncio
    async def test_find_translations_uses_metadata(self, memory_store) -> None:
        """Test language versions come from translation metadata documents."""
        # Act
        links = await memory_store.find_translations("category-en")

        # Assert
        assert links == [TranslationLink("category-en", "en"), TranslationLink("category-de", "de")]

    def test_add_requires_id(self) -> None:
        """Test documents without an id are rejected."""
        with pytest.raises(ValidationError):
            MemoryStore([{"title": "No id"}])

    def test_from_file_and_save(self, tmp_path, documents) -> None:
        """Test a store loads from a file and writes changes back."""
        # Arrange
        path = tmp_path / "store.json"
        path.write_text(json.dumps({"documents": documents}), encoding="utf-8")

        # Act
        store = MemoryStore.from_file(path)
        store.documents["page-de"]["title"] = "Willkommen"
        store.save()

        # Assert
        reloaded = MemoryStore.from_file(path)
        assert reloaded.documents["page-de"]["title"] == "Willkommen"

    def test_from_file_rejects_non_list(self, tmp_path) -> None:
        """Test files without a document list are rejected."""
        path = tmp_path / "store.yaml"
        path.write_text("title: nope\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            MemoryStore.from_file(path)


class TestSanityStore:
    """Tests for SanityStore."""

    @pytest.fixture
    def config(self) -> TreeLingoConfig:
        return TreeLingoConfig(sanity_project_id="abc123", sanity_token="tok", _env_file=None)

    def test_init_requires_project_and_token(self) -> None:
        """Test missing settings raise ConfigurationError."""
        with pytest.raises(ConfigurationError, match="project id"):
            SanityStore(TreeLingoConfig(sanity_token="tok", _env_file=None))
        with pytest.raises(ConfigurationError, match="token"):
            SanityStore(TreeLingoConfig(sanity_project_id="abc123", _env_file=None))

    @pytest.mark.asyncio
    async def test_fetch_by_id_queries_with_params(self, config) -> None:
        """Test documents are fetched by GROQ with JSON-encoded parameters."""
        # Arrange
        store = SanityStore(config)
        mock_get = AsyncMock(return_value=_response({"result": {"_id": "page-en"}}))

        # Act
        with patch.object(store.http_client, "get", new=mock_get):
            document = await store.fetch_by_id("page-en")

        # Assert
        assert document == {"_id": "page-en"}
        url = mock_get.call_args.args[0]
        params = mock_get.call_args.kwargs["params"]
        assert url == "https://abc123.api.sanity.io/v2024-01-01/data/query/production"
        assert params == {"query": DOCUMENT_QUERY, "$id": '"page-en"'}

    @pytest.mark.asyncio
    async def test_find_translations_maps_rows(self, config) -> None:
        """Test translation rows become links."""
        # Arrange
        store = SanityStore(config)
        rows = [{"_id": "a", "language": "en"}, {"_id": "b", "language": "de"}, None]

        # Act
        with patch.object(store.http_client, "get", new=AsyncMock(return_value=_response({"result": rows}))):
            links = await store.find_translations("a")

        # Assert
        assert links == [TranslationLink("a", "en"), TranslationLink("b", "de")]

    @pytest.mark.asyncio
    async def test_patch_posts_set_mutation(self, config) -> None:
        """Test patches are sent as set mutations."""
        # Arrange
        store = SanityStore(config)
        mock_post = AsyncMock(return_value=_response({}))

        # Act
        with patch.object(store.http_client, "post", new=mock_post):
            await store.patch("page-de", {"title": "Willkommen"})

        # Assert
        assert mock_post.call_args.args[0].endswith("/data/mutate/production")
        assert mock_post.call_args.kwargs["json"] == {
            "mutations": [{"patch": {"id": "page-de", "set": {"title": "Willkommen"}}}]
        }

    @pytest.mark.asyncio
    async def test_malformed_query_response_raises_api_error(self, config) -> None:
        """Test responses without a result raise APIError."""
        store = SanityStore(config)
        with patch.object(store.http_client, "get", new=AsyncMock(return_value=_response({}))):
            with pytest.raises(APIError):
                await store.fetch_by_id("x")
