"""Sanity content lake store over the HTTP API."""

import json
import logging
from typing import Any, Optional

from treelingo.config import TreeLingoConfig
from treelingo.exceptions import APIError, ConfigurationError
from treelingo.store.base import DocumentStore, TranslationLink
from treelingo.utils.http import HTTPClient

DOCUMENT_QUERY = "*[_id == $id][0]"

TRANSLATIONS_QUERY = """
*[_type == "translation.metadata" && references($id)].translations[].value->{
  _id,
  language
}
"""


class SanityStore(DocumentStore):
    """Reads with GROQ queries and writes with ``set`` patch mutations."""

    def __init__(self, config: TreeLingoConfig):
        """
        Initialize store.

        Args:
            config: Application configuration

        Raises:
            ConfigurationError: If project id or token is missing
        """
        if not config.sanity_project_id:
            raise ConfigurationError("Sanity project id is required (TREELINGO_SANITY_PROJECT_ID)")
        if not config.sanity_token:
            raise ConfigurationError("Sanity API token is required (TREELINGO_SANITY_TOKEN)")

        self.config = config
        self.logger = logging.getLogger("treelingo.store.sanity")
        self.base_url = (
            f"https://{config.sanity_project_id}.api.sanity.io/{config.sanity_api_version}/data"
        )
        self.http_client = HTTPClient(
            timeout=config.http_timeout,
            max_retries=config.http_max_retries,
            headers={"Authorization": f"Bearer {config.sanity_token}"},
        )

    async def query(self, groq: str, params: Optional[dict[str, Any]] = None) -> Any:
        """
        Run a GROQ query.

        Args:
            groq: Query text
            params: Query parameters, JSON-encoded into ``$name`` arguments

        Returns:
            The ``result`` member of the response
        """
        query_params = {"query": groq}
        for name, value in (params or {}).items():
            query_params[f"${name}"] = json.dumps(value)

        response = await self.http_client.get(
            f"{self.base_url}/query/{self.config.sanity_dataset}",
            params=query_params,
        )
        try:
            return response.json()["result"]
        except (KeyError, ValueError) as e:
            raise APIError(f"Unexpected Sanity query response: {e}") from e

    async def fetch_by_id(self, doc_id: str) -> Optional[dict[str, Any]]:
        return await self.query(DOCUMENT_QUERY, {"id": doc_id})

    async def find_translations(self, doc_id: str) -> list[TranslationLink]:
        rows = await self.query(TRANSLATIONS_QUERY, {"id": doc_id}) or []
        return [
            TranslationLink(id=row["_id"], language=row.get("language"))
            for row in rows
            if isinstance(row, dict) and row.get("_id")
        ]

    async def patch(self, doc_id: str, fields: dict[str, Any]) -> None:
        await self.http_client.post(
            f"{self.base_url}/mutate/{self.config.sanity_dataset}",
            json={"mutations": [{"patch": {"id": doc_id, "set": fields}}]},
        )
        self.logger.info(f"Patched {doc_id} ({len(fields)} fields)")
