"""
Record Source - fetches creature records and sprites from the remote API.

Every call is a single HTTP request. Non-success responses raise
UpstreamError; nothing is retried.
"""

from typing import Any, Optional

import httpx

from pokeguess.config.logging import get_logger
from pokeguess.config.settings import settings
from pokeguess.errors import UpstreamError
from pokeguess.models.content import SPRITE_FILENAME, SpriteImage
from pokeguess.models.records import PokemonRecord

logger = get_logger("pokeguess.source")

RECORD_PATH = "/image/pokemoninfo"
SPRITE_PATH = "/image/pokemonimage"


class RecordSource:
    """
    Async client for the record/image API.

    The API key is passed at construction; a pre-built httpx client can be
    injected (tests use one backed by ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.api_key
        self.api_url = (api_url or settings.api_url).rstrip("/")
        self.timeout = timeout or settings.request_timeout
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "RecordSource":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0))
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the underlying client if we created it."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    def sprite_url(self, record_id: int, revealed: bool) -> str:
        """Full sprite URL, including query string."""
        show = "true" if revealed else "false"
        return f"{self.api_url}{SPRITE_PATH}?id={record_id}&show={show}&key={self.api_key}"

    async def _get(self, path: str, params: dict[str, Any]) -> httpx.Response:
        client = self._ensure_client()
        params = {**params, "key": self.api_key}
        try:
            response = await client.get(f"{self.api_url}{path}", params=params)
        except httpx.HTTPError as e:
            logger.error(f"Request to {path} failed: {e}")
            raise UpstreamError(str(e) or type(e).__name__) from e

        if response.status_code != 200:
            message = _error_message(response)
            logger.warning(f"{path} returned {response.status_code}: {message}")
            raise UpstreamError(message, status_code=response.status_code)
        return response

    async def fetch_record(self, record_id: int) -> PokemonRecord:
        """
        Fetch one record by id.

        Raises:
            UpstreamError: if the API does not answer 200 or the payload is unusable
        """
        response = await self._get(RECORD_PATH, {"id": record_id})
        try:
            record = PokemonRecord.model_validate(response.json())
        except ValueError as e:
            raise UpstreamError(f"Malformed record for id {record_id}", status_code=response.status_code) from e

        logger.debug(f"Fetched record {record.id} ({record.name})")
        return record

    async def fetch_sprite(self, record_id: int, revealed: bool) -> SpriteImage:
        """
        Download the sprite for a record.

        ``revealed=False`` returns the concealed silhouette used for the question.
        """
        show = "true" if revealed else "false"
        response = await self._get(SPRITE_PATH, {"id": record_id, "show": show})
        return SpriteImage(
            filename=SPRITE_FILENAME,
            data=response.content,
            source_url=self.sprite_url(record_id, revealed),
        )


def _error_message(response: httpx.Response) -> str:
    """Pull ``message`` out of an error body, falling back to the status code."""
    try:
        data = response.json()
    except ValueError:
        return str(response.status_code)
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return str(response.status_code)
