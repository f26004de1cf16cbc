from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import httpx

from errors import ExtractionError, TransportError

logger = logging.getLogger(__name__)


def _http_client(timeout: Optional[float] = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout)


class AgentTransport:
    """HTTP-обертка над одним удаленным сервисом агентов (один base_url)."""

    def __init__(
        self,
        base_url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or _http_client(timeout)

    async def aclose(self) -> None:
        """Закрывает HTTP клиент, если он создан здесь."""
        if self._owns_client:
            await self._client.aclose()

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Один HTTP-вызов; сетевые сбои превращаются в TransportError."""
        url = self.url(path)
        try:
            return await self._client.request(method, url, **kwargs)
        except (httpx.TransportError, httpx.InvalidURL) as exc:
            logger.debug("Transport failure", extra={"url": url})
            raise TransportError(f"{method} {url} failed: {exc}") from exc

    @asynccontextmanager
    async def stream(self, method: str, path: str, **kwargs: Any) -> AsyncIterator[httpx.Response]:
        """Потоковый запрос; используется только базой знаний."""
        url = self.url(path)
        try:
            async with self._client.stream(method, url, **kwargs) as response:
                yield response
        except (httpx.TransportError, httpx.InvalidURL) as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc


def decode_json(response: httpx.Response) -> Any:
    """Разбирает тело ответа как JSON, без предположений о форме."""
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ExtractionError(f"Response body is not valid JSON: {exc}") from exc
