"""Provider contract and shared HTTP plumbing for mapping providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

import httpx

from ...config import settings
from ...errors import ProviderError, ProviderResponseError
from ...models.domain import AddressResult, GeoPoint, PlaceSuggestion, ProviderName


class GeocodingProvider(ABC):
    """Contract every mapping provider implements."""

    name: ProviderName

    @abstractmethod
    async def forward_geocode(self, query: str) -> AddressResult:
        raise NotImplementedError

    @abstractmethod
    async def reverse_geocode(self, point: GeoPoint) -> AddressResult:
        raise NotImplementedError

    @abstractmethod
    async def suggest(self, text: str, *, limit: int | None = None) -> list[PlaceSuggestion]:
        raise NotImplementedError


class HttpProviderClient:
    """Issues JSON GET requests and converts transport failures into ProviderError."""

    name: ProviderName

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float | None = None,
        headers: Mapping[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self.headers = dict(headers or {})
        # An injected client is shared and owned by the caller.
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 5.0)),
            headers=self.headers,
        )

    async def _get_json(self, path: str, params: Mapping[str, Any]) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        client = self._client or self._get_client()
        try:
            response = await client.get(url, params=dict(params), headers=self.headers)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as exc:
            raise ProviderError(self.name.value, f"request to {path} timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise ProviderResponseError(
                self.name.value, f"{path} returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(self.name.value, f"request to {path} failed: {exc}") from exc
        except ValueError as exc:
            raise ProviderResponseError(self.name.value, f"{path} returned invalid JSON") from exc
        finally:
            if self._client is None:
                await client.aclose()
