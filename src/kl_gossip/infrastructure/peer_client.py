"""HTTP client for node-to-node calls.

Peers expose the same /api/v1 routes as any node; responses are wrapped in
the ApiResponse envelope, so the useful payload lives under `data`.

Every transport-level failure (connect error, timeout, non-2xx status,
unparseable body) is surfaced as UnavailablePeerError so callers only have
one exception type to catch.
"""

import logging
from typing import Any

import httpx

from src.kl_common.errors import UnavailablePeerError

logger = logging.getLogger(__name__)

_API_PREFIX = "/api/v1"


class HttpPeerClient:
    def __init__(
        self,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self, method: str, peer: str, path: str, json: Any = None
    ) -> dict[str, Any]:
        url = f"{peer}{_API_PREFIX}{path}"
        try:
            response = await self._client.request(method, url, json=json)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise UnavailablePeerError(peer, f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise UnavailablePeerError(peer, "response is not valid JSON") from e
        if not isinstance(body, dict):
            raise UnavailablePeerError(peer, "response is not a JSON object")
        return body

    async def push_block(self, peer: str, block: dict[str, Any]) -> None:
        """POST a wire block to the peer's receive endpoint."""
        await self._request("POST", peer, "/blocks/receive", json=block)

    async def fetch_chain(self, peer: str) -> list[dict[str, Any]]:
        body = await self._request("GET", peer, "/sync")
        data = body.get("data")
        chain = data.get("chain") if isinstance(data, dict) else None
        if not isinstance(chain, list):
            raise UnavailablePeerError(peer, "sync response has no chain list")
        return chain

    async def announce(self, peer: str, self_url: str) -> None:
        """Ask `peer` to register this node's URL."""
        await self._request("POST", peer, "/nodes/register", json={"address": self_url})
