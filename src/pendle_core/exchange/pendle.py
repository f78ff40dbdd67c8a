"""Pendle REST API client.

Used as an independent source of the active market list, to cross-check
on-chain discovery. Two endpoints:

- ``/v1/{chain}/markets/active``       -> ``{"markets": [...]}``
- ``/v2/{chain}/markets/{address}/data`` -> per-market analytics dict

Market addresses in API payloads may carry a ``"<chainId>-"`` prefix.
"""

from __future__ import annotations

from typing import Any

import httpx
from web3 import Web3

from pendle_core.errors import EndpointError
from pendle_core.models import ApiMarket


class PendleApiClient:
    """Async client for the Pendle core API."""

    def __init__(
        self,
        base_url: str = "https://api-v2.pendle.finance/core",
        chain_id: int = 1,
        timeout_s: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.chain_id = chain_id
        self._timeout_s = timeout_s
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport)
        return self._http

    async def close(self) -> None:
        if self._http and not self._http.is_closed:
            await self._http.aclose()

    async def _get(self, path: str) -> Any:
        http = await self._get_http()
        url = f"{self.base_url}{path}"
        try:
            resp = await http.get(url)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            raise EndpointError(
                "API request failed",
                url=url,
                status=exc.response.status_code,
                body=exc.response.text[:500],
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise EndpointError("API request failed", url=url, error=str(exc)) from exc

    async def get_active_markets_raw(self) -> dict[str, Any]:
        """The active-markets document as returned by the API."""
        body = await self._get(f"/v1/{self.chain_id}/markets/active")
        if not isinstance(body, dict) or not isinstance(body.get("markets"), list):
            raise EndpointError("unexpected active markets payload", chain_id=self.chain_id)
        return body

    async def get_active_markets(self) -> list[ApiMarket]:
        body = await self.get_active_markets_raw()
        return [ApiMarket.model_validate(m) for m in body["markets"] if isinstance(m, dict)]

    async def get_market_data(self, address: str) -> dict[str, Any]:
        """Analytics for one market (liquidity, implied APY, reserves, ...)."""
        body = await self._get(f"/v2/{self.chain_id}/markets/{address}/data")
        if not isinstance(body, dict):
            raise EndpointError("unexpected market data payload", market=address)
        return {"address": address, **body}

    @staticmethod
    def normalize_address(raw: str) -> str:
        """Strip a ``"<chainId>-"`` prefix and return the checksummed address."""
        address = raw.strip()
        if "-" in address:
            address = address.split("-", 1)[1]
        return Web3.to_checksum_address(address.lower())
