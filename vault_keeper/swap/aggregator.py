"""
Aggregator Quote Client.

Fetches executable swap quotes from a 0x-style ``/swap/.../quote``
endpoint. The quote's ``to`` and ``data`` become the instruction's router
and inner call.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Optional

import aiohttp
from eth_utils import decode_hex, to_checksum_address

from vault_keeper.core.exceptions import SwapBuildError
from vault_keeper.core.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AggregatorQuote:
    """Executable quote returned by the aggregator."""
    to: str
    data: bytes
    buy_amount: int
    sell_amount: int

    def min_out(self, slippage_bps: int) -> int:
        return self.buy_amount * (10_000 - slippage_bps) // 10_000


class AggregatorClient:
    """
    Async client for the aggregator quote API.

    Example:
        >>> async with AggregatorClient(quote_url, api_key="...") as client:
        ...     quote = await client.quote(weth, usdc, 10**18, taker=strategy)
    """

    def __init__(
        self,
        quote_url: str,
        api_key: str = "",
        chain_id: Optional[int] = None,
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._quote_url = quote_url
        self._api_key = api_key
        self._chain_id = chain_id
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    @classmethod
    def from_config(cls, config) -> "AggregatorClient":
        """Build from an ``AggregatorConfig``."""
        return cls(
            quote_url=config.quote_url,
            api_key=config.api_key,
            chain_id=config.chain_id,
            timeout=config.timeout,
        )

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def connect(self) -> None:
        """Create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
            logger.debug(f"Connected to {self._quote_url}")

    async def close(self) -> None:
        """Close HTTP session."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "AggregatorClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # =========================================================================
    # Quotes
    # =========================================================================

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["0x-api-key"] = self._api_key
            headers["0x-version"] = "v2"
        return headers

    async def quote(
        self,
        sell_token: str,
        buy_token: str,
        sell_amount: int,
        taker: str,
    ) -> AggregatorQuote:
        """
        Request an executable quote.

        Raises:
            SwapBuildError: Zero amount, HTTP failure or malformed quote
        """
        if sell_amount <= 0:
            raise SwapBuildError("Aggregator quote needs a positive sell amount")

        await self.connect()
        params: dict[str, Any] = {
            "sellToken": to_checksum_address(sell_token),
            "buyToken": to_checksum_address(buy_token),
            "sellAmount": str(sell_amount),
            "taker": to_checksum_address(taker),
        }
        if self._chain_id is not None:
            params["chainId"] = str(self._chain_id)

        logger.debug(f"Quote request: {params['sellAmount']} {params['sellToken']} -> {params['buyToken']}")
        try:
            async with self._session.get(self._quote_url, params=params, headers=self._headers()) as resp:
                if resp.status >= 400:
                    text = await resp.text()
                    raise SwapBuildError(
                        f"Aggregator quote failed: HTTP {resp.status}",
                        details={"body": text[:500]},
                    )
                payload = await resp.json()
        except aiohttp.ClientError as e:
            raise SwapBuildError(f"Aggregator request failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise SwapBuildError(
                f"Aggregator request timed out after {self._timeout.total}s"
            ) from e

        return self._parse_quote(payload, sell_amount)

    @staticmethod
    def _parse_quote(payload: dict[str, Any], sell_amount: int) -> AggregatorQuote:
        # v2 responses nest the call under "transaction"
        tx = payload.get("transaction") or payload
        try:
            to = to_checksum_address(tx["to"])
            data = decode_hex(tx["data"])
            buy_amount = int(payload["buyAmount"])
        except (KeyError, TypeError, ValueError) as e:
            raise SwapBuildError(f"Malformed aggregator quote: {e}") from e

        if buy_amount <= 0:
            raise SwapBuildError("Aggregator quote has zero buyAmount")

        return AggregatorQuote(
            to=to,
            data=data,
            buy_amount=buy_amount,
            sell_amount=int(payload.get("sellAmount", sell_amount)),
        )
