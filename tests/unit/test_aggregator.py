"""
Tests for the aggregator quote client.
"""

import asyncio

import aiohttp
import pytest

from vault_keeper.config.models import AggregatorConfig
from vault_keeper.core.exceptions import SwapBuildError
from vault_keeper.swap import AggregatorClient, AggregatorQuote
from tests.mocks import ASSET, PAIR_TOKEN, STRATEGY_B, address

QUOTE_URL = "https://api.example.org/swap/v1/quote"
SPENDER = address("77")


class FakeResponse:
    def __init__(self, status: int, payload=None, text: str = ""):
        self.status = status
        self._payload = payload
        self._text = text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def json(self):
        return self._payload

    async def text(self):
        return self._text


class FakeSession:
    """Records GET requests and replays one response."""

    def __init__(self, response=None, error: Exception = None):
        self.response = response
        self.error = error
        self.requests: list[dict] = []
        self.closed = False

    def get(self, url, params=None, headers=None):
        self.requests.append({"url": url, "params": params, "headers": headers})
        if self.error is not None:
            raise self.error
        return self.response


def client_for(session, **kwargs) -> AggregatorClient:
    return AggregatorClient(QUOTE_URL, session=session, **kwargs)


class TestQuote:
    """Tests for quote requests."""

    @pytest.mark.asyncio
    async def test_quote_parsed(self):
        session = FakeSession(FakeResponse(200, {
            "to": SPENDER.lower(),
            "data": "0xabcdef",
            "buyAmount": "1000",
            "sellAmount": "200",
        }))

        quote = await client_for(session).quote(ASSET, PAIR_TOKEN, 200, taker=STRATEGY_B)

        assert quote == AggregatorQuote(to=SPENDER, data=b"\xab\xcd\xef", buy_amount=1000, sell_amount=200)
        params = session.requests[0]["params"]
        assert params == {
            "sellToken": ASSET,
            "buyToken": PAIR_TOKEN,
            "sellAmount": "200",
            "taker": STRATEGY_B,
        }

    @pytest.mark.asyncio
    async def test_nested_transaction(self):
        session = FakeSession(FakeResponse(200, {
            "buyAmount": "5",
            "transaction": {"to": SPENDER, "data": "0x01"},
        }))

        quote = await client_for(session).quote(ASSET, PAIR_TOKEN, 9, taker=STRATEGY_B)

        assert quote.to == SPENDER
        assert quote.data == b"\x01"
        assert quote.sell_amount == 9

    @pytest.mark.asyncio
    async def test_api_key_and_chain_headers(self):
        session = FakeSession(FakeResponse(200, {"to": SPENDER, "data": "0x", "buyAmount": "1"}))

        await client_for(session, api_key="k", chain_id=11155111).quote(ASSET, PAIR_TOKEN, 1, taker=STRATEGY_B)

        request = session.requests[0]
        assert request["headers"]["0x-api-key"] == "k"
        assert request["headers"]["0x-version"] == "v2"
        assert request["params"]["chainId"] == "11155111"

    def test_min_out(self):
        quote = AggregatorQuote(to=SPENDER, data=b"", buy_amount=10_000, sell_amount=1)
        assert quote.min_out(50) == 9_950


class TestQuoteErrors:
    """Tests for failed quotes."""

    @pytest.mark.asyncio
    async def test_http_error(self):
        session = FakeSession(FakeResponse(400, text="Insufficient liquidity"))

        with pytest.raises(SwapBuildError) as exc_info:
            await client_for(session).quote(ASSET, PAIR_TOKEN, 1, taker=STRATEGY_B)

        assert exc_info.value.details["body"] == "Insufficient liquidity"

    @pytest.mark.asyncio
    async def test_transport_error(self):
        session = FakeSession(error=aiohttp.ClientConnectionError("refused"))

        with pytest.raises(SwapBuildError):
            await client_for(session).quote(ASSET, PAIR_TOKEN, 1, taker=STRATEGY_B)

    @pytest.mark.asyncio
    async def test_timeout_becomes_build_error(self):
        session = FakeSession(error=asyncio.TimeoutError())

        with pytest.raises(SwapBuildError) as exc_info:
            await client_for(session, timeout=2.5).quote(ASSET, PAIR_TOKEN, 1, taker=STRATEGY_B)

        assert "timed out after 2.5s" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_malformed_quote(self):
        session = FakeSession(FakeResponse(200, {"buyAmount": "1"}))

        with pytest.raises(SwapBuildError):
            await client_for(session).quote(ASSET, PAIR_TOKEN, 1, taker=STRATEGY_B)

    @pytest.mark.asyncio
    async def test_zero_buy_amount(self):
        session = FakeSession(FakeResponse(200, {"to": SPENDER, "data": "0x", "buyAmount": "0"}))

        with pytest.raises(SwapBuildError):
            await client_for(session).quote(ASSET, PAIR_TOKEN, 1, taker=STRATEGY_B)

    @pytest.mark.asyncio
    async def test_zero_sell_amount(self):
        session = FakeSession()

        with pytest.raises(SwapBuildError):
            await client_for(session).quote(ASSET, PAIR_TOKEN, 0, taker=STRATEGY_B)

        assert session.requests == []


class TestLifecycle:
    """Tests for session ownership."""

    @pytest.mark.asyncio
    async def test_injected_session_not_closed(self):
        session = FakeSession()
        client = client_for(session)

        async with client:
            pass

        assert session.closed is False

    @pytest.mark.asyncio
    async def test_from_config(self):
        client = AggregatorClient.from_config(AggregatorConfig(api_key="abc", chain_id=1))

        async with client:
            assert client._session is not None

        assert client._session is None
