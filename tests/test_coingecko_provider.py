"""Tests for CoinGeckoProvider against a mocked HTTP transport."""
from decimal import Decimal

import httpx
import pytest

from market_alerts.providers import CoinGeckoProvider, ProviderError


def make_provider(handler) -> CoinGeckoProvider:
    client = httpx.AsyncClient(
        base_url=CoinGeckoProvider.BASE_URL, transport=httpx.MockTransport(handler)
    )
    return CoinGeckoProvider(client=client)


@pytest.mark.asyncio
async def test_fetch_batch_single_request():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "bitcoin": {"usd": 64123.45, "last_updated_at": 1700000000},
                "ethereum": {"usd": 3400.1},
            },
        )

    async with make_provider(handler) as provider:
        prices = await provider.fetch_batch(["bitcoin", "ethereum"])

    assert prices == {"bitcoin": Decimal("64123.45"), "ethereum": Decimal("3400.1")}
    assert len(seen) == 1
    assert seen[0].url.path.endswith("/simple/price")
    assert seen[0].url.params["ids"] == "bitcoin,ethereum"
    assert seen[0].url.params["vs_currencies"] == "usd"


@pytest.mark.asyncio
async def test_server_error_raises_provider_error():
    provider = make_provider(lambda request: httpx.Response(500, text="oops"))
    with pytest.raises(ProviderError) as exc_info:
        await provider.fetch_batch(["bitcoin"])
    assert exc_info.value.provider == "coingecko"
    assert "500" in str(exc_info.value)
    await provider.close()


@pytest.mark.asyncio
async def test_malformed_json_raises_provider_error():
    provider = make_provider(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(ProviderError):
        await provider.fetch_batch(["bitcoin"])
    await provider.close()


@pytest.mark.asyncio
async def test_malformed_rows_are_skipped():
    def handler(request):
        return httpx.Response(
            200, json={"bitcoin": {"usd": "not-a-number"}, "ethereum": {"usd": 3400}}
        )

    async with make_provider(handler) as provider:
        prices = await provider.fetch_batch(["bitcoin", "ethereum"])

    assert prices == {"ethereum": Decimal("3400")}


@pytest.mark.asyncio
async def test_fetch_quote_returns_none_on_failure():
    async with make_provider(lambda request: httpx.Response(429)) as provider:
        assert await provider.fetch_quote("bitcoin") is None


@pytest.mark.asyncio
async def test_non_crypto_assets_are_not_requested():
    def handler(request):
        raise AssertionError("no request expected")

    async with make_provider(handler) as provider:
        assert await provider.fetch_batch(["gold"]) == {}
