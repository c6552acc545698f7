"""Integration tests for the Zerion provider request shape and paging."""
from __future__ import annotations

import base64
import copy
import warnings
from unittest.mock import AsyncMock

import pytest

from defi_compare.config import ZerionConfig
from defi_compare.errors import ConfigurationMissing, ProviderUnavailable
from defi_compare.fetch import FetchRequest
from defi_compare.providers.zerion import ZerionProvider

WALLET = "0xABC0000000000000000000000000000000000001"
BASE = "https://zerion.example.com/v1/wallets/0xabc0000000000000000000000000000000000001"


def _client(pages: dict[str, dict], portfolio: dict) -> AsyncMock:
    async def fetch(request: FetchRequest):
        if request.url.endswith("/portfolio/"):
            return portfolio
        return pages[request.url]

    client = AsyncMock()
    client.fetch = AsyncMock(side_effect=fetch)
    return client


class TestGetAddressDefiData:
    @pytest.mark.asyncio
    async def test_normalizes_and_keeps_reported_total(
        self, sample_zerion_config, translator, sample_zerion_item, sample_zerion_portfolio
    ) -> None:
        client = _client(
            {f"{BASE}/positions/": {"data": [sample_zerion_item], "links": {}}},
            sample_zerion_portfolio,
        )
        provider = ZerionProvider(sample_zerion_config, translator, client=client)

        data = await provider.get_address_defi_data(WALLET)

        assert data.source == "zerion"
        assert data.address == WALLET.lower()
        assert data.total_value_usd == 1750.5
        assert data.chains == ("ethereum",)
        assert len(data.positions) == 1
        assert data.positions[0].total_value_usd == 1500.25

    @pytest.mark.asyncio
    async def test_request_shape(
        self, sample_zerion_config, translator, sample_zerion_portfolio
    ) -> None:
        client = _client({f"{BASE}/positions/": {"data": []}}, sample_zerion_portfolio)
        provider = ZerionProvider(sample_zerion_config, translator, client=client)

        await provider.get_address_defi_data(WALLET, chain_scope=["base", "arbitrum"])

        requests = {call.args[0].url: call.args[0] for call in client.fetch.await_args_list}
        positions = requests[f"{BASE}/positions/"]
        assert positions.method == "GET"
        assert positions.params["filter[chain_ids]"] == "arbitrum,base"
        assert positions.params["filter[positions]"] == "no_filter"
        assert positions.params["filter[trash]"] == "only_non_trash"
        assert requests[f"{BASE}/portfolio/"].params == {"currency": "usd"}

        expected_auth = "Basic " + base64.b64encode(b"zk_test:").decode()
        assert positions.headers["authorization"] == expected_auth

    def test_auth_header_raises_no_warnings(self, sample_zerion_config, translator) -> None:
        provider = ZerionProvider(sample_zerion_config, translator, client=AsyncMock())

        with warnings.catch_warnings():
            warnings.simplefilter("error")
            headers = provider._headers()

        assert headers["authorization"] == "Basic emtfdGVzdDo="

    @pytest.mark.asyncio
    async def test_follows_next_links(
        self, sample_zerion_config, translator, sample_zerion_item, sample_zerion_portfolio
    ) -> None:
        second = copy.deepcopy(sample_zerion_item)
        second["id"] = "second"
        second["relationships"]["dapp"]["data"]["id"] = "compound-v3"
        next_url = "https://zerion.example.com/v1/page-2"
        client = _client(
            {
                f"{BASE}/positions/": {"data": [sample_zerion_item], "links": {"next": next_url}},
                next_url: {"data": [second], "links": {}},
            },
            sample_zerion_portfolio,
        )
        provider = ZerionProvider(sample_zerion_config, translator, client=client)

        data = await provider.get_address_defi_data(WALLET)

        assert [p.id for p in data.positions] == [sample_zerion_item["id"], "second"]
        paged = [c.args[0] for c in client.fetch.await_args_list if c.args[0].url == next_url]
        assert paged[0].params is None

    @pytest.mark.asyncio
    async def test_page_cap(
        self, translator, sample_zerion_item, sample_zerion_portfolio
    ) -> None:
        config = ZerionConfig(api_key="k", base_url="https://zerion.example.com/v1", max_pages=1)
        client = _client(
            {
                f"{BASE}/positions/": {
                    "data": [sample_zerion_item],
                    "links": {"next": "https://zerion.example.com/v1/page-2"},
                }
            },
            sample_zerion_portfolio,
        )
        provider = ZerionProvider(config, translator, client=client)

        data = await provider.get_address_defi_data(WALLET)

        assert len(data.positions) == 1
        assert client.fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_missing_api_key(self, translator) -> None:
        client = AsyncMock()
        provider = ZerionProvider(ZerionConfig(api_key=""), translator, client=client)

        with pytest.raises(ConfigurationMissing, match="ZERION_API_KEY"):
            await provider.get_address_defi_data(WALLET)

        client.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_provider_failure_propagates(self, sample_zerion_config, translator) -> None:
        client = AsyncMock()
        client.fetch = AsyncMock(side_effect=ProviderUnavailable("zerion failed: HTTP 401", 401))
        provider = ZerionProvider(sample_zerion_config, translator, client=client)

        with pytest.raises(ProviderUnavailable, match="HTTP 401"):
            await provider.get_address_defi_data(WALLET)


class TestGetRawPositions:
    @pytest.mark.asyncio
    async def test_returns_unnormalized_records(
        self, sample_zerion_config, translator, sample_zerion_item, sample_zerion_portfolio
    ) -> None:
        client = _client(
            {f"{BASE}/positions/": {"data": [sample_zerion_item]}}, sample_zerion_portfolio
        )
        provider = ZerionProvider(sample_zerion_config, translator, client=client)

        raw = await provider.get_raw_positions(WALLET)

        assert raw == [sample_zerion_item]
        assert provider.source_name == "zerion"
