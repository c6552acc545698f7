"""Zerion data provider: wallet portfolio total plus the positions listing."""
from __future__ import annotations

import asyncio
import base64
import logging
from collections.abc import Collection
from typing import Any

from ...chains import ChainIdentifierTranslator
from ...config import ZerionConfig
from ...errors import ConfigurationMissing
from ...fetch import FetchRequest, RetryingFetchClient, RetryPolicy
from ...matching import build_dataset
from ...models import AddressDefiData
from . import parser

logger = logging.getLogger(__name__)


class ZerionProvider:
    """Fetch and normalize a wallet's positions from the Zerion API.

    Zerion is not partitioned by network, so a failed call is a provider-level
    failure and propagates as ``ProviderUnavailable``.
    """

    def __init__(
        self,
        config: ZerionConfig,
        translator: ChainIdentifierTranslator,
        client: RetryingFetchClient | None = None,
    ) -> None:
        self._config = config
        self._translator = translator
        self._client = client or RetryingFetchClient(
            "zerion", RetryPolicy.from_config(config.retry), timeout=config.timeout
        )

    @property
    def source_name(self) -> str:
        return "zerion"

    def _headers(self) -> dict[str, str]:
        return {
            "accept": "application/json",
            "authorization": f"Basic {self._basic_credentials()}",
        }

    def _basic_credentials(self) -> str:
        # API key as user name, empty password
        token = f"{self._config.api_key}:".encode("utf-8")
        return base64.b64encode(token).decode("ascii")

    def require_credentials(self) -> None:
        """Raise ``ConfigurationMissing`` when no API key is set."""
        if not self._config.api_key:
            raise ConfigurationMissing("ZERION_API_KEY not configured")

    def _wallet_url(self, address: str, resource: str) -> str:
        return f"{self._config.base_url.rstrip('/')}/wallets/{address}/{resource}/"

    async def _fetch_portfolio_total(self, address: str) -> float:
        payload = await self._client.fetch(
            FetchRequest(
                "GET",
                self._wallet_url(address, "portfolio"),
                params={"currency": "usd"},
                headers=self._headers(),
            )
        )
        return parser.parse_portfolio_total(payload)

    async def _fetch_position_items(
        self, address: str, chain_scope: Collection[str] | None = None
    ) -> list[dict[str, Any]]:
        """Fetch every page of the positions listing, up to ``max_pages``."""
        params = {
            "currency": "usd",
            "sort": "value",
            "filter[positions]": self._config.positions_filter,
            "filter[trash]": "only_non_trash",
        }
        if chain_scope:
            params["filter[chain_ids]"] = ",".join(sorted(chain_scope))

        request = FetchRequest(
            "GET",
            self._wallet_url(address, "positions"),
            params=params,
            headers=self._headers(),
        )
        items: list[dict[str, Any]] = []

        for page in range(1, self._config.max_pages + 1):
            payload = await self._client.fetch(request)
            page_items, next_url = parser.parse_positions_page(payload)
            items.extend(page_items)
            if not next_url:
                break
            if page == self._config.max_pages:
                logger.warning(
                    "Stopped after %d pages of Zerion positions for %s",
                    page, address,
                )
                break
            request = FetchRequest("GET", next_url, headers=self._headers())

        logger.info("Got %d Zerion positions for %s", len(items), address)
        return items

    async def get_address_defi_data(
        self, address: str, chain_scope: Collection[str] | None = None
    ) -> AddressDefiData:
        """Fetch the portfolio total and positions concurrently and normalize them."""
        self.require_credentials()
        normalized_address = address.lower()
        logger.info("Fetching Zerion DeFi data for %s", normalized_address)

        total, items = await asyncio.gather(
            self._fetch_portfolio_total(normalized_address),
            self._fetch_position_items(normalized_address, chain_scope),
        )

        positions = [
            parser.normalize_position(
                parser.ZerionRawPosition(payload=item, index=index), self._translator
            )
            for index, item in enumerate(items)
        ]
        data = build_dataset(
            normalized_address, positions, self.source_name, reported_total=total
        )
        logger.info(
            "Zerion: %d positions across %d chains, portfolio total $%.2f",
            len(data.positions), len(data.chains), data.total_value_usd,
        )
        return data

    async def get_raw_positions(self, address: str) -> list[dict[str, Any]]:
        """Un-normalized positions listing, for debugging."""
        self.require_credentials()
        return await self._fetch_position_items(address.lower())
