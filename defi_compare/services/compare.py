"""Source selection and fetch ordering for comparisons."""
from __future__ import annotations

import asyncio
import logging

from ..chains import ChainIdentifierTranslator
from ..config import AppConfig
from ..interfaces.provider import DefiDataProvider
from ..models import AddressDefiData, CompareResult
from ..providers import OneKeyProvider, ZerionProvider
from .reconciliation import ReconciliationEngine
from .summary import SummaryAggregator

logger = logging.getLogger(__name__)


class CompareService:
    """Fetches canonical datasets from the configured providers and compares them."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._translator = ChainIdentifierTranslator()

        self._providers: dict[str, DefiDataProvider] = {
            "zerion": ZerionProvider(config.providers.zerion, self._translator),
            "onekey": OneKeyProvider(
                config.providers.onekey,
                self._translator,
                primary_networks=config.networks.primary,
            ),
        }

        self._engine = ReconciliationEngine(
            config.compare.materiality_threshold_percent
        )
        self._aggregator = SummaryAggregator()

    @property
    def sources(self) -> tuple[str, ...]:
        return tuple(self._providers)

    def _provider(self, source: str) -> DefiDataProvider:
        provider = self._providers.get(source.lower())
        if provider is None:
            raise ValueError(f"Unknown data source: {source}")
        return provider

    async def get_address_data(
        self, address: str, source: str = "zerion"
    ) -> AddressDefiData:
        """Canonical dataset for one address from one source."""
        return await self._provider(source).get_address_defi_data(address)

    async def get_raw_positions(self, address: str, source: str = "zerion") -> list:
        return await self._provider(source).get_raw_positions(address)

    def compare_datasets(
        self, data_a: AddressDefiData, data_b: AddressDefiData
    ) -> CompareResult:
        """Reconcile two canonical datasets and summarize the outcome."""
        diffs, _ = self._engine.reconcile(data_a, data_b)
        summary = self._aggregator.summarize(data_a, data_b, diffs)
        return CompareResult(
            address_a=data_a,
            address_b=data_b,
            summary=summary,
            position_diffs=tuple(diffs),
        )

    async def compare_sources(
        self,
        address: str,
        source_a: str = "zerion",
        source_b: str = "onekey",
        align: bool | None = None,
    ) -> CompareResult:
        """Compare one address across two sources.

        With ``align`` (default from config) source B is only queried on the
        chains source A reported, so A is fetched first. Otherwise both are
        fetched concurrently.

        Both sources must be configured; a missing credential is raised before
        either is queried.
        """
        provider_a = self._provider(source_a)
        provider_b = self._provider(source_b)
        provider_a.require_credentials()
        provider_b.require_credentials()
        if align is None:
            align = self._config.compare.align_chain_scope

        logger.info(
            "Comparing %s vs %s for %s (aligned=%s)",
            provider_a.source_name, provider_b.source_name, address, align,
        )

        if align:
            data_a = await provider_a.get_address_defi_data(address)
            scope = data_a.chains or None
            if scope is None:
                logger.info(
                    "%s found no chains, querying %s on primary networks",
                    provider_a.source_name, provider_b.source_name,
                )
            data_b = await provider_b.get_address_defi_data(address, chain_scope=scope)
        else:
            data_a, data_b = await asyncio.gather(
                provider_a.get_address_defi_data(address),
                provider_b.get_address_defi_data(address),
            )

        return self.compare_datasets(data_a, data_b)

    async def compare_addresses(
        self, address_a: str, address_b: str, source: str = "zerion"
    ) -> CompareResult:
        """Compare two addresses using the same source."""
        provider = self._provider(source)
        provider.require_credentials()
        logger.info(
            "Comparing addresses %s vs %s on %s",
            address_a, address_b, provider.source_name,
        )
        data_a, data_b = await asyncio.gather(
            provider.get_address_defi_data(address_a),
            provider.get_address_defi_data(address_b),
        )
        return self.compare_datasets(data_a, data_b)
