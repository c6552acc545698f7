"""Per-network fan-out for providers whose API is partitioned by network id."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Collection
from typing import Any, Generic, TypeVar

from ..chains import PRIMARY_NETWORKS, ChainIdentifierTranslator
from ..errors import ProviderUnavailable
from .client import FetchRequest, RetryingFetchClient

logger = logging.getLogger(__name__)

RawT = TypeVar("RawT")

RequestBuilder = Callable[[str, str], FetchRequest]


class FetchOrchestrator(Generic[RawT]):
    """Query every network in a chain scope concurrently and join the results.

    A network that fails contributes zero positions; partial coverage is
    logged, never raised.
    """

    def __init__(
        self,
        client: RetryingFetchClient,
        translator: ChainIdentifierTranslator,
        build_request: RequestBuilder,
        extract: Callable[[str, Any], list[RawT]],
        primary_networks: tuple[str, ...] = PRIMARY_NETWORKS,
    ) -> None:
        self._client = client
        self._translator = translator
        self._build_request = build_request
        self._extract = extract
        self._primary_networks = primary_networks

    def resolve_networks(self, chain_scope: Collection[str] | None = None) -> list[str]:
        """Translate a canonical chain scope (or the primary set) to network ids."""
        chains = list(chain_scope) if chain_scope else list(self._primary_networks)
        return self._translator.to_provider_networks(chains)

    async def fetch_all(
        self, address: str, chain_scope: Collection[str] | None = None
    ) -> list[RawT]:
        """Fetch raw positions for ``address`` on every network in scope."""
        networks = self.resolve_networks(chain_scope)
        logger.info(
            "Fetching %s positions for %s on %d networks",
            self._client.provider, address, len(networks),
        )

        results = await asyncio.gather(
            *(self._fetch_network(address, network) for network in networks),
            return_exceptions=True,
        )

        raw_positions: list[RawT] = []
        failed: list[str] = []
        for network, result in zip(networks, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Unexpected error fetching %s on %s: %r",
                    self._client.provider, network, result,
                )
                failed.append(network)
                continue
            if result is None:
                failed.append(network)
                continue
            raw_positions.extend(result)

        if failed:
            logger.warning(
                "%s: %d/%d networks failed (%s), continuing with partial data",
                self._client.provider, len(failed), len(networks), ", ".join(failed),
            )
        logger.info(
            "Got %d raw %s positions for %s",
            len(raw_positions), self._client.provider, address,
        )
        return raw_positions

    async def _fetch_network(self, address: str, network: str) -> list[RawT] | None:
        """Fetch one network; ``None`` marks a failure absorbed at this boundary."""
        try:
            payload = await self._client.fetch(self._build_request(address, network))
            return self._extract(network, payload)
        except ProviderUnavailable as e:
            logger.warning("%s unavailable on %s: %s", self._client.provider, network, e)
            return None
