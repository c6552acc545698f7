"""Chain identifier translation between Zerion chain ids and OneKey network ids.

Canonical chain ids are Zerion's (``ethereum``, ``binance-smart-chain``...).
OneKey partitions its API by network id (``evm--1``, ``sol--101``...).
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType

logger = logging.getLogger(__name__)

# canonical chain id → OneKey network id
CHAIN_NETWORK_IDS: Mapping[str, str] = MappingProxyType(
    {
        "ethereum": "evm--1",
        "optimism": "evm--10",
        "cronos": "evm--25",
        "binance-smart-chain": "evm--56",
        "xdai": "evm--100",
        "polygon": "evm--137",
        "manta-pacific": "evm--169",
        "fantom": "evm--250",
        "zksync-era": "evm--324",
        "metis-andromeda": "evm--1088",
        "polygon-zkevm": "evm--1101",
        "moonbeam": "evm--1284",
        "mantle": "evm--5000",
        "base": "evm--8453",
        "mode": "evm--34443",
        "arbitrum": "evm--42161",
        "arbitrum-nova": "evm--42170",
        "celo": "evm--42220",
        "avalanche": "evm--43114",
        "linea": "evm--59144",
        "blast": "evm--81457",
        "taiko": "evm--167000",
        "scroll": "evm--534352",
        "zora": "evm--7777777",
        "aurora": "evm--1313161554",
        "solana": "sol--101",
    }
)

# Common spellings seen in provider payloads that are not table keys.
CHAIN_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "eth": "ethereum",
        "mainnet": "ethereum",
        "bsc": "binance-smart-chain",
        "bnb": "binance-smart-chain",
        "gnosis": "xdai",
        "matic": "polygon",
        "avax": "avalanche",
        "arb": "arbitrum",
        "op": "optimism",
        "zksync": "zksync-era",
        "metis": "metis-andromeda",
        "sol": "solana",
    }
)

PRIMARY_NETWORKS: tuple[str, ...] = (
    "ethereum",
    "arbitrum",
    "optimism",
    "base",
    "polygon",
    "binance-smart-chain",
    "avalanche",
    "xdai",
    "fantom",
    "zksync-era",
    "linea",
    "scroll",
    "blast",
    "mantle",
    "celo",
    "zora",
)


class ChainIdentifierTranslator:
    """Bidirectional chain id lookup. Unknown ids pass through unchanged."""

    def __init__(
        self,
        network_ids: Mapping[str, str] = CHAIN_NETWORK_IDS,
        aliases: Mapping[str, str] = CHAIN_ALIASES,
    ) -> None:
        self._to_network = network_ids
        self._aliases = aliases
        self._to_canonical = {v.lower(): k for k, v in network_ids.items()}

    def to_canonical(self, chain_id: str) -> str:
        """Resolve a provider chain/network id to its canonical chain id."""
        key = chain_id.strip().lower()
        if key in self._to_network:
            return key
        if key in self._to_canonical:
            return self._to_canonical[key]
        if key in self._aliases:
            return self._aliases[key]
        return chain_id

    def to_provider_network(self, chain_id: str) -> str | None:
        """Resolve a canonical chain id to the OneKey network id, if any."""
        return self._to_network.get(self.to_canonical(chain_id).lower())

    def to_provider_networks(self, chains: tuple[str, ...] | list[str]) -> list[str]:
        """Translate a chain scope, dropping chains OneKey does not serve."""
        networks: list[str] = []
        for chain in chains:
            network = self.to_provider_network(chain)
            if network is None:
                logger.debug("No provider network for chain '%s', skipping", chain)
                continue
            if network not in networks:
                networks.append(network)
        return networks

    @property
    def canonical_chains(self) -> tuple[str, ...]:
        return tuple(self._to_network)
