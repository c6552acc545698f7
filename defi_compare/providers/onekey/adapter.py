"""OneKey data provider, one POST per network fanned out concurrently."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Collection
from typing import Any

from ...chains import PRIMARY_NETWORKS, ChainIdentifierTranslator
from ...config import OneKeyConfig
from ...errors import ConfigurationMissing
from ...fetch import FetchOrchestrator, FetchRequest, RetryingFetchClient, RetryPolicy
from ...matching import build_dataset
from ...models import AddressDefiData
from . import parser

logger = logging.getLogger(__name__)


class OneKeyProvider:
    """Fetch and normalize a wallet's positions from the OneKey positions API."""

    def __init__(
        self,
        config: OneKeyConfig,
        translator: ChainIdentifierTranslator,
        primary_networks: tuple[str, ...] = PRIMARY_NETWORKS,
        client: RetryingFetchClient | None = None,
    ) -> None:
        self._config = config
        self._translator = translator
        client = client or RetryingFetchClient(
            "onekey", RetryPolicy.from_config(config.retry), timeout=config.timeout
        )
        self._orchestrator: FetchOrchestrator[parser.OneKeyRawPosition] = FetchOrchestrator(
            client,
            translator,
            build_request=self._build_request,
            extract=parser.extract_positions,
            primary_networks=primary_networks,
        )

    @property
    def source_name(self) -> str:
        return "onekey"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.auth_token}",
            "Content-Type": "application/json",
            "X-Onekey-Request-Id": str(uuid.uuid4()),
            "X-Onekey-Request-Locale": self._config.locale,
            "X-Onekey-Request-Platform": self._config.platform,
            "X-Onekey-Request-Version": self._config.version,
        }

    def _build_request(self, address: str, network_id: str) -> FetchRequest:
        return FetchRequest(
            "POST",
            self._config.base_url,
            json={"networkId": network_id, "accountAddress": address},
            headers=self._headers(),
        )

    def require_credentials(self) -> None:
        if not self._config.auth_token:
            raise ConfigurationMissing("ONEKEY_AUTH_TOKEN not configured")

    async def get_address_defi_data(
        self, address: str, chain_scope: Collection[str] | None = None
    ) -> AddressDefiData:
        """Fetch every network in scope and normalize into one dataset.

        Args:
            chain_scope: Canonical chains to query. ``None`` or empty means the
                primary network set.
        """
        self.require_credentials()
        normalized_address = address.lower()

        raw_positions = await self._orchestrator.fetch_all(normalized_address, chain_scope)
        positions = [
            parser.normalize_position(raw, self._translator) for raw in raw_positions
        ]
        data = build_dataset(normalized_address, positions, self.source_name)
        logger.info(
            "OneKey: %d positions across %d chains, derived total $%.2f",
            len(data.positions), len(data.chains), data.total_value_usd,
        )
        return data

    async def get_raw_positions(self, address: str) -> list[dict[str, Any]]:
        """Un-normalized records over the primary networks, for debugging."""
        self.require_credentials()
        raw_positions = await self._orchestrator.fetch_all(address.lower())
        return [
            {"networkId": r.network_id, "protocol": r.protocol, "position": r.payload}
            for r in raw_positions
        ]
