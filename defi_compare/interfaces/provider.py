"""Data provider protocol, implemented once per upstream source."""
from collections.abc import Collection
from typing import Any, Protocol

from ..models import AddressDefiData


class DefiDataProvider(Protocol):
    """Abstract interface for fetching a wallet's positions from one source."""

    @property
    def source_name(self) -> str: ...

    def require_credentials(self) -> None:
        """Raise ``ConfigurationMissing`` before any request if unconfigured."""
        ...

    async def get_address_defi_data(
        self, address: str, chain_scope: Collection[str] | None = None
    ) -> AddressDefiData: ...

    async def get_raw_positions(self, address: str) -> list[dict[str, Any]]: ...
