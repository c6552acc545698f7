"""Canonical data models, all frozen (immutable).

Both providers are normalized into these types. ``to_dict`` renders the
camelCase JSON structure returned to callers; optional fields are omitted
when absent.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PositionType(str, Enum):
    LENDING = "lending"
    BORROWING = "borrowing"
    LIQUIDITY = "liquidity"
    STAKING = "staking"
    FARMING = "farming"
    WALLET = "wallet"
    OTHER = "other"


class DiffType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"
    UNCHANGED = "unchanged"


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class Token:
    """A fungible token; ``address`` is empty for a chain's native asset."""

    symbol: str
    name: str
    address: str = ""
    decimals: int = 18
    price: float | None = None
    logo: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "symbol": self.symbol,
                "name": self.name,
                "address": self.address,
                "decimals": self.decimals,
                "price": self.price,
                "logo": self.logo,
            }
        )


@dataclass(frozen=True)
class TokenBalance:
    """Holding of one token.

    ``balance`` is the raw integer amount as a string. ``balance_usd`` is the
    provider's own valuation and is never recomputed from quantity and price.
    """

    token: Token
    balance: str = "0"
    balance_formatted: float = 0.0
    balance_usd: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "token": self.token.to_dict(),
            "balance": self.balance,
            "balanceFormatted": self.balance_formatted,
            "balanceUSD": self.balance_usd,
        }


@dataclass(frozen=True)
class Protocol:
    """DeFi protocol on one canonical chain."""

    id: str
    name: str
    chain: str
    logo: str | None = None
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "id": self.id,
                "name": self.name,
                "chain": self.chain,
                "logo": self.logo,
                "url": self.url,
            }
        )


@dataclass(frozen=True)
class Position:
    """A single DeFi position. ``id`` is only unique within its own dataset."""

    id: str
    protocol: Protocol
    type: PositionType
    tokens: tuple[TokenBalance, ...] = ()
    total_value_usd: float = 0.0
    apy: float | None = None
    health_factor: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = _drop_none(
            {
                "id": self.id,
                "protocol": self.protocol.to_dict(),
                "type": self.type.value,
                "tokens": [t.to_dict() for t in self.tokens],
                "totalValueUSD": self.total_value_usd,
                "apy": self.apy,
                "healthFactor": self.health_factor,
            }
        )
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        return data


@dataclass(frozen=True)
class AddressDefiData:
    """One provider's view of a wallet.

    Use :func:`defi_compare.matching.build_dataset` to construct instances so
    that duplicate positions are merged and the total stays consistent.
    """

    address: str
    total_value_usd: float
    positions: tuple[Position, ...]
    chains: tuple[str, ...]
    last_updated: str
    source: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "totalValueUSD": self.total_value_usd,
            "positions": [p.to_dict() for p in self.positions],
            "chains": list(self.chains),
            "lastUpdated": self.last_updated,
            "source": self.source,
        }


@dataclass(frozen=True)
class PositionDiff:
    """Reconciliation outcome for one position pairing."""

    protocol: str
    chain: str
    type: PositionType
    diff_type: DiffType
    position_a: Position | None = None
    position_b: Position | None = None
    value_diff_usd: float = 0.0
    value_diff_percent: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "protocol": self.protocol,
                "chain": self.chain,
                "type": self.type.value,
                "diffType": self.diff_type.value,
                "positionA": self.position_a.to_dict() if self.position_a else None,
                "positionB": self.position_b.to_dict() if self.position_b else None,
                "valueDiffUSD": self.value_diff_usd,
                "valueDiffPercent": self.value_diff_percent,
            }
        )


@dataclass(frozen=True)
class CompareSummary:
    total_value_diff_usd: float
    total_value_diff_percent: float
    positions_only_in_a: int
    positions_only_in_b: int
    common_positions: int
    changed_positions: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalValueDiffUSD": self.total_value_diff_usd,
            "totalValueDiffPercent": self.total_value_diff_percent,
            "positionsOnlyInA": self.positions_only_in_a,
            "positionsOnlyInB": self.positions_only_in_b,
            "commonPositions": self.common_positions,
            "changedPositions": self.changed_positions,
        }


@dataclass(frozen=True)
class CompareResult:
    address_a: AddressDefiData
    address_b: AddressDefiData
    summary: CompareSummary
    position_diffs: tuple[PositionDiff, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "addressA": self.address_a.to_dict(),
            "addressB": self.address_b.to_dict(),
            "summary": self.summary.to_dict(),
            "positionDiffs": [d.to_dict() for d in self.position_diffs],
        }


@dataclass(frozen=True)
class ProtocolTotals:
    """Per ``(protocol, chain)`` value totals across both sides of a comparison."""

    protocol: str
    chain: str
    total_a: float
    total_b: float
    diff: float
    diff_percent: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "protocol": self.protocol,
            "chain": self.chain,
            "totalA": self.total_a,
            "totalB": self.total_b,
            "diff": self.diff,
            "diffPercent": self.diff_percent,
        }
