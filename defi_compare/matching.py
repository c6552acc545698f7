"""Position match keys and dataset construction: pure functions, no I/O."""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from .models import AddressDefiData, Position

KEY_SEPARATOR = "-"
TOKEN_SEPARATOR = "+"

_IGNORED_CHAINS = frozenset({"", "unknown"})


def exact_key(position: Position) -> str:
    """Key on protocol, chain, type and the sorted distinct token symbols.

    Repeated symbols count once, so a merged position keeps the key its parts
    were merged on.

    Examples:
        aave-v3 / ethereum / lending / [USDC, WETH] → "aave-v3-ethereum-lending-usdc+weth"
        aave-v3 / ethereum / lending / [USDC, USDC] → "aave-v3-ethereum-lending-usdc"
    """
    symbols = sorted({t.token.symbol.lower() for t in position.tokens})
    return KEY_SEPARATOR.join(
        (
            position.protocol.id,
            position.protocol.chain,
            position.type.value,
            TOKEN_SEPARATOR.join(symbols),
        )
    ).lower()


def loose_key(position: Position) -> str:
    """Key on protocol, chain and the primary (first) token symbol only."""
    primary = position.tokens[0].token.symbol if position.tokens else "unknown"
    return KEY_SEPARATOR.join(
        (position.protocol.id, position.protocol.chain, primary)
    ).lower()


def protocol_key(protocol_id: str, chain: str) -> str:
    return f"{protocol_id}{KEY_SEPARATOR}{chain}".lower()


def change_percent(value_a: float, value_b: float) -> float:
    """Percentage change from A to B.

    A zero base yields 100 when B is positive and 0 otherwise.
    """
    if value_a > 0:
        return (value_b - value_a) * 100 / value_a
    return 100.0 if value_b > 0 else 0.0


def merge_positions(first: Position, second: Position) -> Position:
    """Combine two positions sharing an exact key into a new instance."""
    metadata = dict(first.metadata)
    merged_ids = list(metadata.get("mergedIds", [first.id]))
    merged_ids.append(second.id)
    metadata["mergedIds"] = merged_ids
    return replace(
        first,
        tokens=first.tokens + second.tokens,
        total_value_usd=first.total_value_usd + second.total_value_usd,
        metadata=metadata,
    )


def merge_duplicate_positions(positions: list[Position] | tuple[Position, ...]) -> tuple[Position, ...]:
    """Merge positions with equal exact keys, keeping first-seen key order.

    Each group is folded in position-id order, so the merged id, protocol and
    token order do not depend on input order.
    """
    groups: dict[str, list[Position]] = {}
    for position in positions:
        groups.setdefault(exact_key(position), []).append(position)

    merged = []
    for group in groups.values():
        ordered = sorted(group, key=lambda p: (p.id, p.total_value_usd))
        result = ordered[0]
        for position in ordered[1:]:
            result = merge_positions(result, position)
        merged.append(result)
    return tuple(merged)


def extract_chains(positions: tuple[Position, ...]) -> tuple[str, ...]:
    """Sorted distinct chains, skipping empty and unresolved ones."""
    return tuple(
        sorted({p.protocol.chain for p in positions} - _IGNORED_CHAINS)
    )


def build_dataset(
    address: str,
    positions: list[Position] | tuple[Position, ...],
    source: str,
    reported_total: float | None = None,
) -> AddressDefiData:
    """Build an internally consistent :class:`AddressDefiData`.

    Duplicate exact keys are merged first. Without a ``reported_total`` the
    dataset total is the sum of the merged position values.
    """
    merged = merge_duplicate_positions(positions)
    total = (
        reported_total
        if reported_total is not None
        else sum(p.total_value_usd for p in merged)
    )
    return AddressDefiData(
        address=address.lower(),
        total_value_usd=total,
        positions=merged,
        chains=extract_chains(merged),
        last_updated=datetime.now(timezone.utc).isoformat(),
        source=source,
    )
