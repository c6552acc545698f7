"""Pure parsing functions for Zerion wallet payloads, no I/O."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...chains import ChainIdentifierTranslator
from ...models import Position, PositionType, Protocol, Token, TokenBalance
from ..common import raw_amount, to_float, to_int, to_optional_float

POSITION_TYPES: dict[str, PositionType] = {
    "deposit": PositionType.LENDING,
    "loan": PositionType.BORROWING,
    "staked": PositionType.STAKING,
    "locked": PositionType.STAKING,
    "leveraged_position": PositionType.LENDING,
    "liquidity": PositionType.LIQUIDITY,
    "farming": PositionType.FARMING,
    "reward": PositionType.STAKING,
    "claimable": PositionType.STAKING,
    "wallet": PositionType.WALLET,
}


@dataclass(frozen=True)
class ZerionRawPosition:
    """One entry of the ``/positions`` ``data`` array, tagged with its list index."""

    payload: dict[str, Any]
    index: int


def map_position_type(zerion_type: str | None) -> PositionType:
    """Map Zerion's ``position_type`` onto the canonical vocabulary."""
    return POSITION_TYPES.get((zerion_type or "").lower(), PositionType.OTHER)


def parse_portfolio_total(payload: Any) -> float:
    """Extract ``data.attributes.total.positions`` from a portfolio response."""
    if not isinstance(payload, dict):
        return 0.0
    attributes = (payload.get("data") or {}).get("attributes") or {}
    return to_float((attributes.get("total") or {}).get("positions"))


def parse_positions_page(payload: Any) -> tuple[list[dict[str, Any]], str | None]:
    """Return the raw position items and the next page URL, if any."""
    if not isinstance(payload, dict):
        return [], None
    items = [item for item in payload.get("data") or [] if isinstance(item, dict)]
    next_url = (payload.get("links") or {}).get("next") or None
    return items, next_url


def _pick_implementation(
    fungible_info: dict[str, Any], chain_id: str
) -> dict[str, Any]:
    """Prefer the token implementation deployed on the position's own chain."""
    implementations = fungible_info.get("implementations") or []
    for impl in implementations:
        if impl.get("chain_id") == chain_id:
            return impl
    return implementations[0] if implementations else {}


def _relationship_id(relationships: dict[str, Any], name: str) -> str | None:
    return ((relationships.get(name) or {}).get("data") or {}).get("id")


def normalize_position(
    raw: ZerionRawPosition, translator: ChainIdentifierTranslator
) -> Position:
    """Normalize one Zerion position into the canonical model.

    Zerion reports one token per position and a single ``value``, which is
    passed through as the position total.
    """
    item = raw.payload
    attrs = item.get("attributes") or {}
    relationships = item.get("relationships") or {}

    zerion_chain = _relationship_id(relationships, "chain") or attrs.get("chain") or "unknown"
    chain = translator.to_canonical(zerion_chain)

    app = attrs.get("application_metadata") or {}
    protocol_id = (
        _relationship_id(relationships, "protocol")
        or _relationship_id(relationships, "dapp")
        or attrs.get("protocol")
        or "wallet"
    )
    protocol = Protocol(
        id=protocol_id,
        name=attrs.get("protocol") or app.get("name") or attrs.get("name") or protocol_id,
        chain=chain,
        logo=(app.get("icon") or {}).get("url"),
        url=app.get("url"),
    )

    fungible_info = attrs.get("fungible_info") or {}
    implementation = _pick_implementation(fungible_info, zerion_chain)
    quantity = attrs.get("quantity") or {}
    decimals = to_int(implementation.get("decimals", quantity.get("decimals")), 18)

    token = Token(
        symbol=fungible_info.get("symbol") or "UNKNOWN",
        name=fungible_info.get("name") or attrs.get("name") or "Unknown Token",
        address=implementation.get("address") or "",
        decimals=decimals,
        price=to_optional_float(attrs.get("price")),
        logo=(fungible_info.get("icon") or {}).get("url"),
    )

    value = to_float(attrs.get("value"))
    balance = quantity.get("int")
    token_balance = TokenBalance(
        token=token,
        balance=str(balance) if balance is not None else raw_amount(quantity.get("numeric"), decimals),
        balance_formatted=to_float(quantity.get("float")),
        balance_usd=value,
    )

    return Position(
        id=item.get("id") or f"{protocol.id}-{chain}-{raw.index}",
        protocol=protocol,
        type=map_position_type(attrs.get("position_type")),
        tokens=(token_balance,),
        total_value_usd=value,
        metadata={
            "rawType": attrs.get("position_type"),
            "zerionType": item.get("type"),
            "groupId": attrs.get("group_id"),
        },
    )
