"""Pure parsing functions for OneKey per-network position payloads, no I/O.

A response nests protocol entries under a network-id keyed map::

    {"code": 0, "data": {"positions": {"evm--1": [
        {"protocolId": "aave-v3", "protocolName": "Aave V3",
         "positions": [{"category": "lending", "assets": [...],
                        "debts": [...], "rewards": [...]}]}
    ]}}}
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...chains import ChainIdentifierTranslator
from ...errors import ProviderUnavailable
from ...models import Position, PositionType, Protocol, Token, TokenBalance
from ..common import raw_amount, to_float, to_int, to_optional_float

POSITION_TYPES: dict[str, PositionType] = {
    "lending": PositionType.LENDING,
    "deposit": PositionType.LENDING,
    "supplied": PositionType.LENDING,
    "supply": PositionType.LENDING,
    "borrow": PositionType.BORROWING,
    "borrowed": PositionType.BORROWING,
    "debt": PositionType.BORROWING,
    "liquidity": PositionType.LIQUIDITY,
    "liquidity pool": PositionType.LIQUIDITY,
    "lp": PositionType.LIQUIDITY,
    "staked": PositionType.STAKING,
    "staking": PositionType.STAKING,
    "locked": PositionType.STAKING,
    "vesting": PositionType.STAKING,
    "farming": PositionType.FARMING,
    "yield": PositionType.FARMING,
    "rewards": PositionType.FARMING,
    "wallet": PositionType.WALLET,
}


@dataclass(frozen=True)
class OneKeyRawPosition:
    """One position of one protocol entry, tagged with the network it came from."""

    network_id: str
    protocol: dict[str, Any]
    payload: dict[str, Any]
    index: int


def map_position_type(category: str | None) -> PositionType:
    """Map OneKey's position ``category`` onto the canonical vocabulary."""
    return POSITION_TYPES.get((category or "").strip().lower(), PositionType.OTHER)


def extract_positions(network_id: str, payload: Any) -> list[OneKeyRawPosition]:
    """Flatten a per-network response into raw position records.

    Raises ``ProviderUnavailable`` for an error code or a body whose
    ``positions`` map is missing.
    """
    if not isinstance(payload, dict):
        raise ProviderUnavailable(f"onekey returned a non-object body for {network_id}")

    code = payload.get("code", 0)
    if code not in (0, "0", None):
        raise ProviderUnavailable(
            f"onekey error code {code} for {network_id}: {payload.get('message', '')}"
        )

    by_network = (payload.get("data") or {}).get("positions")
    if by_network is None:
        return []
    if not isinstance(by_network, dict):
        raise ProviderUnavailable(f"onekey positions for {network_id} are not keyed by network")

    records: list[OneKeyRawPosition] = []
    for network, entries in by_network.items():
        for entry in entries or []:
            if not isinstance(entry, dict):
                continue
            for position in entry.get("positions") or []:
                if isinstance(position, dict):
                    records.append(
                        OneKeyRawPosition(
                            network_id=network,
                            protocol=entry,
                            payload=position,
                            index=len(records),
                        )
                    )
    return records


def parse_token_balance(raw: dict[str, Any]) -> TokenBalance:
    """Parse one asset, debt or reward entry."""
    decimals = to_int(raw.get("decimals"), 18)
    formatted = raw.get("balanceParsed", raw.get("amount"))
    balance = raw.get("balance")

    token = Token(
        symbol=raw.get("symbol") or "UNKNOWN",
        name=raw.get("name") or raw.get("symbol") or "Unknown Token",
        address=raw.get("address") or "",
        decimals=decimals,
        price=to_optional_float(raw.get("price")),
        logo=raw.get("logoUrl"),
    )
    return TokenBalance(
        token=token,
        balance=str(balance) if balance is not None else raw_amount(formatted, decimals),
        balance_formatted=to_float(formatted),
        balance_usd=to_float(raw.get("value")),
    )


def _sum_value(balances: list[TokenBalance]) -> float:
    return sum(b.balance_usd for b in balances)


def normalize_position(
    raw: OneKeyRawPosition, translator: ChainIdentifierTranslator
) -> Position:
    """Normalize one OneKey position into the canonical model.

    Net value = assets + rewards - debts. Tokens are assets followed by debts;
    rewards only contribute value.
    """
    entry = raw.protocol
    item = raw.payload
    chain = translator.to_canonical(raw.network_id)

    protocol_id = entry.get("protocolId") or entry.get("protocolName") or "unknown"
    protocol = Protocol(
        id=protocol_id,
        name=entry.get("protocolName") or protocol_id,
        chain=chain,
        logo=entry.get("protocolLogo"),
        url=entry.get("protocolUrl"),
    )

    assets = [parse_token_balance(a) for a in item.get("assets") or []]
    debts = [parse_token_balance(d) for d in item.get("debts") or []]
    rewards = [parse_token_balance(r) for r in item.get("rewards") or []]

    total_asset = _sum_value(assets)
    total_debt = _sum_value(debts)
    total_reward = _sum_value(rewards)

    group_key = item.get("groupId") or raw.index
    return Position(
        id=item.get("id") or f"{protocol.id}-{chain}-{group_key}",
        protocol=protocol,
        type=map_position_type(item.get("category")),
        tokens=tuple(assets + debts),
        total_value_usd=total_asset + total_reward - total_debt,
        apy=to_optional_float(item.get("apy")),
        health_factor=to_optional_float(item.get("healthFactor")),
        metadata={
            "rawType": item.get("category"),
            "networkId": raw.network_id,
            "positionName": item.get("name"),
            "totalAssetUSD": total_asset,
            "totalDebtUSD": total_debt,
            "totalRewardUSD": total_reward,
            "debtSymbols": [d.token.symbol for d in debts],
            "rewardSymbols": [r.token.symbol for r in rewards],
        },
    )
