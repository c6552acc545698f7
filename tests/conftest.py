"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from defi_compare.chains import ChainIdentifierTranslator
from defi_compare.config import (
    AppConfig,
    CompareConfig,
    NetworksConfig,
    OneKeyConfig,
    ProvidersConfig,
    RetryConfig,
    ZerionConfig,
)
from defi_compare.matching import build_dataset
from defi_compare.models import (
    AddressDefiData,
    Position,
    PositionType,
    Protocol,
    Token,
    TokenBalance,
)

WALLET = "0xabc0000000000000000000000000000000000001"


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_retry_config() -> RetryConfig:
    return RetryConfig(max_attempts=3, backoff={202: 3.0, 429: 5.0})


@pytest.fixture()
def sample_zerion_config(sample_retry_config: RetryConfig) -> ZerionConfig:
    return ZerionConfig(
        api_key="zk_test",
        base_url="https://zerion.example.com/v1",
        timeout=10,
        retry=sample_retry_config,
    )


@pytest.fixture()
def sample_onekey_config(sample_retry_config: RetryConfig) -> OneKeyConfig:
    return OneKeyConfig(
        auth_token="ok_test",
        base_url="https://onekey.example.com/positions",
        timeout=10,
        retry=sample_retry_config,
    )


@pytest.fixture()
def sample_app_config(
    sample_zerion_config: ZerionConfig, sample_onekey_config: OneKeyConfig
) -> AppConfig:
    return AppConfig(
        providers=ProvidersConfig(zerion=sample_zerion_config, onekey=sample_onekey_config),
        compare=CompareConfig(materiality_threshold_percent=1.0, align_chain_scope=True),
        networks=NetworksConfig(primary=("ethereum", "arbitrum", "base")),
    )


@pytest.fixture()
def translator() -> ChainIdentifierTranslator:
    return ChainIdentifierTranslator()


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


PositionFactory = Callable[..., Position]


@pytest.fixture()
def make_position() -> PositionFactory:
    """Build a position from protocol id, chain, type, symbols and value."""

    def _make(
        protocol_id: str = "aave-v3",
        chain: str = "ethereum",
        position_type: PositionType = PositionType.LENDING,
        symbols: tuple[str, ...] = ("USDC",),
        value: float = 100.0,
        position_id: str | None = None,
        protocol_name: str | None = None,
    ) -> Position:
        share = value / len(symbols) if symbols else 0.0
        return Position(
            id=position_id or f"{protocol_id}-{chain}-{'-'.join(symbols)}",
            protocol=Protocol(
                id=protocol_id, name=protocol_name or protocol_id, chain=chain
            ),
            type=position_type,
            tokens=tuple(
                TokenBalance(
                    token=Token(symbol=s, name=s),
                    balance="1",
                    balance_formatted=1.0,
                    balance_usd=share,
                )
                for s in symbols
            ),
            total_value_usd=value,
        )

    return _make


@pytest.fixture()
def make_dataset() -> Callable[..., AddressDefiData]:
    def _make(
        positions: list[Position],
        source: str = "test",
        reported_total: float | None = None,
    ) -> AddressDefiData:
        return build_dataset(WALLET, positions, source, reported_total=reported_total)

    return _make


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    providers:
      zerion:
        api_key: "zk_yaml"
        base_url: "https://zerion.example.com/v1"
        timeout: 15
        positions_filter: only_complex
        retry:
          max_attempts: 4
          backoff: {202: 1, 429: 2}
      onekey:
        auth_token: "ok_yaml"
        base_url: "https://onekey.example.com/positions"
        platform: ios
        version: "5.1.0"
    compare:
      materiality_threshold_percent: 2.5
      align_chain_scope: false
    networks:
      primary: [Ethereum, base]
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Sample provider payloads
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_zerion_item() -> dict:
    return {
        "type": "positions",
        "id": "0xabc-ethereum-aave-v3-usdc-deposit",
        "attributes": {
            "protocol": "Aave V3",
            "name": "Asset",
            "position_type": "deposit",
            "quantity": {
                "int": "1500000000",
                "decimals": 6,
                "float": 1500.0,
                "numeric": "1500.000000",
            },
            "value": 1500.25,
            "price": 1.0001,
            "group_id": "g-1",
            "fungible_info": {
                "name": "USD Coin",
                "symbol": "USDC",
                "icon": {"url": "https://cdn.example.com/usdc.png"},
                "implementations": [
                    {"chain_id": "base", "address": "0xbase-usdc", "decimals": 6},
                    {"chain_id": "ethereum", "address": "0xeth-usdc", "decimals": 6},
                ],
            },
            "application_metadata": {
                "name": "Aave V3",
                "icon": {"url": "https://cdn.example.com/aave.png"},
                "url": "https://app.aave.com",
            },
        },
        "relationships": {
            "chain": {"data": {"type": "chains", "id": "ethereum"}},
            "dapp": {"data": {"type": "dapps", "id": "aave-v3"}},
        },
    }


@pytest.fixture()
def sample_zerion_portfolio() -> dict:
    return {"data": {"attributes": {"total": {"positions": 1750.5}}}}


@pytest.fixture()
def sample_onekey_response() -> dict:
    return {
        "code": 0,
        "message": "",
        "data": {
            "positions": {
                "evm--1": [
                    {
                        "protocolId": "aave-v3",
                        "protocolName": "Aave V3",
                        "protocolLogo": "https://cdn.example.com/aave.png",
                        "protocolUrl": "https://app.aave.com",
                        "positions": [
                            {
                                "groupId": "supply-borrow",
                                "category": "Lending",
                                "name": "Lending",
                                "healthFactor": "2.1",
                                "assets": [
                                    {
                                        "symbol": "USDC",
                                        "name": "USD Coin",
                                        "address": "0xeth-usdc",
                                        "decimals": 6,
                                        "price": 1.0,
                                        "balanceParsed": "1500.5",
                                        "value": 1500.5,
                                    }
                                ],
                                "debts": [
                                    {
                                        "symbol": "WETH",
                                        "decimals": 18,
                                        "price": 2000.0,
                                        "balance": "250000000000000000",
                                        "balanceParsed": "0.25",
                                        "value": 500.0,
                                    }
                                ],
                                "rewards": [
                                    {"symbol": "AAVE", "balanceParsed": "0.1", "value": 10.0}
                                ],
                            }
                        ],
                    }
                ]
            }
        },
    }


# ---------------------------------------------------------------------------
# aiohttp mocking
# ---------------------------------------------------------------------------


def _make_response(
    status: int, payload: object | None = None, json_error: Exception | None = None
) -> AsyncMock:
    response = AsyncMock()
    response.status = status
    if json_error is not None:
        response.json = AsyncMock(side_effect=json_error)
    else:
        response.json = AsyncMock(return_value=payload)
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=None)
    return response


def _make_session(*responses: AsyncMock, error: Exception | None = None) -> AsyncMock:
    """Mock ClientSession whose ``request`` yields ``responses`` in order."""
    session = AsyncMock()
    if error is not None:
        session.request = MagicMock(side_effect=error)
    else:
        session.request = MagicMock(side_effect=list(responses))
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=None)
    return session


@pytest.fixture()
def make_response() -> Callable[..., AsyncMock]:
    return _make_response


@pytest.fixture()
def make_session() -> Callable[..., AsyncMock]:
    return _make_session
