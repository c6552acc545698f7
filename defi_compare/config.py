"""Load config.yaml into frozen dataclasses, with ${VAR} interpolation and validation."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .chains import PRIMARY_NETWORKS

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


def _default_backoff() -> dict[int, float]:
    return {202: 3.0, 429: 5.0}


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    backoff: dict[int, float] = field(default_factory=_default_backoff)


@dataclass(frozen=True)
class ZerionConfig:
    api_key: str = ""
    base_url: str = "https://api.zerion.io/v1"
    timeout: int = 30
    positions_filter: str = "no_filter"
    max_pages: int = 10
    retry: RetryConfig = field(default_factory=RetryConfig)


@dataclass(frozen=True)
class OneKeyConfig:
    auth_token: str = ""
    base_url: str = "https://wallet.onekeycn.com/wallet/v1/portfolio/positions"
    timeout: int = 30
    locale: str = "en"
    platform: str = "web"
    version: str = "5.0.0"
    retry: RetryConfig = field(default_factory=RetryConfig)


@dataclass(frozen=True)
class ProvidersConfig:
    zerion: ZerionConfig = field(default_factory=ZerionConfig)
    onekey: OneKeyConfig = field(default_factory=OneKeyConfig)


@dataclass(frozen=True)
class CompareConfig:
    materiality_threshold_percent: float = 1.0
    align_chain_scope: bool = True


@dataclass(frozen=True)
class NetworksConfig:
    primary: tuple[str, ...] = PRIMARY_NETWORKS


@dataclass(frozen=True)
class AppConfig:
    providers: ProvidersConfig = field(default_factory=ProvidersConfig)
    compare: CompareConfig = field(default_factory=CompareConfig)
    networks: NetworksConfig = field(default_factory=NetworksConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_retry(raw: dict[str, Any]) -> RetryConfig:
    backoff_raw = raw.get("backoff")
    backoff = (
        {int(status): float(delay) for status, delay in backoff_raw.items()}
        if backoff_raw is not None
        else _default_backoff()
    )
    return RetryConfig(
        max_attempts=int(raw.get("max_attempts", 3)),
        backoff=backoff,
    )


def _build_zerion(raw: dict[str, Any]) -> ZerionConfig:
    return ZerionConfig(
        api_key=raw.get("api_key", ""),
        base_url=raw.get("base_url", ZerionConfig.base_url),
        timeout=int(raw.get("timeout", 30)),
        positions_filter=raw.get("positions_filter", "no_filter"),
        max_pages=int(raw.get("max_pages", 10)),
        retry=_build_retry(raw.get("retry", {})),
    )


def _build_onekey(raw: dict[str, Any]) -> OneKeyConfig:
    return OneKeyConfig(
        auth_token=raw.get("auth_token", ""),
        base_url=raw.get("base_url", OneKeyConfig.base_url),
        timeout=int(raw.get("timeout", 30)),
        locale=raw.get("locale", "en"),
        platform=raw.get("platform", "web"),
        version=str(raw.get("version", "5.0.0")),
        retry=_build_retry(raw.get("retry", {})),
    )


def _build_compare(raw: dict[str, Any]) -> CompareConfig:
    return CompareConfig(
        materiality_threshold_percent=float(
            raw.get("materiality_threshold_percent", 1.0)
        ),
        align_chain_scope=bool(raw.get("align_chain_scope", True)),
    )


def _build_networks(raw: dict[str, Any]) -> NetworksConfig:
    primary = raw.get("primary")
    if primary is None:
        return NetworksConfig()
    return NetworksConfig(primary=tuple(str(c).lower() for c in primary))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)
    providers = raw.get("providers", {})

    cfg = AppConfig(
        providers=ProvidersConfig(
            zerion=_build_zerion(providers.get("zerion", {})),
            onekey=_build_onekey(providers.get("onekey", {})),
        ),
        compare=_build_compare(raw.get("compare", {})),
        networks=_build_networks(raw.get("networks", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration. Credentials are checked at use time."""
    for name, retry in (
        ("zerion", cfg.providers.zerion.retry),
        ("onekey", cfg.providers.onekey.retry),
    ):
        if retry.max_attempts < 1:
            raise ValueError(f"Provider '{name}' needs max_attempts >= 1")
        for status, delay in retry.backoff.items():
            if delay < 0:
                raise ValueError(
                    f"Provider '{name}' has negative backoff for HTTP {status}"
                )

    if cfg.providers.zerion.max_pages < 1:
        raise ValueError("Provider 'zerion' needs max_pages >= 1")

    if cfg.compare.materiality_threshold_percent < 0:
        raise ValueError("materiality_threshold_percent must not be negative")

    if not cfg.networks.primary:
        raise ValueError("At least one primary network must be configured")
