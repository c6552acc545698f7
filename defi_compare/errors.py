"""Error taxonomy shared by the fetch, normalization and reconciliation layers."""
from __future__ import annotations


class DefiCompareError(Exception):
    """Base class for every failure surfaced by this package."""


class ConfigurationMissing(DefiCompareError):
    """A provider credential is absent; raised before any network call."""


class ProviderUnavailable(DefiCompareError):
    """A provider call failed after its retry budget, or returned an unusable body."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ReconciliationInputInvalid(DefiCompareError):
    """A canonical dataset violates its own invariants."""
