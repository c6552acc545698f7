"""Cross-source position matching and diff classification."""
from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass

from ..errors import ReconciliationInputInvalid
from ..matching import change_percent, exact_key, loose_key
from ..models import AddressDefiData, DiffType, Position, PositionDiff

logger = logging.getLogger(__name__)

DEFAULT_MATERIALITY_PERCENT = 1.0

_DIFF_ORDER: dict[DiffType, int] = {
    DiffType.REMOVED: 0,
    DiffType.ADDED: 1,
    DiffType.CHANGED: 2,
    DiffType.UNCHANGED: 3,
}


@dataclass(frozen=True)
class DiffCounts:
    removed: int = 0
    added: int = 0
    changed: int = 0
    unchanged: int = 0


def count_diff_types(diffs: list[PositionDiff] | tuple[PositionDiff, ...]) -> DiffCounts:
    counts = Counter(d.diff_type for d in diffs)
    return DiffCounts(
        removed=counts[DiffType.REMOVED],
        added=counts[DiffType.ADDED],
        changed=counts[DiffType.CHANGED],
        unchanged=counts[DiffType.UNCHANGED],
    )


def _sort_key(diff: PositionDiff) -> tuple:
    return (
        _DIFF_ORDER[diff.diff_type],
        -abs(diff.value_diff_usd),
        diff.protocol.lower(),
        diff.chain,
        diff.type.value,
        diff.position_a.id if diff.position_a else "",
        diff.position_b.id if diff.position_b else "",
    )


class _IndexedSide:
    """Exact and loose key indexes over one dataset, keys computed once.

    Entries and loose candidate lists are kept in exact-key order, so nothing
    downstream depends on the order positions arrived in.
    """

    def __init__(self, data: AddressDefiData, label: str) -> None:
        self.entries: list[tuple[Position, str, str]] = []
        self.by_exact: dict[str, Position] = {}
        self.by_loose: dict[str, list[tuple[str, Position]]] = {}

        for position in data.positions:
            if not math.isfinite(position.total_value_usd):
                raise ReconciliationInputInvalid(
                    f"Dataset {label} ({data.source}) has a non-finite value "
                    f"on position '{position.id}'"
                )
            exact = exact_key(position)
            if exact in self.by_exact:
                raise ReconciliationInputInvalid(
                    f"Dataset {label} ({data.source}) holds duplicate positions "
                    f"for key '{exact}'"
                )
            self.by_exact[exact] = position
            self.entries.append((position, exact, loose_key(position)))

        self.entries.sort(key=lambda entry: entry[1])
        for position, exact, loose in self.entries:
            self.by_loose.setdefault(loose, []).append((exact, position))


class ReconciliationEngine:
    """Pair positions from two datasets with an exact key, then a loose key.

    All exact matches are settled first. Remaining A positions then take the
    first unclaimed B candidate sharing their loose key; a claimed B position
    is never paired twice.
    """

    def __init__(self, materiality_percent: float = DEFAULT_MATERIALITY_PERCENT) -> None:
        self.materiality_percent = materiality_percent

    def reconcile(
        self, data_a: AddressDefiData, data_b: AddressDefiData
    ) -> tuple[list[PositionDiff], DiffCounts]:
        side_a = _IndexedSide(data_a, "A")
        side_b = _IndexedSide(data_b, "B")

        diffs: list[PositionDiff] = []
        claimed: set[str] = set()
        unmatched: list[tuple[Position, str]] = []

        for pos_a, exact, loose in side_a.entries:
            pos_b = side_b.by_exact.get(exact)
            if pos_b is None:
                unmatched.append((pos_a, loose))
                continue
            claimed.add(exact)
            diffs.append(self._classify_pair(pos_a, pos_b))

        for pos_a, loose in unmatched:
            match = self._find_loose_match(side_b, loose, claimed)
            if match is None:
                diffs.append(
                    PositionDiff(
                        protocol=pos_a.protocol.name,
                        chain=pos_a.protocol.chain,
                        type=pos_a.type,
                        diff_type=DiffType.REMOVED,
                        position_a=pos_a,
                        value_diff_usd=-pos_a.total_value_usd,
                        value_diff_percent=-100.0,
                    )
                )
                continue

            matched_key, pos_b = match
            claimed.add(matched_key)
            diffs.append(self._classify_pair(pos_a, pos_b))

        for pos_b, exact, _ in side_b.entries:
            if exact in claimed:
                continue
            diffs.append(
                PositionDiff(
                    protocol=pos_b.protocol.name,
                    chain=pos_b.protocol.chain,
                    type=pos_b.type,
                    diff_type=DiffType.ADDED,
                    position_b=pos_b,
                    value_diff_usd=pos_b.total_value_usd,
                    value_diff_percent=100.0,
                )
            )

        diffs.sort(key=_sort_key)
        counts = count_diff_types(diffs)
        logger.info(
            "Reconciled %s vs %s: %d removed, %d added, %d changed, %d unchanged",
            data_a.source, data_b.source,
            counts.removed, counts.added, counts.changed, counts.unchanged,
        )
        return diffs, counts

    @staticmethod
    def _find_loose_match(
        side_b: _IndexedSide, loose: str, claimed: set[str]
    ) -> tuple[str, Position] | None:
        for candidate_key, candidate in side_b.by_loose.get(loose, []):
            if candidate_key not in claimed:
                return candidate_key, candidate
        return None

    def _classify_pair(self, pos_a: Position, pos_b: Position) -> PositionDiff:
        value_diff = pos_b.total_value_usd - pos_a.total_value_usd
        percent = change_percent(pos_a.total_value_usd, pos_b.total_value_usd)
        diff_type = (
            DiffType.CHANGED
            if abs(percent) > self.materiality_percent
            else DiffType.UNCHANGED
        )
        return PositionDiff(
            protocol=pos_a.protocol.name,
            chain=pos_a.protocol.chain,
            type=pos_a.type,
            diff_type=diff_type,
            position_a=pos_a,
            position_b=pos_b,
            value_diff_usd=value_diff,
            value_diff_percent=percent,
        )
