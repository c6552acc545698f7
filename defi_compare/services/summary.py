"""Aggregate statistics over a reconciliation."""
from __future__ import annotations

from ..matching import change_percent
from ..models import AddressDefiData, CompareSummary, PositionDiff
from .reconciliation import count_diff_types


class SummaryAggregator:
    """Reduce a classified diff list plus both dataset totals to a summary.

    Counts come from the diff list only, so summary and detail always agree.
    Value deltas use each dataset's declared total, which may cover positions
    the per-position diff never pairs.
    """

    def summarize(
        self,
        data_a: AddressDefiData,
        data_b: AddressDefiData,
        diffs: list[PositionDiff] | tuple[PositionDiff, ...],
    ) -> CompareSummary:
        counts = count_diff_types(diffs)
        return CompareSummary(
            total_value_diff_usd=data_b.total_value_usd - data_a.total_value_usd,
            total_value_diff_percent=change_percent(
                data_a.total_value_usd, data_b.total_value_usd
            ),
            positions_only_in_a=counts.removed,
            positions_only_in_b=counts.added,
            common_positions=counts.unchanged,
            changed_positions=counts.changed,
        )
