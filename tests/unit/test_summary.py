"""Unit tests for comparison summary statistics."""
from __future__ import annotations

import pytest

from defi_compare.services.reconciliation import ReconciliationEngine
from defi_compare.services.summary import SummaryAggregator


@pytest.fixture()
def aggregator() -> SummaryAggregator:
    return SummaryAggregator()


class TestCounts:
    def test_counts_mirror_diff_list(self, aggregator, make_position, make_dataset) -> None:
        a = make_dataset(
            [
                make_position(protocol_id="same", value=10.0),
                make_position(protocol_id="grow", value=10.0),
                make_position(protocol_id="gone", value=10.0),
            ]
        )
        b = make_dataset(
            [
                make_position(protocol_id="same", value=10.0),
                make_position(protocol_id="grow", value=20.0),
                make_position(protocol_id="new", value=1.0),
                make_position(protocol_id="new-2", value=1.0),
            ]
        )
        diffs, counts = ReconciliationEngine().reconcile(a, b)

        summary = aggregator.summarize(a, b, diffs)

        assert summary.positions_only_in_a == counts.removed == 1
        assert summary.positions_only_in_b == counts.added == 2
        assert summary.changed_positions == counts.changed == 1
        assert summary.common_positions == counts.unchanged == 1


class TestTotals:
    def test_totals_use_declared_dataset_totals(
        self, aggregator, make_position, make_dataset
    ) -> None:
        a = make_dataset([make_position(value=1000.0)], reported_total=2000.0)
        b = make_dataset([make_position(value=1100.0)])

        summary = aggregator.summarize(a, b, [])

        assert summary.total_value_diff_usd == -900.0
        assert summary.total_value_diff_percent == pytest.approx(-45.0)

    def test_zero_total_a(self, aggregator, make_dataset, make_position) -> None:
        a = make_dataset([])
        b = make_dataset([make_position(value=5.0)])

        summary = aggregator.summarize(a, b, [])

        assert summary.total_value_diff_usd == 5.0
        assert summary.total_value_diff_percent == 100.0

    def test_both_empty(self, aggregator, make_dataset) -> None:
        summary = aggregator.summarize(make_dataset([]), make_dataset([]), [])

        assert summary.total_value_diff_usd == 0.0
        assert summary.total_value_diff_percent == 0.0
        assert summary.common_positions == 0


class TestEndToEnd:
    def test_single_lending_position(self, make_position, make_dataset) -> None:
        a = make_dataset([make_position(value=1000.0)], source="zerion")
        b = make_dataset([make_position(value=1100.0)], source="onekey")
        diffs, _ = ReconciliationEngine().reconcile(a, b)

        summary = SummaryAggregator().summarize(a, b, diffs)

        assert summary.to_dict() == {
            "totalValueDiffUSD": 100.0,
            "totalValueDiffPercent": 10.0,
            "positionsOnlyInA": 0,
            "positionsOnlyInB": 0,
            "commonPositions": 0,
            "changedPositions": 1,
        }
        assert [(d.diff_type.value, d.value_diff_percent) for d in diffs] == [
            ("changed", 10.0)
        ]
