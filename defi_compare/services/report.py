"""Human-readable output for a comparison: protocol roll-up and text report."""
from __future__ import annotations

from ..matching import protocol_key
from ..models import CompareResult, DiffType, PositionDiff, ProtocolTotals

_DIFF_ICONS: dict[DiffType, str] = {
    DiffType.ADDED: "+",
    DiffType.REMOVED: "-",
    DiffType.CHANGED: "~",
    DiffType.UNCHANGED: "=",
}


def aggregate_by_protocol(result: CompareResult) -> dict[str, ProtocolTotals]:
    """Sum both sides' position values per ``(protocol id, chain)``."""
    totals: dict[str, list] = {}

    for diff in result.position_diffs:
        position = diff.position_a or diff.position_b
        if position is None:
            continue
        key = protocol_key(position.protocol.id, position.protocol.chain)
        entry = totals.setdefault(key, [diff.protocol, diff.chain, 0.0, 0.0])
        if diff.position_a:
            entry[2] += diff.position_a.total_value_usd
        if diff.position_b:
            entry[3] += diff.position_b.total_value_usd

    aggregated: dict[str, ProtocolTotals] = {}
    for key, (protocol, chain, total_a, total_b) in totals.items():
        diff_usd = total_b - total_a
        aggregated[key] = ProtocolTotals(
            protocol=protocol,
            chain=chain,
            total_a=total_a,
            total_b=total_b,
            diff=diff_usd,
            diff_percent=diff_usd * 100 / total_a if total_a > 0 else 0.0,
        )
    return aggregated


def _format_diff(diff: PositionDiff) -> str:
    icon = _DIFF_ICONS[diff.diff_type]
    position = diff.position_a or diff.position_b
    lines = [f"[{icon}] {diff.protocol} ({diff.chain}) - {diff.type.value}"]
    if position is not None:
        lines.append(f"    Value: ${position.total_value_usd:,.2f}")
    lines.append(
        f"    Diff: ${diff.value_diff_usd:,.2f} ({diff.value_diff_percent:.2f}%)"
    )
    return "\n".join(lines)


def build_compare_report(result: CompareResult, by_protocol: bool = False) -> str:
    """Render a comparison as plain text, most material differences first."""
    summary = result.summary
    a = result.address_a
    b = result.address_b
    rule = "=" * 60
    sub_rule = "-" * 40

    lines = [
        rule,
        "DeFi Position Comparison Report",
        rule,
        "",
        f"Source A: {a.source} ({a.address})",
        f"Source B: {b.source} ({b.address})",
        "",
        sub_rule,
        "Totals",
        sub_rule,
        f"A total: ${a.total_value_usd:,.2f}",
        f"B total: ${b.total_value_usd:,.2f}",
        f"Diff: ${summary.total_value_diff_usd:,.2f} "
        f"({summary.total_value_diff_percent:.2f}%)",
        "",
        sub_rule,
        "Positions",
        sub_rule,
        f"Only in A: {summary.positions_only_in_a}",
        f"Only in B: {summary.positions_only_in_b}",
        f"Common: {summary.common_positions}",
        f"Changed: {summary.changed_positions}",
        "",
    ]

    if result.position_diffs:
        lines.extend([sub_rule, "Position Diffs", sub_rule])
        for diff in result.position_diffs:
            lines.append(_format_diff(diff))
            lines.append("")

    if by_protocol:
        lines.extend([sub_rule, "By Protocol", sub_rule])
        for totals in aggregate_by_protocol(result).values():
            lines.append(
                f"{totals.protocol} ({totals.chain}): "
                f"A ${totals.total_a:,.2f} · B ${totals.total_b:,.2f} · "
                f"Diff ${totals.diff:,.2f} ({totals.diff_percent:.2f}%)"
            )
        lines.append("")

    lines.append(rule)
    return "\n".join(lines)
