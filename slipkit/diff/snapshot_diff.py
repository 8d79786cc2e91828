"""
Snapshot diff engine for comparing packing slip revisions.

This module compares two snapshots of the same slip and produces a compact
summary suitable for an audit view:
- Lines are matched by identity key (item + box name + box number), not by
  row position
- Lines sharing a key are aggregated (count and summed quantity) before
  comparison, so reordering lines or splitting/merging identical lines does
  not register as a change
- Header fields are compared case-insensitively

CORE PRINCIPLES:
1. Only net presence and quantity per (item, box) matters
2. A line moved to another box is one removal plus one addition, not a "move"
3. Quantity changes are counted per key, not by magnitude
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable

from ..snapshot.model import LineKey, Snapshot, SnapshotLine

# Two aggregate quantities closer than this are considered equal
QTY_TOLERANCE = 1e-6


@dataclass
class LineAggregate:
    """Number of lines and total quantity recorded under one LineKey."""
    count: int = 0
    qty: float = 0.0


@dataclass
class DiffSummary:
    """
    Summary of what changed between two snapshots of a slip.

    lines_added / lines_removed count individual lines (a key that went from
    one line to three contributes 2 to lines_added). qty_changed counts keys
    present on both sides whose total quantity differs.
    """
    lines_added: int = 0
    lines_removed: int = 0
    qty_changed: int = 0
    customer_changed: bool = False
    tracking_changed: bool = False
    box_changed: bool = False

    def has_any_change(self) -> bool:
        """Returns True if any change was detected."""
        return (
            self.lines_added > 0 or
            self.lines_removed > 0 or
            self.qty_changed > 0 or
            self.customer_changed or
            self.tracking_changed or
            self.box_changed
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "linesAdded": self.lines_added,
            "linesRemoved": self.lines_removed,
            "qtyChanged": self.qty_changed,
            "customerChanged": self.customer_changed,
            "trackingChanged": self.tracking_changed,
            "boxChanged": self.box_changed,
        }


def aggregate_lines(lines: Iterable[SnapshotLine]) -> Dict[LineKey, LineAggregate]:
    """
    Reduce a list of snapshot lines to per-key aggregates.

    Args:
        lines: Snapshot lines in any order

    Returns:
        Dictionary mapping LineKey -> LineAggregate (count and summed qty)
    """
    aggregates: Dict[LineKey, LineAggregate] = {}
    for line in lines:
        aggregate = aggregates.get(line.key)
        if aggregate is None:
            aggregate = aggregates[line.key] = LineAggregate()
        aggregate.count += 1
        aggregate.qty += line.qty
    return aggregates


def _changed(previous: str, current: str) -> bool:
    return previous.lower() != current.lower()


def diff_snapshots(previous: Snapshot, current: Snapshot) -> DiffSummary:
    """
    Compare two snapshots of a slip and summarize the differences.

    Args:
        previous: Earlier snapshot (baseline)
        current: Later snapshot (comparison)

    Returns:
        DiffSummary with line counts and header change flags
    """
    prev_map = aggregate_lines(previous.lines)
    next_map = aggregate_lines(current.lines)

    summary = DiffSummary(
        customer_changed=_changed(previous.customer_name, current.customer_name),
        tracking_changed=_changed(previous.tracking_number, current.tracking_number),
        box_changed=_changed(previous.box_number, current.box_number),
    )

    for key in set(prev_map) | set(next_map):
        prev = prev_map.get(key)
        nxt = next_map.get(key)

        prev_count = prev.count if prev else 0
        next_count = nxt.count if nxt else 0

        if next_count > prev_count:
            summary.lines_added += next_count - prev_count
        if prev_count > next_count:
            summary.lines_removed += prev_count - next_count

        if prev and nxt and abs(prev.qty - nxt.qty) > QTY_TOLERANCE:
            summary.qty_changed += 1

    return summary
