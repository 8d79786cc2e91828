"""Packing slip revision diffing: snapshot diffs and revision timelines."""

from .snapshot_diff import (
    diff_snapshots,
    aggregate_lines,
    DiffSummary,
    LineAggregate,
    QTY_TOLERANCE,
)

from .timeline import (
    build_timeline,
    RevisionRecord,
    TimelineEntry,
    DiffTotals,
    Timeline,
)

__all__ = [
    # Snapshot diff
    "diff_snapshots",
    "aggregate_lines",
    "DiffSummary",
    "LineAggregate",
    "QTY_TOLERANCE",
    # Revision timeline
    "build_timeline",
    "RevisionRecord",
    "TimelineEntry",
    "DiffTotals",
    "Timeline",
]
