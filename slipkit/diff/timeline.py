"""
Revision timeline for a single packing slip.

Walks the stored revisions of one slip in version order and diffs each valid
snapshot against the last valid one before it.

An unparseable snapshot never aborts the walk. It is reported as an invalid
entry and it breaks the diff chain: the next valid snapshot starts a new
baseline instead of being compared with anything older.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from ..snapshot.model import Snapshot, SnapshotParseError, isoformat_utc, parse_snapshot
from .snapshot_diff import DiffSummary, diff_snapshots

logger = logging.getLogger(__name__)


@dataclass
class RevisionRecord:
    """A stored revision as read from the data source."""
    revision_id: int
    version: int
    created_at: datetime
    snapshot: Union[str, bytes, Dict[str, Any]]
    slip_id: Optional[int] = None


@dataclass
class TimelineEntry:
    """One revision's contribution to the timeline."""
    revision_id: int
    version: int
    created_at: datetime
    invalid_snapshot: bool
    line_count: int
    customer_name: str
    diff_summary: Optional[DiffSummary] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "revisionId": self.revision_id,
            "version": self.version,
            "createdAt": isoformat_utc(self.created_at),
            "invalidSnapshot": self.invalid_snapshot,
            "lineCount": self.line_count,
            "customerName": self.customer_name,
            "diffSummary": self.diff_summary.to_dict() if self.diff_summary else None,
        }


@dataclass
class DiffTotals:
    """
    Running totals over every diff in a timeline.

    The *_changed header fields count revisions in which that header changed.
    """
    lines_added: int = 0
    lines_removed: int = 0
    qty_changed: int = 0
    customer_changed: int = 0
    tracking_changed: int = 0
    box_changed: int = 0

    def add(self, diff: DiffSummary) -> None:
        self.lines_added += diff.lines_added
        self.lines_removed += diff.lines_removed
        self.qty_changed += diff.qty_changed
        if diff.customer_changed:
            self.customer_changed += 1
        if diff.tracking_changed:
            self.tracking_changed += 1
        if diff.box_changed:
            self.box_changed += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "linesAdded": self.lines_added,
            "linesRemoved": self.lines_removed,
            "qtyChanged": self.qty_changed,
            "customerChanged": self.customer_changed,
            "trackingChanged": self.tracking_changed,
            "boxChanged": self.box_changed,
        }


@dataclass
class Timeline:
    """Complete revision history of one slip."""
    entries: List[TimelineEntry] = field(default_factory=list)
    totals: DiffTotals = field(default_factory=DiffTotals)
    invalid_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "totalRevisions": len(self.entries),
            "invalidSnapshots": self.invalid_count,
            "summary": self.totals.to_dict(),
            "timeline": [entry.to_dict() for entry in self.entries],
        }


def build_timeline(revisions: Iterable[RevisionRecord]) -> Timeline:
    """
    Build the revision timeline of a slip.

    Args:
        revisions: All stored revisions of one slip (any order; they are
            walked in ascending version order)

    Returns:
        Timeline with one entry per revision, diff totals and the number of
        invalid snapshots
    """
    timeline = Timeline()
    last_valid: Optional[Snapshot] = None

    for revision in sorted(revisions, key=lambda r: r.version):
        try:
            snapshot = parse_snapshot(revision.snapshot)
        except SnapshotParseError as e:
            logger.warning(
                "Skipping invalid snapshot for revision %s (version %s): %s",
                revision.revision_id, revision.version, e
            )
            timeline.invalid_count += 1
            last_valid = None
            timeline.entries.append(TimelineEntry(
                revision_id=revision.revision_id,
                version=revision.version,
                created_at=revision.created_at,
                invalid_snapshot=True,
                line_count=0,
                customer_name="",
            ))
            continue

        diff = None
        if last_valid is not None and revision.version > 1:
            diff = diff_snapshots(last_valid, snapshot)
            timeline.totals.add(diff)

        last_valid = snapshot
        timeline.entries.append(TimelineEntry(
            revision_id=revision.revision_id,
            version=revision.version,
            created_at=revision.created_at,
            invalid_snapshot=False,
            line_count=len(snapshot.lines),
            customer_name=snapshot.customer_name,
            diff_summary=diff,
        ))

    return timeline
