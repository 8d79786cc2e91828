"""Packing slip snapshot model: parsing stored revisions and building new ones."""

from .model import (
    Snapshot,
    SnapshotLine,
    LineKey,
    SnapshotParseError,
    line_key,
    parse_snapshot,
    try_parse_snapshot,
    snapshot_from_slip,
    dump_snapshot,
    isoformat_utc,
)

__all__ = [
    "Snapshot",
    "SnapshotLine",
    "LineKey",
    "SnapshotParseError",
    "line_key",
    "parse_snapshot",
    "try_parse_snapshot",
    "snapshot_from_slip",
    "dump_snapshot",
    "isoformat_utc",
]
