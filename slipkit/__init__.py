from .snapshot import Snapshot, SnapshotLine, parse_snapshot
from .diff import diff_snapshots, build_timeline, DiffSummary, Timeline
from .reports import ReportService, parse_report_filters, aggregate_series, top_n
from .cache import TTLCache
from .config import Settings, load_settings
from .export import ReportExporter

__all__ = [
    "Snapshot",
    "SnapshotLine",
    "parse_snapshot",
    "diff_snapshots",
    "build_timeline",
    "DiffSummary",
    "Timeline",
    "ReportService",
    "parse_report_filters",
    "aggregate_series",
    "top_n",
    "TTLCache",
    "Settings",
    "load_settings",
    "ReportExporter",
]
