"""Report building: filters, time buckets, rankings, KPI summaries and the report service."""

from .buckets import (
    Bucket,
    Reducer,
    TimedValue,
    SeriesPoint,
    bucket_key,
    aggregate_series,
)
from .filters import (
    ReportFilters,
    ReportMetric,
    parse_report_filters,
    normalize_limit,
)
from .ranking import (
    top_n,
    rank_customers,
    rank_vendors,
    rank_items,
    rank_revised_slips,
    rank_most_edited,
    CustomerRank,
    VendorRank,
    ItemRank,
    RevisedSlipRank,
)
from .overview import build_overview, build_item_summary, Overview, ItemSummary
from .service import ReportService

__all__ = [
    # Time buckets
    "Bucket",
    "Reducer",
    "TimedValue",
    "SeriesPoint",
    "bucket_key",
    "aggregate_series",
    # Filters
    "ReportFilters",
    "ReportMetric",
    "parse_report_filters",
    "normalize_limit",
    # Rankings
    "top_n",
    "rank_customers",
    "rank_vendors",
    "rank_items",
    "rank_revised_slips",
    "rank_most_edited",
    "CustomerRank",
    "VendorRank",
    "ItemRank",
    "RevisedSlipRank",
    # Summaries
    "build_overview",
    "build_item_summary",
    "Overview",
    "ItemSummary",
    # Service
    "ReportService",
]
