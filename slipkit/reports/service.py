"""
Report service.

Builds every report payload from a DatabaseClient: it narrows slips down with
the report filters, hands the rows to the aggregation and ranking functions,
and returns plain dicts ready for JSON serialization. Results are served
through an injected TTLCache keyed by report name and filters.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..cache import TTLCache
from ..config import Settings
from ..diff.timeline import RevisionRecord, build_timeline
from ..store.client import DatabaseClient
from ..store.records import SlipRecord, flatten_shipment_lines
from .buckets import Reducer, TimedValue, aggregate_series
from .filters import ReportFilters, ReportMetric
from .overview import build_item_summary, build_overview
from .ranking import (
    rank_customers,
    rank_items,
    rank_most_edited,
    rank_revised_slips,
    rank_vendors,
)

logger = logging.getLogger(__name__)


class ReportService:
    """
    Report façade over a DatabaseClient.

    Every public method takes ReportFilters and returns a dict with a
    "filters" block echoing the effective filters plus the report data.

    Results are cached for the cache TTL and are not invalidated by writes
    to the data source; call self.cache.invalidate() after saving slips.
    """

    def __init__(
        self,
        db: DatabaseClient,
        cache: Optional[TTLCache] = None,
        settings: Optional[Settings] = None
    ):
        """
        Args:
            db: Data source
            cache: Result cache; when omitted one is built from settings
            settings: Cache configuration (default: Settings())
        """
        self.db = db
        self.settings = settings or Settings()
        if cache is None:
            cache = TTLCache(
                ttl_seconds=self.settings.cache_ttl_seconds,
                capacity=self.settings.cache_capacity,
            )
        self.cache = cache

    def _cached(self, report: str, filters: ReportFilters, build: Callable[[], Dict[str, Any]]):
        return self.cache.get_or_compute(f"{report}?{filters.cache_key()}", build)

    def _filtered_slips(self, filters: ReportFilters) -> List[SlipRecord]:
        return [slip for slip in self.db.list_slips() if filters.matches_slip(slip)]

    def _filtered_revisions(self, slips: List[SlipRecord]) -> List[RevisionRecord]:
        slip_ids = {slip.id for slip in slips}
        return [r for r in self.db.list_revisions() if r.slip_id in slip_ids]

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    def overview(self, filters: ReportFilters) -> Dict[str, Any]:
        def build():
            slips = self._filtered_slips(filters)
            revisions = self._filtered_revisions(slips)
            return {
                "filters": filters.to_dict(),
                "kpis": build_overview(slips, len(revisions)).to_dict(),
            }
        return self._cached("overview", filters, build)

    def item_summary(self, filters: ReportFilters) -> Dict[str, Any]:
        def build():
            rows = flatten_shipment_lines(self._filtered_slips(filters))
            return {
                "filters": filters.to_dict(),
                "summary": build_item_summary(rows).to_dict(),
            }
        return self._cached("items/summary", filters, build)

    def timeseries(self, filters: ReportFilters) -> Dict[str, Any]:
        """
        Time series of the filters' metric in the filters' bucket.

        slips counts slips by slip date, qty sums shipped quantity by slip
        date, revisions counts revisions by revision timestamp.
        """
        def build():
            slips = self._filtered_slips(filters)
            if filters.metric is ReportMetric.QTY:
                records = [
                    TimedValue(row.slip_date, row.qty)
                    for row in flatten_shipment_lines(slips)
                ]
                reducer = Reducer.SUM
            elif filters.metric is ReportMetric.REVISIONS:
                records = [
                    TimedValue(r.created_at) for r in self._filtered_revisions(slips)
                ]
                reducer = Reducer.COUNT
            else:
                records = [TimedValue(slip.slip_date) for slip in slips]
                reducer = Reducer.COUNT

            points = aggregate_series(records, filters.bucket, reducer)
            return {
                "filters": filters.to_dict(),
                "points": [point.to_dict() for point in points],
            }
        return self._cached("timeseries", filters, build)

    # ------------------------------------------------------------------
    # Rankings
    # ------------------------------------------------------------------

    def top_customers(self, filters: ReportFilters) -> Dict[str, Any]:
        def build():
            rows = flatten_shipment_lines(self._filtered_slips(filters))
            ranked = rank_customers(rows, limit=filters.limit)
            return {
                "filters": filters.to_dict(),
                "customers": [r.to_dict() for r in ranked],
            }
        return self._cached("customers/top", filters, build)

    def top_vendors(self, filters: ReportFilters, include_null_vendor: bool = False) -> Dict[str, Any]:
        def build():
            rows = flatten_shipment_lines(self._filtered_slips(filters))
            ranked = rank_vendors(
                rows,
                limit=filters.limit,
                include_null_vendor=include_null_vendor or filters.vendor_id is not None,
            )
            payload_filters = dict(filters.to_dict(), includeNullVendor=include_null_vendor)
            return {
                "filters": payload_filters,
                "vendors": [r.to_dict() for r in ranked],
            }
        report = "vendors/top+null" if include_null_vendor else "vendors/top"
        return self._cached(report, filters, build)

    def top_items(self, filters: ReportFilters, mode: str = "qty") -> Dict[str, Any]:
        """Top shipped items; mode "freq" ranks by line count, anything else by quantity."""
        mode = "freq" if mode == "freq" else "qty"

        def build():
            rows = flatten_shipment_lines(self._filtered_slips(filters))
            ranked = rank_items(rows, mode=mode, limit=filters.limit)
            return {
                "filters": dict(filters.to_dict(), mode=mode),
                "items": [r.to_dict() for r in ranked],
            }
        return self._cached(f"items/top/{mode}", filters, build)

    def top_revised_slips(self, filters: ReportFilters) -> Dict[str, Any]:
        def build():
            slips = self._filtered_slips(filters)
            ranked = rank_revised_slips(
                self._filtered_revisions(slips),
                {slip.id: slip for slip in slips},
                limit=filters.limit,
            )
            return {
                "filters": filters.to_dict(),
                "slips": [r.to_dict() for r in ranked],
            }
        return self._cached("revisions/top", filters, build)

    # ------------------------------------------------------------------
    # Revision insights
    # ------------------------------------------------------------------

    def revision_insights(self, filters: ReportFilters) -> Dict[str, Any]:
        """
        Most edited slips plus the revision timeline of one selected slip.

        The selected slip is filters.slip_id, or the most edited slip when no
        slip id is given. A selected slip outside the filters yields
        selectedSlip = None.
        """
        def build():
            slips = self._filtered_slips(filters)
            slips_by_id = {slip.id: slip for slip in slips}
            most_edited = rank_most_edited(
                self._filtered_revisions(slips), slips_by_id, limit=filters.limit
            )

            selected_id = filters.slip_id
            if selected_id is None and most_edited:
                selected_id = most_edited[0].slip_id

            selected = None
            slip = slips_by_id.get(selected_id) if selected_id is not None else None
            if slip is not None:
                timeline = build_timeline(self.db.get_revisions(slip.id))
                if timeline.invalid_count:
                    logger.info(
                        "Slip %s has %d invalid revision snapshot(s)",
                        slip.slip_no, timeline.invalid_count
                    )
                selected = dict(
                    {
                        "slipId": slip.id,
                        "slipNo": slip.slip_no,
                        "customerName": slip.customer_name,
                    },
                    **timeline.to_dict()
                )

            return {
                "filters": dict(filters.to_dict(), slipId=selected_id),
                "mostEdited": [
                    {
                        "slipId": rank.slip_id,
                        "slipNo": rank.slip_no,
                        "customerName": rank.customer_name,
                        "revisionCount": rank.revision_count,
                    }
                    for rank in most_edited
                ],
                "selectedSlip": selected,
            }
        return self._cached("revision-insights", filters, build)
