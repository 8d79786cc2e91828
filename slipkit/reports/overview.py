"""KPI summaries for the reports dashboard."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from ..store.records import ShipmentLine, SlipRecord


def _ratio(numerator: float, denominator: float, digits: int = 2) -> float:
    if denominator <= 0:
        return 0
    return round(numerator / denominator, digits)


@dataclass
class Overview:
    total_slips: int
    total_lines: int
    avg_lines_per_slip: float
    unique_customers: int
    unique_vendors: int
    tracking_percent: float
    total_revisions: int
    avg_revisions_per_slip: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalSlips": self.total_slips,
            "totalLines": self.total_lines,
            "avgLinesPerSlip": self.avg_lines_per_slip,
            "uniqueCustomers": self.unique_customers,
            "uniqueVendors": self.unique_vendors,
            "trackingPercent": self.tracking_percent,
            "totalRevisions": self.total_revisions,
            "avgRevisionsPerSlip": self.avg_revisions_per_slip,
        }


def build_overview(slips: List[SlipRecord], revision_count: int) -> Overview:
    """
    Headline numbers for a set of slips.

    Args:
        slips: Slips already narrowed down by the report filters
        revision_count: Number of revisions stored for those slips

    Returns:
        Overview; averages and percentages are 0 when there are no slips
    """
    total_slips = len(slips)
    total_lines = sum(len(slip.lines) for slip in slips)
    with_tracking = sum(1 for slip in slips if (slip.tracking_number or "").strip())

    return Overview(
        total_slips=total_slips,
        total_lines=total_lines,
        avg_lines_per_slip=_ratio(total_lines, total_slips),
        unique_customers=len({slip.customer_name for slip in slips}),
        unique_vendors=len({slip.vendor_id for slip in slips if slip.vendor_id is not None}),
        tracking_percent=_ratio(with_tracking * 100, total_slips, digits=1),
        total_revisions=revision_count,
        avg_revisions_per_slip=_ratio(revision_count, total_slips),
    )


@dataclass
class ItemSummary:
    total_qty: float
    line_count: int
    slip_count: int
    distinct_items: int
    avg_qty_per_slip: float
    avg_qty_per_line: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalQty": self.total_qty,
            "lineCount": self.line_count,
            "slipCount": self.slip_count,
            "distinctItems": self.distinct_items,
            "avgQtyPerSlip": self.avg_qty_per_slip,
            "avgQtyPerLine": self.avg_qty_per_line,
        }


def build_item_summary(rows: Iterable[ShipmentLine]) -> ItemSummary:
    """Totals over shipped lines: quantity, lines, slips and distinct items."""
    rows = list(rows)
    total_qty = round(sum(row.qty for row in rows), 2)
    line_count = len(rows)
    slip_count = len({row.slip_id for row in rows})

    return ItemSummary(
        total_qty=total_qty,
        line_count=line_count,
        slip_count=slip_count,
        distinct_items=len({row.item_id for row in rows if row.item_id is not None}),
        avg_qty_per_slip=_ratio(total_qty, slip_count),
        avg_qty_per_line=_ratio(total_qty, line_count),
    )
