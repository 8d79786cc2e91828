"""
Top-N rankings.

`top_n` is the generic ranker: group rows by a key, summarize each group,
sort by a primary metric and a secondary tie-break (both descending), and
keep the first `limit` groups. The sort is stable, so groups that tie on both
keys stay in the order they were first encountered.

The rank_* functions are the concrete rankings behind the reports.
"""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, TypeVar

from ..diff.timeline import RevisionRecord
from ..snapshot.model import isoformat_utc
from ..store.records import ShipmentLine

DEFAULT_LIMIT = 10

R = TypeVar("R")
S = TypeVar("S")


def top_n(
    records: Iterable[R],
    group_key: Callable[[R], Hashable],
    summarize: Callable[[Hashable, List[R]], S],
    metric: Callable[[S], float],
    tie_break: Optional[Callable[[S], float]] = None,
    limit: int = DEFAULT_LIMIT
) -> List[S]:
    """
    Rank groups of records.

    Args:
        records: Rows to group
        group_key: Returns the group of a row
        summarize: Builds a summary from (key, rows of that group)
        metric: Primary ranking value of a summary (higher ranks first)
        tie_break: Secondary ranking value (higher ranks first)
        limit: Maximum number of summaries returned

    Returns:
        Up to `limit` summaries, best first

    Raises:
        ValueError: If limit is negative
    """
    if limit < 0:
        raise ValueError(f"limit must not be negative, got {limit}")

    groups: "OrderedDict[Hashable, List[R]]" = OrderedDict()
    for record in records:
        groups.setdefault(group_key(record), []).append(record)

    summaries = [summarize(key, rows) for key, rows in groups.items()]
    if tie_break is None:
        summaries.sort(key=lambda s: -metric(s))
    else:
        summaries.sort(key=lambda s: (-metric(s), -tie_break(s)))
    return summaries[:limit]


def _total_qty(rows: Iterable[ShipmentLine]) -> float:
    return round(sum(row.qty for row in rows), 2)


# =============================================================================
# CUSTOMERS
# =============================================================================

@dataclass
class CustomerRank:
    customer_name: str
    slip_count: int
    total_qty: float
    line_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "customerName": self.customer_name,
            "slipCount": self.slip_count,
            "totalQty": self.total_qty,
            "lineCount": self.line_count,
        }


def rank_customers(rows: Iterable[ShipmentLine], limit: int = DEFAULT_LIMIT) -> List[CustomerRank]:
    """Customers by number of slips, then total quantity shipped."""
    def summarize(name, group):
        return CustomerRank(
            customer_name=name or "Unnamed customer",
            slip_count=len({row.slip_id for row in group}),
            total_qty=_total_qty(group),
            line_count=len(group),
        )

    return top_n(
        rows,
        group_key=lambda row: row.customer_name or "",
        summarize=summarize,
        metric=lambda s: s.slip_count,
        tie_break=lambda s: s.total_qty,
        limit=limit,
    )


# =============================================================================
# VENDORS
# =============================================================================

@dataclass
class VendorRank:
    vendor_id: Optional[int]
    vendor_name: str
    slip_count: int
    total_qty: float
    line_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vendorId": self.vendor_id,
            "vendorName": self.vendor_name,
            "slipCount": self.slip_count,
            "totalQty": self.total_qty,
            "lineCount": self.line_count,
        }


def rank_vendors(
    rows: Iterable[ShipmentLine],
    limit: int = DEFAULT_LIMIT,
    include_null_vendor: bool = False
) -> List[VendorRank]:
    """
    Vendors by number of slips, then total quantity shipped.

    Slips without a vendor are left out unless include_null_vendor is set;
    they then rank together as "Unknown vendor".
    """
    if not include_null_vendor:
        rows = [row for row in rows if row.vendor_id is not None]

    def summarize(vendor_id, group):
        return VendorRank(
            vendor_id=vendor_id,
            vendor_name=group[0].vendor_name or "Unknown vendor",
            slip_count=len({row.slip_id for row in group}),
            total_qty=_total_qty(group),
            line_count=len(group),
        )

    return top_n(
        rows,
        group_key=lambda row: row.vendor_id,
        summarize=summarize,
        metric=lambda s: s.slip_count,
        tie_break=lambda s: s.total_qty,
        limit=limit,
    )


# =============================================================================
# ITEMS
# =============================================================================

ITEM_RANK_MODES = ("qty", "freq")


@dataclass
class ItemRank:
    item_id: int
    sku: str
    name: str
    unit: str
    total_qty: float
    line_count: int
    slip_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "itemId": self.item_id,
            "sku": self.sku,
            "name": self.name,
            "unit": self.unit,
            "totalQty": self.total_qty,
            "lineCount": self.line_count,
            "slipCount": self.slip_count,
        }


def rank_items(
    rows: Iterable[ShipmentLine],
    mode: str = "qty",
    limit: int = DEFAULT_LIMIT
) -> List[ItemRank]:
    """
    Items shipped, ranked by quantity or by frequency.

    Args:
        rows: Shipment lines; lines without an item id are ignored
        mode: "qty" ranks by total quantity then line count, "freq" by line
            count then total quantity
        limit: Maximum number of items

    Raises:
        ValueError: If mode is not "qty" or "freq"
    """
    if mode not in ITEM_RANK_MODES:
        raise ValueError(f"Unknown item ranking mode: {mode!r}")

    def summarize(item_id, group):
        first = group[0]
        return ItemRank(
            item_id=item_id,
            sku=first.sku or "",
            name=first.item_name or f"Item #{item_id}",
            unit=first.unit or "",
            total_qty=_total_qty(group),
            line_count=len(group),
            slip_count=len({row.slip_id for row in group}),
        )

    if mode == "freq":
        metric, tie_break = (lambda s: s.line_count), (lambda s: s.total_qty)
    else:
        metric, tie_break = (lambda s: s.total_qty), (lambda s: s.line_count)

    return top_n(
        (row for row in rows if row.item_id is not None),
        group_key=lambda row: row.item_id,
        summarize=summarize,
        metric=metric,
        tie_break=tie_break,
        limit=limit,
    )


# =============================================================================
# REVISIONS
# =============================================================================

@dataclass
class RevisedSlipRank:
    slip_id: int
    slip_no: str
    customer_name: str
    revision_count: int
    last_revision_at: Optional[datetime]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slipId": self.slip_id,
            "slipNo": self.slip_no,
            "customerName": self.customer_name,
            "revisionCount": self.revision_count,
            "lastRevisionAt": (
                isoformat_utc(self.last_revision_at) if self.last_revision_at else None
            ),
        }


def _as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _revision_summarizer(slips: Dict[int, Any]):
    def summarize(slip_id, group):
        slip = slips.get(slip_id)
        return RevisedSlipRank(
            slip_id=slip_id,
            slip_no=slip.slip_no if slip else f"#{slip_id}",
            customer_name=slip.customer_name if slip else "",
            revision_count=len(group),
            last_revision_at=max(
                (_as_utc(r.created_at) for r in group if r.created_at is not None),
                default=None,
            ),
        )
    return summarize


def rank_revised_slips(
    revisions: Iterable[RevisionRecord],
    slips: Dict[int, Any],
    limit: int = DEFAULT_LIMIT
) -> List[RevisedSlipRank]:
    """
    Slips by number of revisions, then most recent revision first.

    Args:
        revisions: Revisions with slip_id set
        slips: Slip records by id, for slip numbers and customer names
        limit: Maximum number of slips
    """
    return top_n(
        revisions,
        group_key=lambda r: r.slip_id,
        summarize=_revision_summarizer(slips),
        metric=lambda s: s.revision_count,
        tie_break=lambda s: s.last_revision_at.timestamp() if s.last_revision_at else 0.0,
        limit=limit,
    )


def rank_most_edited(
    revisions: Iterable[RevisionRecord],
    slips: Dict[int, Any],
    limit: int = DEFAULT_LIMIT
) -> List[RevisedSlipRank]:
    """Slips by number of revisions only; ties keep their encounter order."""
    return top_n(
        revisions,
        group_key=lambda r: r.slip_id,
        summarize=_revision_summarizer(slips),
        metric=lambda s: s.revision_count,
        limit=limit,
    )
