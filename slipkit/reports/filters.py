"""
Report filter parsing.

Every report accepts the same query parameters. Parsing is permissive: a
missing or malformed parameter falls back to its default instead of failing
the request.

Parameters:
    from, to    Inclusive date range, YYYY-MM-DD (default: the last 30 days
                ending today, UTC). A reversed range is swapped.
    vendorId    Restrict to one vendor (positive integer)
    customer    Case-insensitive substring of the customer name
    bucket      daily | weekly | monthly (default weekly)
    metric      slips | qty | revisions (default slips)
    limit       Positive integer, capped at the configured maximum (default 10)
    slipId      Slip selected in the revision insights report
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode

from ..config import Settings
from .buckets import Bucket

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class ReportMetric(Enum):
    """What a time series counts."""
    SLIPS = "slips"
    QTY = "qty"
    REVISIONS = "revisions"


@dataclass(frozen=True)
class ReportFilters:
    """Normalized report filters."""
    from_date: date
    to_date: date
    vendor_id: Optional[int] = None
    customer: str = ""
    bucket: Bucket = Bucket.WEEKLY
    metric: ReportMetric = ReportMetric.SLIPS
    limit: int = 10
    slip_id: Optional[int] = None

    @property
    def from_datetime(self) -> datetime:
        """Start of the range (inclusive), midnight UTC."""
        return datetime.combine(self.from_date, time.min, tzinfo=timezone.utc)

    @property
    def to_exclusive(self) -> datetime:
        """End of the range (exclusive), midnight UTC after to_date."""
        return datetime.combine(self.to_date + timedelta(days=1), time.min, tzinfo=timezone.utc)

    def matches_slip(self, slip) -> bool:
        """
        Check whether a slip falls inside the filters.

        Applies the date window on slip_date, the vendor filter and the
        customer substring filter. bucket/metric/limit/slip_id do not filter.
        """
        slip_date = slip.slip_date
        if slip_date.tzinfo is None:
            slip_date = slip_date.replace(tzinfo=timezone.utc)
        if not (self.from_datetime <= slip_date < self.to_exclusive):
            return False
        if self.vendor_id is not None and slip.vendor_id != self.vendor_id:
            return False
        if self.customer and self.customer.lower() not in (slip.customer_name or "").lower():
            return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Echo of the effective filters, as returned with every report."""
        return {
            "from": self.from_date.isoformat(),
            "to": self.to_date.isoformat(),
            "vendorId": self.vendor_id,
            "customer": self.customer,
            "bucket": self.bucket.value,
            "metric": self.metric.value,
            "limit": self.limit,
            "slipId": self.slip_id,
        }

    def cache_key(self) -> str:
        """Canonical query string identifying these filters."""
        params = {k: ("" if v is None else v) for k, v in self.to_dict().items()}
        return urlencode(sorted(params.items()))


def _first(params: Mapping[str, Any], name: str) -> Optional[str]:
    """Single string value of a parameter (lists from parse_qs use the first)."""
    value = params.get(name)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    return str(value)


def _parse_date_only(value: Optional[str]) -> Optional[date]:
    if not value or not _DATE_ONLY.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _positive_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        number = float(value.strip())
    except ValueError:
        return None
    if not math.isfinite(number) or not number.is_integer() or number <= 0:
        return None
    return int(number)


def normalize_limit(value: Optional[str], fallback: int = 10, cap: int = 100) -> int:
    """Positive integer limit capped at `cap`, or `fallback` when unusable."""
    parsed = _positive_int(value)
    if parsed is None:
        return fallback
    return min(parsed, cap)


def parse_report_filters(
    params: Mapping[str, Any],
    today: Optional[date] = None,
    settings: Optional[Settings] = None
) -> ReportFilters:
    """
    Parse report query parameters.

    Args:
        params: Query parameters (str values, or lists of str as produced by
            urllib.parse.parse_qs)
        today: Reference date for the default range (default: today in UTC)
        settings: Limit and range defaults (default: Settings())

    Returns:
        ReportFilters with every field normalized
    """
    settings = settings or Settings()
    if today is None:
        today = datetime.now(timezone.utc).date()

    to_default = today
    from_default = to_default - timedelta(days=settings.default_range_days - 1)

    from_date = _parse_date_only(_first(params, "from")) or from_default
    to_date = _parse_date_only(_first(params, "to")) or to_default
    if from_date > to_date:
        from_date, to_date = to_date, from_date

    bucket_param = _first(params, "bucket")
    try:
        bucket = Bucket(bucket_param)
    except ValueError:
        bucket = Bucket.WEEKLY

    metric_param = _first(params, "metric")
    try:
        metric = ReportMetric(metric_param)
    except ValueError:
        metric = ReportMetric.SLIPS

    return ReportFilters(
        from_date=from_date,
        to_date=to_date,
        vendor_id=_positive_int(_first(params, "vendorId")),
        customer=(_first(params, "customer") or "").strip(),
        bucket=bucket,
        metric=metric,
        limit=normalize_limit(
            _first(params, "limit"),
            fallback=settings.default_limit,
            cap=settings.max_limit,
        ),
        slip_id=_positive_int(_first(params, "slipId")),
    )
