"""
Calendar bucketing for trend reports.

Timestamped values are grouped into UTC calendar buckets (day, ISO week or
month) and each bucket is reduced to a single number. Buckets without records
are not emitted, so consecutive points are not necessarily contiguous.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Tuple, Union


class Bucket(Enum):
    """Calendar granularity of a time series."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Reducer(Enum):
    """How the records of one bucket are reduced to a value."""
    COUNT = "count"
    SUM = "sum"


@dataclass(frozen=True)
class TimedValue:
    """A value observed at a point in time."""
    timestamp: Union[datetime, date]
    value: float = 1.0


@dataclass(frozen=True)
class SeriesPoint:
    """One bucket of a time series."""
    bucket: str
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {"bucket": self.bucket, "value": self.value}


def _utc_date(timestamp: Union[datetime, date]) -> date:
    if isinstance(timestamp, datetime):
        if timestamp.tzinfo is not None:
            timestamp = timestamp.astimezone(timezone.utc)
        return timestamp.date()
    if isinstance(timestamp, date):
        return timestamp
    raise TypeError(f"Expected datetime or date, got {type(timestamp).__name__}")


def bucket_key(timestamp: Union[datetime, date], bucket: Bucket) -> str:
    """
    Calendar bucket label for a timestamp.

    Args:
        timestamp: Aware datetimes are converted to UTC; naive datetimes and
            dates are taken as UTC already
        bucket: Granularity

    Returns:
        "YYYY-MM-DD" (daily), "YYYY-Www" ISO week (weekly) or "YYYY-MM" (monthly)

    Example:
        >>> bucket_key(datetime(2024, 1, 1), Bucket.WEEKLY)
        '2024-W01'
    """
    day = _utc_date(timestamp)
    if bucket is Bucket.DAILY:
        return day.strftime("%Y-%m-%d")
    if bucket is Bucket.MONTHLY:
        return day.strftime("%Y-%m")
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def aggregate_series(
    records: Iterable[Union[TimedValue, Tuple[Union[datetime, date], float]]],
    bucket: Bucket,
    reducer: Reducer
) -> List[SeriesPoint]:
    """
    Group records into calendar buckets and reduce each bucket.

    Args:
        records: TimedValue instances or (timestamp, value) pairs
        bucket: Calendar granularity
        reducer: COUNT counts records, SUM adds their values

    Returns:
        One SeriesPoint per non-empty bucket, ascending by bucket label
    """
    totals: Dict[str, float] = defaultdict(float)
    for record in records:
        if isinstance(record, TimedValue):
            timestamp, value = record.timestamp, record.value
        else:
            timestamp, value = record
        key = bucket_key(timestamp, bucket)
        if reducer is Reducer.COUNT:
            totals[key] += 1
        else:
            totals[key] += value

    points = []
    for key in sorted(totals):
        value = totals[key]
        if reducer is Reducer.COUNT:
            value = int(value)
        points.append(SeriesPoint(bucket=key, value=value))
    return points
