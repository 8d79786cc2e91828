"""
Unit tests for calendar bucketing.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from slipkit.reports.buckets import (
    Bucket,
    Reducer,
    SeriesPoint,
    TimedValue,
    aggregate_series,
    bucket_key,
)


class TestBucketKey:
    """Tests for bucket labels."""

    @pytest.mark.parametrize("day,bucket,expected", [
        (date(2024, 1, 1), Bucket.DAILY, "2024-01-01"),
        (date(2024, 1, 1), Bucket.WEEKLY, "2024-W01"),
        (date(2024, 1, 1), Bucket.MONTHLY, "2024-01"),
        (date(2024, 12, 30), Bucket.WEEKLY, "2025-W01"),
        (date(2021, 1, 3), Bucket.WEEKLY, "2020-W53"),
        (date(2024, 2, 29), Bucket.MONTHLY, "2024-02"),
    ])
    def test_labels(self, day, bucket, expected):
        assert bucket_key(day, bucket) == expected

    def test_aware_datetime_is_converted_to_utc(self):
        """23:30 on Jan 31 at UTC-5 is Feb 1 in UTC."""
        eastern = timezone(timedelta(hours=-5))
        ts = datetime(2024, 1, 31, 23, 30, tzinfo=eastern)

        assert bucket_key(ts, Bucket.DAILY) == "2024-02-01"
        assert bucket_key(ts, Bucket.MONTHLY) == "2024-02"

    def test_naive_datetime_is_taken_as_utc(self):
        assert bucket_key(datetime(2024, 1, 31, 23, 30), Bucket.DAILY) == "2024-01-31"

    def test_rejects_non_dates(self):
        with pytest.raises(TypeError):
            bucket_key("2024-01-01", Bucket.DAILY)


class TestAggregateSeries:
    """Tests for aggregate_series."""

    def test_count(self):
        points = aggregate_series(
            [
                TimedValue(date(2024, 1, 2)),
                TimedValue(date(2024, 1, 1)),
                TimedValue(date(2024, 1, 2)),
            ],
            Bucket.DAILY,
            Reducer.COUNT,
        )

        assert points == [
            SeriesPoint("2024-01-01", 1),
            SeriesPoint("2024-01-02", 2),
        ]
        assert all(isinstance(p.value, int) for p in points)

    def test_sum_ignores_count_of_records(self):
        points = aggregate_series(
            [
                TimedValue(date(2024, 1, 5), 2.5),
                TimedValue(date(2024, 1, 20), 4),
                TimedValue(date(2024, 2, 1), 1),
            ],
            Bucket.MONTHLY,
            Reducer.SUM,
        )

        assert [p.to_dict() for p in points] == [
            {"bucket": "2024-01", "value": 6.5},
            {"bucket": "2024-02", "value": 1.0},
        ]

    def test_accepts_tuples(self):
        points = aggregate_series([(date(2024, 1, 1), 3.0)], Bucket.WEEKLY, Reducer.SUM)

        assert points == [SeriesPoint("2024-W01", 3.0)]

    def test_empty_buckets_are_not_emitted(self):
        """No zero-filled points between sparse records."""
        points = aggregate_series(
            [TimedValue(date(2024, 1, 1)), TimedValue(date(2024, 1, 10))],
            Bucket.DAILY,
            Reducer.COUNT,
        )

        assert [p.bucket for p in points] == ["2024-01-01", "2024-01-10"]

    def test_empty_input(self):
        assert aggregate_series([], Bucket.WEEKLY, Reducer.COUNT) == []

    def test_total_is_preserved(self):
        """Bucketing partitions records; sum over buckets equals sum over records."""
        start = date(2024, 1, 1)
        records = [TimedValue(start + timedelta(days=i), float(i)) for i in range(60)]

        for bucket in Bucket:
            points = aggregate_series(records, bucket, Reducer.SUM)
            assert sum(p.value for p in points) == sum(r.value for r in records)
            counts = aggregate_series(records, bucket, Reducer.COUNT)
            assert sum(p.value for p in counts) == 60

    def test_weeks_sort_across_year_boundary(self):
        points = aggregate_series(
            [TimedValue(date(2025, 1, 6)), TimedValue(date(2024, 12, 23))],
            Bucket.WEEKLY,
            Reducer.COUNT,
        )

        assert [p.bucket for p in points] == ["2024-W52", "2025-W02"]
