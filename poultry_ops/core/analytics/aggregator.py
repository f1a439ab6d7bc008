"""
Time bucketing and aggregation of feeding and water logs for charts.

Every function takes the reference instant ``now`` explicitly; its tzinfo
decides what "local midnight" means. A naive or omitted ``now`` is taken in
the zone named by TIMEZONE (or TZ), UTC when neither is set.
"""
import calendar
import logging
import math
import os
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from poultry_ops.core.parsing import parse_number
from .models import (
    AnalyticsResult,
    AnalyticsSummary,
    BucketPoint,
    EventRecord,
    Period,
    PeriodWindow
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400

# Week chart order is fixed, whatever day the week starts on
DAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

# Python weekday() of Sunday
SUNDAY = 6

METADATA_FIELDS = ("ageGroup", "chickenCount")

# Later timestamps cannot be converted to a date in every zone (e.g. milliseconds)
MAX_TIMESTAMP = int(datetime(9999, 12, 30, tzinfo=timezone.utc).timestamp())


def local_zone() -> ZoneInfo:
    """
    The coop's timezone from TIMEZONE or TZ (an IANA name such as
    "Europe/Berlin"), UTC when unset or unknown.

    A named zone keeps the right UTC offset for every day, so midnights on
    the far side of a daylight saving change stay at 00:00.
    """
    name = (os.getenv("TIMEZONE") or os.getenv("TZ") or "UTC").lstrip(":")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}, using UTC")
        return ZoneInfo("UTC")


def resolve_now(now: Optional[datetime] = None) -> datetime:
    """Return an aware datetime for now (in the local zone when omitted or naive)."""
    if now is None:
        return datetime.now(local_zone())
    if now.tzinfo is None:
        return now.replace(tzinfo=local_zone())
    return now


def midnight(day: date, tz) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clean_events(events: Iterable[Any], value_field: str = "value") -> List[EventRecord]:
    """
    Coerce raw log records and drop the invalid ones.

    A record is kept only when both its timestamp and its value are numeric
    (numeric strings are converted) and strictly positive, and the timestamp
    falls before year 9999 (millisecond timestamps do not). Records that are
    already EventRecord instances are re-checked the same way, so cleaning a
    cleaned list returns an equal list.

    Args:
        events: Raw dicts (as read from the database) or EventRecord objects
        value_field: Name of the value field in raw dicts

    Returns:
        List of EventRecord in input order
    """
    records = []
    dropped = 0

    for item in events:
        if isinstance(item, EventRecord):
            raw_timestamp, raw_value = item.timestamp, item.value
            key, metadata = item.key, dict(item.metadata)
        elif isinstance(item, dict):
            raw_timestamp, raw_value = item.get("timestamp"), item.get(value_field)
            key = item.get("id", item.get("key"))
            metadata = {field: item[field] for field in METADATA_FIELDS if field in item}
        else:
            dropped += 1
            continue

        timestamp = parse_number(raw_timestamp)
        value = parse_number(raw_value)

        if timestamp is None or value is None or value <= 0:
            dropped += 1
            continue
        if not 0 < int(timestamp) <= MAX_TIMESTAMP:
            dropped += 1
            continue

        records.append(EventRecord(
            timestamp=int(timestamp),
            value=value,
            key=str(key) if key is not None else None,
            metadata=metadata
        ))

    if dropped:
        logger.debug(f"Dropped {dropped} invalid records, kept {len(records)}")
    return records


def compute_windows(
    period: Union[Period, str],
    now: Optional[datetime] = None,
    week_start: int = SUNDAY
) -> Tuple[PeriodWindow, PeriodWindow]:
    """
    Compute the current window and the comparison window before it.

    - day: [today 00:00, now] and [yesterday 00:00, today 00:00 - 1s]
    - week: [week start 00:00, now] and the 7 days before it
    - month: [1st 00:00, now] and the whole previous month

    Args:
        period: Chart granularity
        now: Reference instant
        week_start: First day of the week as a Python weekday (Sunday = 6)

    Returns:
        Tuple (current, comparison); comparison.end == current.start - 1
    """
    period = Period(period)
    now = resolve_now(now)
    tz = now.tzinfo
    today = now.date()

    if period == Period.DAY:
        current_start = today
        comparison_start = today - timedelta(days=1)
    elif period == Period.WEEK:
        current_start = today - timedelta(days=(today.weekday() - week_start) % 7)
        comparison_start = current_start - timedelta(days=7)
    else:
        current_start = today.replace(day=1)
        comparison_start = (current_start - timedelta(days=1)).replace(day=1)

    current_start_ts = int(midnight(current_start, tz).timestamp())

    current = PeriodWindow(start=current_start_ts, end=int(now.timestamp()))
    comparison = PeriodWindow(
        start=int(midnight(comparison_start, tz).timestamp()),
        end=current_start_ts - 1
    )
    return current, comparison


def bucket_index(period: Period, moment: datetime) -> int:
    """Hour (0-23), day of week (0 = Sunday) or day of month (1-31)."""
    if period == Period.DAY:
        return moment.hour
    if period == Period.WEEK:
        return (moment.weekday() + 1) % 7
    return moment.day


def bucket_labels(period: Period, now: datetime) -> List[Tuple[int, str]]:
    """Ordered (index, label) pairs of the chart for a period."""
    if period == Period.DAY:
        return [(hour, f"{hour:02d}:00") for hour in range(24)]
    if period == Period.WEEK:
        return list(enumerate(DAY_LABELS))
    return [(day, str(day)) for day in range(1, days_in_month(now.year, now.month) + 1)]


def sum_by_bucket(
    records: Iterable[EventRecord],
    window: PeriodWindow,
    period: Period,
    tz
) -> Dict[int, float]:
    """
    Sum record values per bucket for the records inside window.

    Returns:
        Dict of bucket index -> sum (buckets without records are absent)
    """
    sums = defaultdict(float)
    for record in records:
        if window.contains(record.timestamp):
            moment = datetime.fromtimestamp(record.timestamp, tz)
            sums[bucket_index(period, moment)] += record.value
    return dict(sums)


def summarize(records: List[EventRecord], now: Optional[datetime] = None) -> Optional[AnalyticsSummary]:
    """
    All-time total, average per day and peak hour of the records.

    The average divides by the number of calendar days from the earliest
    record's day to the end of today (at least 1).
    """
    if not records:
        return None

    now = resolve_now(now)
    tz = now.tzinfo

    total = sum(record.value for record in records)

    earliest = min(record.timestamp for record in records)
    first_day_start = midnight(datetime.fromtimestamp(earliest, tz).date(), tz).timestamp()
    end_of_today = midnight(now.date() + timedelta(days=1), tz).timestamp() - 1
    days = max(1, math.ceil((end_of_today - first_day_start) / SECONDS_PER_DAY))

    hourly = defaultdict(float)
    for record in records:
        hourly[datetime.fromtimestamp(record.timestamp, tz).hour] += record.value

    # Earliest hour wins a tie
    peak_hour = max(sorted(hourly), key=lambda hour: hourly[hour])

    return AnalyticsSummary(
        total=total,
        average_per_day=total / days,
        days_covered=days,
        peak_hour=f"{peak_hour:02d}:00 - {peak_hour + 1:02d}:00"
    )


def aggregate_events(
    events: Iterable[Any],
    period: Union[Period, str],
    compare: bool = False,
    now: Optional[datetime] = None,
    week_start: int = SUNDAY,
    value_field: str = "value"
) -> AnalyticsResult:
    """
    Turn raw log records into a chart series for a period.

    Args:
        events: Raw records or EventRecord objects, in any order
        period: day, week or month
        compare: Also compute the preceding period
        now: Reference instant
        week_start: First day of the week as a Python weekday
        value_field: Name of the value field in raw dicts

    Returns:
        AnalyticsResult; has_data is False when no record survives cleaning
    """
    period = Period(period)
    now = resolve_now(now)
    tz = now.tzinfo

    records = clean_events(events, value_field=value_field)
    if not records:
        logger.info(f"No valid records for {period.value} analytics")
        return AnalyticsResult.no_data(period, compare)

    current_window, comparison_window = compute_windows(period, now, week_start)

    current_sums = sum_by_bucket(records, current_window, period, tz)
    comparison_sums = sum_by_bucket(records, comparison_window, period, tz) if compare else {}

    previous_month_days = None
    if period == Period.MONTH:
        first_of_month = now.date().replace(day=1)
        previous = first_of_month - timedelta(days=1)
        previous_month_days = days_in_month(previous.year, previous.month)

    points = []
    for index, label in bucket_labels(period, now):
        comparison = None
        if compare:
            if previous_month_days is not None and index > previous_month_days:
                comparison = None
            else:
                comparison = comparison_sums.get(index, 0)

        points.append(BucketPoint(
            label=label,
            current=current_sums.get(index, 0),
            comparison=comparison
        ))

    logger.debug(
        f"Aggregated {len(records)} records into {len(points)} {period.value} buckets "
        f"(compare={compare})"
    )

    return AnalyticsResult(
        period=period,
        compare=compare,
        has_data=True,
        current_window=current_window,
        comparison_window=comparison_window if compare else None,
        points=points,
        summary=summarize(records, now)
    )
