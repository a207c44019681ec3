"""
Time-Series Correlator

Lines sensor readings up against mortality and condenses raw telemetry
into hourly or daily aggregates for charting.
"""

from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from django.utils import timezone

from ..constants import ReadingPeriod
from ..records import CorrelatedPoint, MortalityEvent, ReadingAggregate, SensorReading
from ..utils import as_datetime, non_negative, round_half_up


def _event_day(value) -> date:
    if isinstance(value, datetime):
        return timezone.localdate(as_datetime(value))
    return value


def daily_mortality(events: Iterable[MortalityEvent]) -> Dict[date, int]:
    """Deaths per local calendar day."""
    totals = defaultdict(int)
    for event in events:
        totals[_event_day(event.date)] += int(non_negative(event.quantity))
    return dict(totals)


def correlate_mortality(
    readings: Iterable[SensorReading],
    mortality_events: Iterable[MortalityEvent],
) -> List[CorrelatedPoint]:
    """
    Pair each reading with the deaths recorded on its local calendar day.

    Every reading yields one point, in chronological order. ``mortality``
    is None on days without a recorded death. Deaths on days without a
    reading do not appear.
    """
    deaths = daily_mortality(mortality_events)
    ordered = sorted(readings, key=lambda reading: as_datetime(reading.recorded_at))
    return [
        CorrelatedPoint(
            timestamp=reading.recorded_at,
            value=float(reading.value),
            mortality=deaths.get(timezone.localdate(as_datetime(reading.recorded_at))),
        )
        for reading in ordered
    ]


def aggregate_readings(
    readings: Iterable[SensorReading],
    period_start: Optional[datetime] = None,
) -> Optional[ReadingAggregate]:
    values = [float(reading.value) for reading in readings]
    if not values:
        return None
    return ReadingAggregate(
        avg_value=round_half_up(sum(values) / len(values), 3),
        min_value=min(values),
        max_value=max(values),
        reading_count=len(values),
        period_start=period_start,
    )


def _truncate(moment: datetime, period: str) -> datetime:
    local = timezone.localtime(as_datetime(moment))
    if period == ReadingPeriod.HOURLY:
        return local.replace(minute=0, second=0, microsecond=0)
    if period == ReadingPeriod.DAILY:
        return local.replace(hour=0, minute=0, second=0, microsecond=0)
    raise ValueError(f"Unknown reading period: {period}")


def bucket_readings(
    readings: Iterable[SensorReading],
    period: str = ReadingPeriod.HOURLY,
) -> List[ReadingAggregate]:
    """
    Group readings into local hourly or daily buckets.

    Returns:
        One aggregate per non-empty bucket, oldest first.
    """
    buckets = defaultdict(list)
    for reading in readings:
        buckets[_truncate(reading.recorded_at, period)].append(reading)

    return [
        aggregate_readings(buckets[start], period_start=start)
        for start in sorted(buckets)
    ]
