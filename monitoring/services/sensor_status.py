"""
Sensor Status Classifier

A sensor's health is derived from how long ago it last reported, measured
in multiples of its own polling interval. Nothing is stored; the status is
recomputed every time it is asked for.
"""

from datetime import datetime, timedelta
from typing import Iterable, Optional

from django.utils import timezone

from ..config import MonitoringConfig, get_monitoring_config
from ..constants import SensorStatus
from ..records import Sensor, SensorFleetSummary, SensorHealth
from ..utils import as_datetime


def classify_sensor_status(
    last_reading_at: Optional[datetime],
    polling_interval_minutes,
    now: Optional[datetime] = None,
    config: Optional[MonitoringConfig] = None,
) -> str:
    """
    Classify a sensor as online, stale or offline.

    Args:
        last_reading_at: When the sensor last reported, None if never
        polling_interval_minutes: How often the sensor is expected to report
        now: Reference time (defaults to timezone.now())
        config: Supplies the online/stale multipliers (2x and 4x by default)

    Returns:
        online when the last reading is at most 2 intervals old, stale up
        to 4 intervals, offline beyond that or with no reading at all.
    """
    if last_reading_at is None:
        return SensorStatus.OFFLINE

    config = config or get_monitoring_config()
    now = as_datetime(now or timezone.now())
    interval = timedelta(minutes=float(polling_interval_minutes))
    age = now - as_datetime(last_reading_at)

    if age <= interval * config.sensor_online_multiplier:
        return SensorStatus.ONLINE
    if age <= interval * config.sensor_stale_multiplier:
        return SensorStatus.STALE
    return SensorStatus.OFFLINE


def summarize_sensor_fleet(
    sensors: Iterable[Sensor],
    now: Optional[datetime] = None,
    config: Optional[MonitoringConfig] = None,
) -> SensorFleetSummary:
    """Status of every sensor plus online/stale/offline counts."""
    config = config or get_monitoring_config()
    now = as_datetime(now or timezone.now())

    health = [
        SensorHealth(
            sensor_id=sensor.id,
            name=sensor.name,
            sensor_type=sensor.sensor_type,
            status=classify_sensor_status(
                sensor.last_reading_at, sensor.polling_interval_minutes, now, config
            ),
            last_reading_at=sensor.last_reading_at,
        )
        for sensor in sensors
    ]

    def count(status):
        return sum(1 for item in health if item.status == status)

    return SensorFleetSummary(
        total_sensors=len(health),
        online_sensors=count(SensorStatus.ONLINE),
        stale_sensors=count(SensorStatus.STALE),
        offline_sensors=count(SensorStatus.OFFLINE),
        sensors=health,
    )
