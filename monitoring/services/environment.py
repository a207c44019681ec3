"""
Environmental Score Aggregator

Rolls a structure's recent sensor readings up into a single 0-100 score.
Each sensor type is scored by how far its average sits from the middle of
its safe range; the structure score is the mean of the type scores.
"""

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from django.utils import timezone

from ..config import MonitoringConfig, get_monitoring_config
from ..constants import FactorStatus
from ..records import EnvironmentalFactor, EnvironmentalScore, Sensor, SensorReading
from ..utils import as_datetime, round_half_up

logger = logging.getLogger(__name__)

NO_SENSORS_MESSAGE = "No sensors in structure"
NO_DATA_MESSAGE = "No sensor data available"


def factor_score(average: float, low: float, high: float) -> int:
    """
    Score one sensor type: 100 at the midpoint of [low, high], 50 at
    either bound, 0 at one and a half ranges out.
    """
    midpoint = (low + high) / 2
    half_range = (high - low) / 2
    if half_range <= 0:
        return 100 if average == midpoint else 0
    raw = 100 - abs(average - midpoint) / half_range * 50
    return max(0, min(100, int(round_half_up(raw, 0))))


def factor_status(score: int, average: float, midpoint: float, config: MonitoringConfig) -> str:
    if score >= config.environment_optimal_score:
        return FactorStatus.OPTIMAL
    return FactorStatus.LOW if average < midpoint else FactorStatus.HIGH


def score_message(score: Optional[int], config: MonitoringConfig) -> str:
    if score is None:
        return NO_DATA_MESSAGE
    if score >= config.environment_optimal_score:
        return "Good conditions"
    if score >= config.environment_fair_score:
        return "Fair conditions"
    return "Poor conditions - needs attention"


def _readings_by_type(
    sensors: List[Sensor],
    readings: Iterable[SensorReading],
    since: datetime,
) -> Dict[str, List[float]]:
    sensor_types = {sensor.id: sensor.sensor_type for sensor in sensors}
    grouped = defaultdict(list)
    for reading in readings:
        if as_datetime(reading.recorded_at) < since:
            continue
        sensor_type = reading.sensor_type or sensor_types.get(reading.sensor_id)
        if sensor_type is None:
            logger.debug("Reading from unknown sensor %s ignored", reading.sensor_id)
            continue
        grouped[sensor_type].append(float(reading.value))
    return grouped


def environmental_score(
    sensors: Iterable[Sensor],
    readings: Iterable[SensorReading],
    days: int = 7,
    now: Optional[datetime] = None,
    config: Optional[MonitoringConfig] = None,
) -> EnvironmentalScore:
    """
    Score a structure's environment over the last ``days`` days.

    Args:
        sensors: Sensors installed in the structure
        readings: Their readings; anything older than the window is ignored
        days: Window length
        now: Reference time (defaults to timezone.now())
        config: Supplies the sensor-type ranges and the score bands

    Returns:
        EnvironmentalScore with one factor per sensor type that reported in
        the window. The score is None when nothing reported.
    """
    config = config or get_monitoring_config()
    now = as_datetime(now or timezone.now())
    sensors = list(sensors)

    if not sensors:
        return EnvironmentalScore(score=None, factors=[], message=NO_SENSORS_MESSAGE)

    grouped = _readings_by_type(sensors, readings, now - timedelta(days=days))

    factors = []
    for sensor_type, values in grouped.items():
        type_config = config.sensor_thresholds(sensor_type)
        if not type_config or type_config.get('min') is None or type_config.get('max') is None:
            logger.debug("No range configured for sensor type %s; skipped", sensor_type)
            continue

        low, high = float(type_config['min']), float(type_config['max'])
        average = sum(values) / len(values)
        score = factor_score(average, low, high)
        factors.append(EnvironmentalFactor(
            type=sensor_type,
            label=type_config.get('label', sensor_type),
            score=score,
            status=factor_status(score, average, (low + high) / 2, config),
            average=round_half_up(average, 2),
        ))

    if not factors:
        return EnvironmentalScore(score=None, factors=[], message=NO_DATA_MESSAGE)

    overall = int(round_half_up(sum(factor.score for factor in factors) / len(factors), 0))
    return EnvironmentalScore(
        score=overall,
        factors=factors,
        message=score_message(overall, config),
    )
