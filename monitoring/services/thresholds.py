"""
Threshold Evaluator

Compares water-quality tests and sensor values against configured safe
ranges and reports what is out of bounds.
"""

import logging
from typing import Dict, Iterable, List, Optional

from ..config import MonitoringConfig, get_monitoring_config
from ..constants import AlertSeverity, ParameterStatus
from ..records import SensorEvaluation, WaterQualityReading, WaterQualitySummary
from ..utils import format_number, round_half_up, to_decimal

logger = logging.getLogger(__name__)

LOW = 'low'
HIGH = 'high'


# =============================================================================
# WATER QUALITY
# =============================================================================

def evaluate_water_quality(
    reading: WaterQualityReading,
    config: Optional[MonitoringConfig] = None,
) -> List[str]:
    """
    List every safe-range violation on a water test.

    Checks run in a fixed order: pH low, pH high, temperature low,
    temperature high, dissolved oxygen low, ammonia high. Each message
    carries the measured value and the limit it broke, e.g.
    ``pH too low (5, min: 6.5)``.
    """
    config = config or get_monitoring_config()
    t = config.water_quality_thresholds
    ph = float(reading.ph)
    temperature = float(reading.temperature_celsius)
    oxygen = float(reading.dissolved_oxygen_mg_l)
    ammonia = float(reading.ammonia_mg_l)

    issues = []
    if _below(ph, t['ph'].get('min')):
        issues.append(f"pH too low ({format_number(ph)}, min: {format_number(t['ph']['min'])})")
    if _above(ph, t['ph'].get('max')):
        issues.append(f"pH too high ({format_number(ph)}, max: {format_number(t['ph']['max'])})")
    if _below(temperature, t['temperature'].get('min')):
        issues.append(
            f"Temperature too low ({format_number(temperature)}°C, "
            f"min: {format_number(t['temperature']['min'])}°C)"
        )
    if _above(temperature, t['temperature'].get('max')):
        issues.append(
            f"Temperature too high ({format_number(temperature)}°C, "
            f"max: {format_number(t['temperature']['max'])}°C)"
        )
    if _below(oxygen, t['dissolved_oxygen'].get('min')):
        issues.append(
            f"Dissolved oxygen too low ({format_number(oxygen)}mg/L, "
            f"min: {format_number(t['dissolved_oxygen']['min'])}mg/L)"
        )
    if _above(ammonia, t['ammonia'].get('max')):
        issues.append(
            f"Ammonia too high ({format_number(ammonia)}mg/L, "
            f"max: {format_number(t['ammonia']['max'])}mg/L)"
        )
    return issues


def is_water_quality_alert(
    reading: WaterQualityReading,
    config: Optional[MonitoringConfig] = None,
) -> bool:
    return len(evaluate_water_quality(reading, config)) > 0


def water_quality_severity(issues: List[str], config: Optional[MonitoringConfig] = None) -> str:
    """More than two simultaneous violations is critical, otherwise a warning."""
    config = config or get_monitoring_config()
    if len(issues) > config.water_critical_issue_count:
        return AlertSeverity.CRITICAL
    return AlertSeverity.WARNING


def _below(value, limit) -> bool:
    return limit is not None and value < limit


def _above(value, limit) -> bool:
    return limit is not None and value > limit


# Reading attribute for each water parameter
WATER_PARAMETERS = {
    'ph': 'ph',
    'temperature': 'temperature_celsius',
    'dissolved_oxygen': 'dissolved_oxygen_mg_l',
    'ammonia': 'ammonia_mg_l',
}


def water_parameter_status(
    parameter: str,
    value,
    config: Optional[MonitoringConfig] = None,
) -> str:
    """
    Grade a single water parameter.

    Args:
        parameter: One of ph, temperature, dissolved_oxygen, ammonia
        value: Measured value

    Returns:
        optimal, acceptable, warning or critical
    """
    config = config or get_monitoring_config()
    t = config.water_quality_thresholds
    value = float(value)

    if parameter == 'ph':
        low, high = t['ph']['min'], t['ph']['max']
        if low + 0.5 <= value <= high - 0.5:
            return ParameterStatus.OPTIMAL
        if low <= value <= high:
            return ParameterStatus.ACCEPTABLE
        if low - 1 <= value <= high + 1:
            return ParameterStatus.WARNING
        return ParameterStatus.CRITICAL

    if parameter == 'temperature':
        low, high = t['temperature']['min'], t['temperature']['max']
        if low + 1 <= value <= high - 1:
            return ParameterStatus.OPTIMAL
        if low <= value <= high:
            return ParameterStatus.ACCEPTABLE
        if low - 3 <= value <= high + 3:
            return ParameterStatus.WARNING
        return ParameterStatus.CRITICAL

    if parameter == 'dissolved_oxygen':
        low = t['dissolved_oxygen']['min']
        if value >= low + 2:
            return ParameterStatus.OPTIMAL
        if value >= low:
            return ParameterStatus.ACCEPTABLE
        if value >= low - 2:
            return ParameterStatus.WARNING
        return ParameterStatus.CRITICAL

    if parameter == 'ammonia':
        high = t['ammonia']['max']
        if value <= high / 2:
            return ParameterStatus.OPTIMAL
        if value <= high:
            return ParameterStatus.ACCEPTABLE
        if value <= high * 2:
            return ParameterStatus.WARNING
        return ParameterStatus.CRITICAL

    raise ValueError(f"Unknown water parameter: {parameter}")


def _average(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def summarize_water_quality(
    readings: Iterable[WaterQualityReading],
    config: Optional[MonitoringConfig] = None,
) -> WaterQualitySummary:
    """Averages, per-parameter grades and alert counts over a set of tests."""
    config = config or get_monitoring_config()
    readings = list(readings)

    averages = {}
    statuses = {}
    for parameter, attribute in WATER_PARAMETERS.items():
        average = _average([float(getattr(reading, attribute)) for reading in readings])
        averages[parameter] = round_half_up(average, 3) if average is not None else None
        statuses[parameter] = (
            water_parameter_status(parameter, average, config)
            if average is not None
            else ParameterStatus.ACCEPTABLE
        )

    alert_count = 0
    issue_count = 0
    for reading in readings:
        issues = evaluate_water_quality(reading, config)
        if issues:
            alert_count += 1
        issue_count += len(issues)

    return WaterQualitySummary(
        average_ph=averages['ph'],
        average_temperature=averages['temperature'],
        average_dissolved_oxygen=averages['dissolved_oxygen'],
        average_ammonia=averages['ammonia'],
        ph_status=statuses['ph'],
        temperature_status=statuses['temperature'],
        dissolved_oxygen_status=statuses['dissolved_oxygen'],
        ammonia_status=statuses['ammonia'],
        alert_count=alert_count,
        issue_count=issue_count,
    )


# =============================================================================
# SENSORS
# =============================================================================

def sensor_thresholds(
    sensor_type: str,
    overrides: Optional[Dict] = None,
    config: Optional[MonitoringConfig] = None,
) -> Dict[str, Optional[float]]:
    """
    Effective bounds for a sensor: type defaults with per-sensor overrides.

    Unknown sensor types have no bounds at all.
    """
    config = config or get_monitoring_config()
    defaults = config.sensor_thresholds(sensor_type) or {}
    bounds = {
        'min': defaults.get('min'),
        'max': defaults.get('max'),
        'warning_min': defaults.get('warning_min'),
        'warning_max': defaults.get('warning_max'),
    }
    for key, value in (overrides or {}).items():
        if key in bounds and value is not None:
            bounds[key] = value
    return bounds


def evaluate_sensor_value(
    sensor_type: str,
    value,
    overrides: Optional[Dict] = None,
    config: Optional[MonitoringConfig] = None,
) -> SensorEvaluation:
    """
    Check one sensor value against its bounds.

    Outside [min, max] is critical; outside the optional warning band is a
    warning. The critical bounds win when both are broken.
    """
    config = config or get_monitoring_config()
    bounds = sensor_thresholds(sensor_type, overrides, config)
    metadata = config.sensor_thresholds(sensor_type) or {}
    number = float(to_decimal(value))
    evaluation = SensorEvaluation(
        sensor_type=sensor_type,
        value=number,
        label=metadata.get('label', sensor_type),
        unit=metadata.get('unit', ''),
    )

    checks = (
        ('max', AlertSeverity.CRITICAL, HIGH),
        ('min', AlertSeverity.CRITICAL, LOW),
        ('warning_max', AlertSeverity.WARNING, HIGH),
        ('warning_min', AlertSeverity.WARNING, LOW),
    )
    for key, severity, direction in checks:
        limit = bounds[key]
        if limit is None:
            continue
        broken = number > limit if direction == HIGH else number < limit
        if broken:
            evaluation.severity = severity
            evaluation.direction = direction
            evaluation.limit = float(limit)
            break

    if evaluation.is_alert:
        logger.debug(
            "Sensor %s value %s breached %s limit %s",
            sensor_type, number, evaluation.direction, evaluation.limit,
        )
    return evaluation
