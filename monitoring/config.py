"""
Monitoring Configuration

Every tunable table and cutoff used by the monitoring engine lives on a
MonitoringConfig instance. Defaults come from constants.py and can be
overridden per deployment through ``settings.MONITORING``:

    MONITORING = {
        'SENSOR_ONLINE_MULTIPLIER': 3,
        'EXPECTED_ADG_BY_SPECIES': {'turkey': 0.06},
        'WATER_QUALITY_THRESHOLDS': {'temperature': {'min': 24}},
    }

Table overrides are merged key by key, so overriding one species or one
bound keeps the remaining defaults.
"""

import copy
import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .constants import (
    DEFAULT_EXPECTED_ADG,
    DEFAULT_TARGET_FCR,
    EXPECTED_ADG_BY_SPECIES,
    SENSOR_TYPE_CONFIG,
    TARGET_FCR_BY_SPECIES,
    WATER_QUALITY_THRESHOLDS,
)

logger = logging.getLogger(__name__)


def _copy_of(table):
    return lambda: copy.deepcopy(table)


@dataclass(frozen=True)
class MonitoringConfig:
    """Tunable thresholds for the monitoring engine."""

    # Reference tables
    water_quality_thresholds: Dict[str, Dict[str, Optional[float]]] = field(
        default_factory=_copy_of(WATER_QUALITY_THRESHOLDS)
    )
    sensor_type_config: Dict[str, Dict[str, Any]] = field(
        default_factory=_copy_of(SENSOR_TYPE_CONFIG)
    )
    expected_adg_by_species: Dict[str, float] = field(
        default_factory=_copy_of(EXPECTED_ADG_BY_SPECIES)
    )
    default_expected_adg: float = DEFAULT_EXPECTED_ADG
    target_fcr_by_species: Dict[str, float] = field(
        default_factory=_copy_of(TARGET_FCR_BY_SPECIES)
    )
    default_target_fcr: float = DEFAULT_TARGET_FCR

    # Growth alerts (percent of expected ADG)
    growth_critical_percent: float = 50
    growth_warning_percent: float = 70
    growth_slow_ratio: float = 0.7
    growth_rapid_ratio: float = 1.3

    # Feed efficiency alerts (multiples of target FCR)
    fcr_warning_factor: float = 1.2
    fcr_critical_factor: float = 1.4

    # Water quality: more issues than this on one reading is critical
    water_critical_issue_count: int = 2

    # Sensor health (multiples of the polling interval)
    sensor_online_multiplier: float = 2
    sensor_stale_multiplier: float = 4

    # Mortality
    mortality_alert_percent: float = 5
    mortality_alert_quantity: int = 10
    mortality_window_hours: int = 24
    cumulative_mortality_warning_percent: float = 5
    cumulative_mortality_critical_percent: float = 10

    # Inventory
    expiry_warning_days: int = 30

    # Environmental score bands
    environment_optimal_score: int = 80
    environment_fair_score: int = 60

    # Cached scan results (seconds)
    alert_cache_timeout: int = 3600

    def __post_init__(self):
        if self.sensor_stale_multiplier < self.sensor_online_multiplier:
            raise ImproperlyConfigured(
                "SENSOR_STALE_MULTIPLIER must not be lower than SENSOR_ONLINE_MULTIPLIER"
            )
        if self.growth_critical_percent > self.growth_warning_percent:
            raise ImproperlyConfigured(
                "GROWTH_CRITICAL_PERCENT must not exceed GROWTH_WARNING_PERCENT"
            )
        if self.fcr_critical_factor < self.fcr_warning_factor:
            raise ImproperlyConfigured(
                "FCR_CRITICAL_FACTOR must not be lower than FCR_WARNING_FACTOR"
            )

    def expected_adg(self, species) -> float:
        """Expected ADG for a species; unknown species get the default."""
        key = (species or '').strip().lower()
        return self.expected_adg_by_species.get(key, self.default_expected_adg)

    def target_fcr(self, species) -> float:
        key = (species or '').strip().lower()
        for name, target in self.target_fcr_by_species.items():
            if name in key:
                return target
        return self.default_target_fcr

    def sensor_thresholds(self, sensor_type) -> Optional[Dict[str, Any]]:
        """Threshold metadata for a sensor type, or None when unknown."""
        return self.sensor_type_config.get(sensor_type)

    def with_overrides(self, overrides: Dict[str, Any]) -> 'MonitoringConfig':
        """
        Return a copy with ``overrides`` applied.

        Keys may be given in settings style (``SENSOR_ONLINE_MULTIPLIER``)
        or attribute style (``sensor_online_multiplier``).
        """
        known = {f.name for f in fields(self)}
        changes = {}
        for raw_key, value in (overrides or {}).items():
            key = raw_key.lower()
            if key not in known:
                raise ImproperlyConfigured(f"Unknown MONITORING setting: {raw_key}")
            current = getattr(self, key)
            if isinstance(current, dict) and isinstance(value, dict):
                changes[key] = _merge_table(current, value)
            else:
                changes[key] = value
        return replace(self, **changes)


def _merge_table(base, overrides):
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def get_monitoring_config() -> MonitoringConfig:
    """Build the active configuration from ``settings.MONITORING``."""
    overrides = getattr(settings, 'MONITORING', None) or {}
    config = MonitoringConfig().with_overrides(overrides)
    if overrides:
        logger.debug("Monitoring config overrides applied: %s", sorted(overrides))
    return config
