"""
Alert Aggregator

Scans a farm's active batches and inventory and collects every alert the
individual checks raise:
1. Growth - ADG against the species target
2. Water quality - latest water test of fish batches
3. Mortality - sudden deaths in the last 24h and cumulative losses
4. Feed efficiency - FCR against the species target
5. Feed inventory - low or empty feed stores
6. Medication inventory - low stock, expired and soon-to-expire stock

Each batch and each inventory item is checked on its own. A record that
cannot be evaluated is logged and skipped so one bad batch never hides
the alerts of the others. Acknowledging alerts is the caller's business;
the scan keeps no state between runs.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional

from django.utils import timezone

from ..config import MonitoringConfig, get_monitoring_config
from ..constants import AlertSeverity, AlertSource
from ..records import (
    Alert,
    BatchSnapshot,
    FeedStockItem,
    MedicationStockItem,
    supports_water_quality,
)
from ..utils import as_datetime, format_number, non_negative, to_decimal
from .metrics import (
    average_daily_gain,
    batch_fcr,
    feed_efficiency_alert,
    growth_alert,
    is_low_stock,
)
from .thresholds import evaluate_water_quality, water_quality_severity

logger = logging.getLogger(__name__)

SEVERITY_ORDER = {
    AlertSeverity.CRITICAL: 0,
    AlertSeverity.WARNING: 1,
}

# Errors that mean "this record is malformed", not "the scan is broken"
SKIPPABLE_ERRORS = (ValueError, TypeError, ArithmeticError, AttributeError, KeyError)


class AlertAggregator:
    """
    Runs every monitoring check over a farm snapshot.

    Usage:
        aggregator = AlertAggregator()
        alerts = aggregator.scan(snapshots, feed_stock=feed, medication_stock=meds)

        critical = filter_alerts(alerts, severity=AlertSeverity.CRITICAL)
    """

    def __init__(self, config: Optional[MonitoringConfig] = None, now: Optional[datetime] = None):
        self.config = config or get_monitoring_config()
        self.now = as_datetime(now or timezone.now())
        self.today = timezone.localdate(self.now)
        self.skipped = []

    # =========================================================================
    # FULL SCAN
    # =========================================================================

    def scan(
        self,
        snapshots: Iterable[BatchSnapshot],
        feed_stock: Iterable[FeedStockItem] = (),
        medication_stock: Iterable[MedicationStockItem] = (),
    ) -> List[Alert]:
        """
        Collect alerts for every batch and inventory item.

        Returns:
            One flat list, critical alerts before warnings.
        """
        alerts = []
        batch_count = 0

        for snapshot in snapshots:
            batch_count += 1
            batch_id = getattr(getattr(snapshot, 'batch', None), 'id', None)
            alerts.extend(self._guarded(self.check_batch, snapshot, batch_id))

        for item in feed_stock:
            alerts.extend(self._guarded(self.check_feed_stock, item, getattr(item, 'id', None)))

        for item in medication_stock:
            alerts.extend(
                self._guarded(self.check_medication_stock, item, getattr(item, 'id', None))
            )

        logger.info(
            "Alert scan finished: %s batches, %s alerts, %s checks skipped",
            batch_count, len(alerts), len(self.skipped),
        )
        return sort_alerts_by_severity(alerts)

    def check_batch(self, snapshot: BatchSnapshot) -> List[Alert]:
        """Run every batch-level check; inactive or empty batches raise nothing."""
        batch = snapshot.batch
        if not batch.is_active or batch.current_quantity <= 0:
            logger.debug("Skipping batch %s (status=%s, quantity=%s)",
                         batch.id, batch.status, batch.current_quantity)
            return []

        checks = (
            self.check_growth,
            self.check_water_quality,
            self.check_mortality,
            self.check_feed_efficiency,
        )
        alerts = []
        for check in checks:
            alerts.extend(self._guarded(check, snapshot, batch.id))
        return alerts

    def _guarded(self, check: Callable, subject, subject_id) -> List[Alert]:
        try:
            return check(subject)
        except SKIPPABLE_ERRORS as exc:
            logger.warning(
                "Skipping %s for %s: malformed input (%s)",
                check.__name__, subject_id, exc,
            )
            self.skipped.append({'check': check.__name__, 'subject_id': subject_id, 'error': str(exc)})
            return []

    # =========================================================================
    # BATCH CHECKS
    # =========================================================================

    def check_growth(self, snapshot: BatchSnapshot) -> List[Alert]:
        batch = snapshot.batch
        result = average_daily_gain(snapshot.weight_samples)
        if result is None:
            return []

        alert = growth_alert(
            result.adg,
            batch.species,
            subject_id=batch.id,
            subject_label=batch.display_label,
            config=self.config,
        )
        if alert:
            alert.metadata['days_between'] = result.days_between
        return [alert] if alert else []

    def check_water_quality(self, snapshot: BatchSnapshot) -> List[Alert]:
        """Only the most recent water test counts; older violations are not re-raised."""
        batch = snapshot.batch
        if not supports_water_quality(batch) or not snapshot.water_quality_readings:
            return []

        latest = max(snapshot.water_quality_readings, key=lambda reading: as_datetime(reading.date))
        issues = evaluate_water_quality(latest, self.config)
        if not issues:
            return []

        return [Alert(
            subject_id=batch.id,
            subject_label=batch.display_label,
            message=f"Water quality out of range: {'; '.join(issues)}",
            severity=water_quality_severity(issues, self.config),
            source=AlertSource.WATER_QUALITY,
            metric_value=len(issues),
            metadata={'issues': issues, 'reading_date': latest.date},
        )]

    def check_mortality(self, snapshot: BatchSnapshot) -> List[Alert]:
        """
        Sudden deaths and cumulative losses.

        Sudden death: deaths in the trailing window (24h) above the alert
        percentage of the current head count or above the alert quantity.
        Cumulative: total deaths over the starting head count above 5%
        (warning) or 10% (critical).
        """
        batch = snapshot.batch
        window_start = self.now - timedelta(hours=self.config.mortality_window_hours)

        recent_deaths = 0
        total_deaths = 0
        for event in snapshot.mortality_events:
            quantity = int(non_negative(event.quantity))
            total_deaths += quantity
            if as_datetime(event.date) >= window_start:
                recent_deaths += quantity

        alerts = []
        daily_rate = recent_deaths / batch.current_quantity * 100 if batch.current_quantity > 0 else 0
        if (
            daily_rate > self.config.mortality_alert_percent
            or recent_deaths > self.config.mortality_alert_quantity
        ):
            alerts.append(Alert(
                subject_id=batch.id,
                subject_label=batch.display_label,
                message=f"Sudden death: {recent_deaths} deaths in 24h ({daily_rate:.1f}%)",
                severity=AlertSeverity.CRITICAL,
                source=AlertSource.MORTALITY,
                metric_value=round(daily_rate, 2),
                expected_value=self.config.mortality_alert_percent,
                metadata={'deaths': recent_deaths},
            ))

        total_rate = total_deaths / batch.initial_quantity * 100 if batch.initial_quantity > 0 else 0
        if total_rate > self.config.cumulative_mortality_warning_percent:
            severity = (
                AlertSeverity.CRITICAL
                if total_rate > self.config.cumulative_mortality_critical_percent
                else AlertSeverity.WARNING
            )
            alerts.append(Alert(
                subject_id=batch.id,
                subject_label=batch.display_label,
                message=f"High cumulative mortality: {total_rate:.1f}%",
                severity=severity,
                source=AlertSource.MORTALITY,
                metric_value=round(total_rate, 2),
                expected_value=self.config.cumulative_mortality_warning_percent,
                metadata={'deaths': total_deaths},
            ))

        return alerts

    def check_feed_efficiency(self, snapshot: BatchSnapshot) -> List[Alert]:
        value = batch_fcr(snapshot.batch, snapshot.weight_samples, snapshot.feed_records)
        alert = feed_efficiency_alert(snapshot.batch, value, self.config)
        return [alert] if alert else []

    # =========================================================================
    # INVENTORY CHECKS
    # =========================================================================

    def check_feed_stock(self, item: FeedStockItem) -> List[Alert]:
        if not is_low_stock(item.quantity_kg, item.min_threshold_kg):
            return []

        quantity = to_decimal(item.quantity_kg)
        if quantity <= 0:
            severity = AlertSeverity.CRITICAL
            message = f"Out of feed: {item.feed_type}"
        else:
            severity = AlertSeverity.WARNING
            message = (
                f"Low feed stock: {item.feed_type} at {format_number(quantity)}kg "
                f"(reorder level {format_number(item.min_threshold_kg)}kg)"
            )

        return [Alert(
            subject_id=item.id,
            subject_label=item.feed_type,
            message=message,
            severity=severity,
            source=AlertSource.FEED_INVENTORY,
            metric_value=float(quantity),
            expected_value=float(item.min_threshold_kg),
        )]

    def check_medication_stock(self, item: MedicationStockItem) -> List[Alert]:
        """Low stock, expired stock and stock expiring within the warning window."""
        alerts = []
        quantity = to_decimal(item.quantity)
        unit = f" {item.unit}" if item.unit else ''

        if is_low_stock(quantity, item.min_threshold):
            if quantity <= 0:
                severity = AlertSeverity.CRITICAL
                message = f"Out of stock: {item.name}"
            else:
                severity = AlertSeverity.WARNING
                message = (
                    f"Low stock: {item.name} at {format_number(quantity)}{unit} "
                    f"(minimum {format_number(item.min_threshold)}{unit})"
                )
            alerts.append(Alert(
                subject_id=item.id,
                subject_label=item.name,
                message=message,
                severity=severity,
                source=AlertSource.MEDICATION_INVENTORY,
                metric_value=float(quantity),
                expected_value=float(item.min_threshold),
                metadata={'reason': 'low_stock'},
            ))

        if item.expiry_date is not None:
            days_left = (item.expiry_date - self.today).days
            if days_left < 0:
                alerts.append(Alert(
                    subject_id=item.id,
                    subject_label=item.name,
                    message=f"Expired: {item.name} expired on {item.expiry_date.isoformat()}",
                    severity=AlertSeverity.CRITICAL,
                    source=AlertSource.MEDICATION_INVENTORY,
                    metric_value=days_left,
                    metadata={'reason': 'expired', 'expiry_date': item.expiry_date},
                ))
            elif days_left <= self.config.expiry_warning_days:
                alerts.append(Alert(
                    subject_id=item.id,
                    subject_label=item.name,
                    message=f"Expiring soon: {item.name} expires in {days_left} days",
                    severity=AlertSeverity.WARNING,
                    source=AlertSource.MEDICATION_INVENTORY,
                    metric_value=days_left,
                    expected_value=self.config.expiry_warning_days,
                    metadata={'reason': 'expiring', 'expiry_date': item.expiry_date},
                ))

        return alerts


# =============================================================================
# HELPERS
# =============================================================================

def sort_alerts_by_severity(alerts: Iterable[Alert]) -> List[Alert]:
    """Critical first; order within a severity is preserved."""
    return sorted(alerts, key=lambda alert: SEVERITY_ORDER.get(alert.severity, len(SEVERITY_ORDER)))


def _alert_field(alert, name):
    if isinstance(alert, dict):
        return alert.get(name)
    return getattr(alert, name)


def filter_alerts(
    alerts: Iterable[Alert],
    severity: Optional[str] = None,
    source: Optional[str] = None,
) -> List[Alert]:
    """Keep alerts matching both filters; works on Alert records and their cached dicts."""
    return [
        alert for alert in alerts
        if (not severity or _alert_field(alert, 'severity') == severity)
        and (not source or _alert_field(alert, 'source') == source)
    ]


def count_alerts_by_severity(alerts: Iterable[Alert]) -> Dict[str, int]:
    counts = Counter(alert.severity for alert in alerts)
    return {severity.value: counts.get(severity, 0) for severity in AlertSeverity}
