"""
Tests for the Alert Aggregator.

Covers each batch check, the inventory checks, ordering of the combined
result and skipping of malformed records.
"""
from datetime import date, timedelta

import pytest

from monitoring.constants import AlertSeverity, AlertSource, BatchStatus
from monitoring.records import (
    Alert,
    Batch,
    BatchSnapshot,
    FeedRecord,
    FeedStockItem,
    MedicationStockItem,
    MortalityEvent,
    WaterQualityReading,
    WeightSample,
)
from monitoring.services.alerts import (
    AlertAggregator,
    count_alerts_by_severity,
    filter_alerts,
    sort_alerts_by_severity,
)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def aggregator(config, now):
    return AlertAggregator(config=config, now=now)


def weights(*points):
    return [WeightSample(batch_id='B-001', date=day, average_weight_kg=kg) for day, kg in points]


def water(day, ph=7.5):
    return WaterQualityReading(
        batch_id='F-001',
        date=day,
        ph=ph,
        temperature_celsius=27,
        dissolved_oxygen_mg_l=6.5,
        ammonia_mg_l=0.01,
    )


@pytest.fixture
def healthy_snapshot(broiler_batch):
    return BatchSnapshot(
        batch=broiler_batch,
        weight_samples=weights((date(2024, 6, 1), 0.5), (date(2024, 6, 11), 1.0)),
        feed_records=[FeedRecord(batch_id='B-001', quantity_kg=900)],
    )


# =============================================================================
# BATCH CHECKS
# =============================================================================

class TestBatchChecks:

    def test_healthy_batch_raises_nothing(self, aggregator, healthy_snapshot):
        assert aggregator.scan([healthy_snapshot]) == []

    def test_slow_growth(self, aggregator, broiler_batch):
        snapshot = BatchSnapshot(
            batch=broiler_batch,
            weight_samples=weights((date(2024, 6, 1), 0.5), (date(2024, 6, 11), 0.7)),
        )
        alerts = aggregator.scan([snapshot])

        assert len(alerts) == 1
        assert alerts[0].source == AlertSource.GROWTH
        assert alerts[0].severity == AlertSeverity.CRITICAL
        assert alerts[0].subject_label == 'Broilers - Pen 1'
        assert alerts[0].metadata['days_between'] == 10

    def test_water_quality_uses_latest_reading(self, aggregator, catfish_batch):
        snapshot = BatchSnapshot(
            batch=catfish_batch,
            water_quality_readings=[
                water(date(2024, 6, 14), ph=5.0),
                water(date(2024, 6, 10), ph=7.5),
            ],
        )
        alerts = aggregator.scan([snapshot])

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.source == AlertSource.WATER_QUALITY
        assert alert.severity == AlertSeverity.WARNING
        assert alert.metadata['issues'] == ["pH too low (5, min: 6.5)"]
        assert alert.metric_value == 1

    def test_older_bad_reading_is_ignored(self, aggregator, catfish_batch):
        snapshot = BatchSnapshot(
            batch=catfish_batch,
            water_quality_readings=[
                water(date(2024, 6, 10), ph=5.0),
                water(date(2024, 6, 14), ph=7.5),
            ],
        )
        assert aggregator.scan([snapshot]) == []

    def test_water_quality_only_for_fish(self, aggregator, broiler_batch):
        snapshot = BatchSnapshot(
            batch=broiler_batch,
            water_quality_readings=[water(date(2024, 6, 14), ph=4.0)],
        )
        assert aggregator.check_water_quality(snapshot) == []

    def test_sudden_death_by_percentage(self, aggregator, broiler_batch, today):
        snapshot = BatchSnapshot(
            batch=broiler_batch,
            mortality_events=[MortalityEvent(date=today, quantity=60, batch_id='B-001')],
        )
        alerts = aggregator.check_mortality(snapshot)

        assert [alert.severity for alert in alerts] == [AlertSeverity.CRITICAL, AlertSeverity.WARNING]
        assert alerts[0].message == "Sudden death: 60 deaths in 24h (6.0%)"
        assert alerts[1].message == "High cumulative mortality: 6.0%"

    def test_sudden_death_by_head_count(self, aggregator, broiler_batch, today):
        snapshot = BatchSnapshot(
            batch=broiler_batch,
            mortality_events=[MortalityEvent(date=today, quantity=11)],
        )
        alerts = aggregator.check_mortality(snapshot)

        assert len(alerts) == 1
        assert alerts[0].severity == AlertSeverity.CRITICAL
        assert alerts[0].metadata['deaths'] == 11

    def test_deaths_outside_window_only_count_cumulatively(self, aggregator, broiler_batch):
        snapshot = BatchSnapshot(
            batch=broiler_batch,
            mortality_events=[MortalityEvent(date=date(2024, 6, 1), quantity=150)],
        )
        alerts = aggregator.check_mortality(snapshot)

        assert len(alerts) == 1
        assert alerts[0].message == "High cumulative mortality: 15.0%"
        assert alerts[0].severity == AlertSeverity.CRITICAL

    def test_poor_feed_conversion(self, aggregator, broiler_batch):
        snapshot = BatchSnapshot(
            batch=broiler_batch,
            weight_samples=weights((date(2024, 5, 15), 0.5), (date(2024, 6, 14), 2.5)),
            feed_records=[FeedRecord(batch_id='B-001', quantity_kg=5200)],
        )
        alerts = aggregator.scan([snapshot])

        assert len(alerts) == 1
        assert alerts[0].source == AlertSource.FEED
        assert alerts[0].message == "High FCR: 2.60 (target: 1.8)"
        assert alerts[0].severity == AlertSeverity.CRITICAL

    @pytest.mark.parametrize('status,quantity', [
        (BatchStatus.SOLD, 1000),
        (BatchStatus.DEPLETED, 1000),
        (BatchStatus.ACTIVE, 0),
    ])
    def test_inactive_or_empty_batches_skipped(self, aggregator, broiler_batch, today, status, quantity):
        broiler_batch.status = status
        broiler_batch.current_quantity = quantity
        snapshot = BatchSnapshot(
            batch=broiler_batch,
            weight_samples=weights((date(2024, 6, 1), 0.5), (date(2024, 6, 11), 0.6)),
            mortality_events=[MortalityEvent(date=today, quantity=500)],
        )
        assert aggregator.scan([snapshot]) == []


# =============================================================================
# INVENTORY CHECKS
# =============================================================================

class TestInventoryChecks:

    def test_feed_stock(self, aggregator):
        alerts = aggregator.scan([], feed_stock=[
            FeedStockItem(id='FS-1', feed_type='Grower', quantity_kg=40, min_threshold_kg=50),
            FeedStockItem(id='FS-2', feed_type='Starter', quantity_kg=0, min_threshold_kg=50),
            FeedStockItem(id='FS-3', feed_type='Finisher', quantity_kg=500, min_threshold_kg=50),
        ])

        assert [(alert.subject_id, alert.severity) for alert in alerts] == [
            ('FS-2', AlertSeverity.CRITICAL),
            ('FS-1', AlertSeverity.WARNING),
        ]
        assert alerts[0].message == "Out of feed: Starter"
        assert alerts[1].message == "Low feed stock: Grower at 40kg (reorder level 50kg)"

    def test_medication_expiry(self, aggregator, today):
        alerts = aggregator.scan([], medication_stock=[
            MedicationStockItem(id='M-1', name='Oxytet', quantity=20, min_threshold=5,
                                expiry_date=today + timedelta(days=15)),
            MedicationStockItem(id='M-2', name='Amprolium', quantity=20, min_threshold=5,
                                expiry_date=today - timedelta(days=5)),
            MedicationStockItem(id='M-3', name='Vitamins', quantity=20, min_threshold=5,
                                expiry_date=today + timedelta(days=45)),
        ])

        assert len(alerts) == 2
        assert alerts[0].severity == AlertSeverity.CRITICAL
        assert alerts[0].metadata['reason'] == 'expired'
        assert alerts[1].severity == AlertSeverity.WARNING
        assert alerts[1].message == "Expiring soon: Oxytet expires in 15 days"

    def test_medication_low_stock(self, aggregator):
        alerts = aggregator.scan([], medication_stock=[
            MedicationStockItem(id='M-1', name='Oxytet', quantity=3, min_threshold=5, unit='bottles'),
            MedicationStockItem(id='M-2', name='Amprolium', quantity=0, min_threshold=5),
        ])

        assert [alert.severity for alert in alerts] == [AlertSeverity.CRITICAL, AlertSeverity.WARNING]
        assert alerts[0].message == "Out of stock: Amprolium"
        assert alerts[1].message == "Low stock: Oxytet at 3 bottles (minimum 5 bottles)"
        assert all(alert.source == AlertSource.MEDICATION_INVENTORY for alert in alerts)


# =============================================================================
# FULL SCAN
# =============================================================================

class TestScan:

    def test_malformed_batch_does_not_stop_scan(self, aggregator, broiler_batch, healthy_snapshot,
                                                catfish_batch, caplog):
        broken = BatchSnapshot(
            batch=broiler_batch,
            weight_samples=weights((date(2024, 6, 1), 'abc'), (date(2024, 6, 11), 1.0)),
        )
        fish = BatchSnapshot(
            batch=catfish_batch,
            water_quality_readings=[water(date(2024, 6, 14), ph=5.0)],
        )

        alerts = aggregator.scan([broken, healthy_snapshot, fish])

        assert [alert.subject_id for alert in alerts] == ['F-001']
        assert {entry['check'] for entry in aggregator.skipped} == {'check_growth', 'check_feed_efficiency'}
        assert 'malformed input' in caplog.text

    def test_malformed_inventory_item_skipped(self, aggregator):
        alerts = aggregator.scan([], feed_stock=[
            FeedStockItem(id='FS-1', feed_type='Grower', quantity_kg=None, min_threshold_kg=50),
            FeedStockItem(id='FS-2', feed_type='Starter', quantity_kg=0, min_threshold_kg=50),
        ])
        assert [alert.subject_id for alert in alerts] == ['FS-2']
        assert aggregator.skipped[0]['subject_id'] == 'FS-1'

    def test_batch_with_missing_head_count_does_not_stop_scan(self, aggregator, broiler_batch, today):
        unreadable = BatchSnapshot(
            batch=Batch(id='B-404', species='broiler', livestock_type='poultry', current_quantity=None),
        )
        birds = BatchSnapshot(
            batch=broiler_batch,
            mortality_events=[MortalityEvent(date=today, quantity=60)],
        )

        alerts = aggregator.scan([unreadable, birds])

        assert {alert.subject_id for alert in alerts} == {'B-001'}
        assert alerts[0].severity == AlertSeverity.CRITICAL
        assert aggregator.skipped[0]['check'] == 'check_batch'
        assert aggregator.skipped[0]['subject_id'] == 'B-404'

    def test_inventory_item_without_id_skipped(self, aggregator):
        alerts = aggregator.scan([], medication_stock=[
            object(),
            MedicationStockItem(id='M-1', name='Oxytet', quantity=0, min_threshold=5),
        ])
        assert [alert.subject_id for alert in alerts] == ['M-1']
        assert aggregator.skipped[0]['subject_id'] is None

    def test_critical_alerts_come_first(self, aggregator, broiler_batch, catfish_batch, today):
        fish = BatchSnapshot(
            batch=catfish_batch,
            water_quality_readings=[water(date(2024, 6, 14), ph=5.0)],
        )
        birds = BatchSnapshot(
            batch=broiler_batch,
            mortality_events=[MortalityEvent(date=today, quantity=20)],
        )
        alerts = aggregator.scan(
            [fish, birds],
            feed_stock=[FeedStockItem(id='FS-1', feed_type='Grower', quantity_kg=0, min_threshold_kg=50)],
        )

        severities = [alert.severity for alert in alerts]
        assert severities == sorted(severities, key=lambda s: s != AlertSeverity.CRITICAL)
        assert [alert.source for alert in alerts] == [
            AlertSource.MORTALITY,
            AlertSource.FEED_INVENTORY,
            AlertSource.WATER_QUALITY,
        ]


class TestHelpers:

    @pytest.fixture
    def alerts(self):
        return [
            Alert('A', 'A', 'a', AlertSeverity.WARNING, AlertSource.GROWTH),
            Alert('B', 'B', 'b', AlertSeverity.CRITICAL, AlertSource.MORTALITY),
            Alert('C', 'C', 'c', AlertSeverity.WARNING, AlertSource.MORTALITY),
            Alert('D', 'D', 'd', AlertSeverity.CRITICAL, AlertSource.GROWTH),
        ]

    def test_sort_is_stable(self, alerts):
        assert [alert.subject_id for alert in sort_alerts_by_severity(alerts)] == ['B', 'D', 'A', 'C']

    def test_filter_by_severity(self, alerts):
        assert [a.subject_id for a in filter_alerts(alerts, severity=AlertSeverity.WARNING)] == ['A', 'C']

    def test_filter_by_source_and_severity(self, alerts):
        result = filter_alerts(alerts, severity=AlertSeverity.CRITICAL, source=AlertSource.GROWTH)
        assert [a.subject_id for a in result] == ['D']

    def test_counts(self, alerts):
        assert count_alerts_by_severity(alerts) == {'critical': 2, 'warning': 2}
        assert count_alerts_by_severity([]) == {'critical': 0, 'warning': 0}

    def test_filter_cached_dicts(self, alerts):
        cached = [alert.to_dict() for alert in alerts]
        result = filter_alerts(cached, severity='warning', source='mortality')
        assert [item['subject_id'] for item in result] == ['C']
        assert filter_alerts(cached, severity='', source=None) == cached
