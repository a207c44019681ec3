"""
Tests for the metric calculators: FCR, ADG, growth, profit and stock.
"""
from datetime import date, datetime
from decimal import Decimal

import pytest
from django.utils import timezone

from monitoring.constants import AlertSeverity, AlertSource, GrowthStatus
from monitoring.records import ExpenseRecord, FeedRecord, SaleRecord, WeightSample
from monitoring.services.metrics import (
    average_daily_gain,
    batch_fcr,
    fcr,
    fcr_ratio,
    feed_efficiency_alert,
    growth_alert,
    growth_status,
    is_low_stock,
    profit,
    stock_percentage,
    total_feed_kg,
    total_weight_gain,
    weight_statistics,
)


def sample(day, weight):
    return WeightSample(batch_id='B-001', date=day, average_weight_kg=weight)


# =============================================================================
# FCR
# =============================================================================

class TestFcr:

    def test_flock_example(self):
        """4 kg feed and 2 kg gain per bird over 1000 birds."""
        gain = total_weight_gain(0.5, 2.5, 1000)
        assert gain == 2000.0
        assert fcr(4 * 1000, gain) == 2.0

    @pytest.mark.parametrize('gain', [0, -5, -0.1])
    def test_undefined_without_gain(self, gain):
        assert fcr(100, gain) is None

    def test_linear_in_feed(self):
        assert fcr(400, 100) == 2 * fcr(200, 100)

    @pytest.mark.parametrize('feed,gain', [(1, 3), (0.7, 9), (12.5, 1.1)])
    def test_exact_ratio_linear_in_feed(self, feed, gain):
        assert float(fcr_ratio(2 * feed, gain)) == pytest.approx(2 * float(fcr_ratio(feed, gain)))

    def test_decreasing_in_gain(self):
        assert fcr(100, 80) < fcr(100, 50)

    def test_exact_ratio_strictly_decreasing_in_gain(self):
        # 1/1000 and 1/1001 both round to 0.0
        assert fcr_ratio(1, 1001) < fcr_ratio(1, 1000)

    def test_exact_ratio_positive_for_positive_inputs(self):
        assert fcr_ratio(0.5, 1000) > 0

    def test_tiny_ratio_rounds_to_zero(self):
        assert fcr(0.5, 1000) == 0.0
        assert fcr_ratio(0.5, 1000) == Decimal('0.0005')

    def test_rounds_half_up(self):
        assert fcr(1, 8) == 0.13

    def test_weight_loss_is_negative_gain(self):
        assert total_weight_gain(2.0, 1.5, 10) == -5.0

    def test_negative_feed_counts_as_zero(self):
        records = [
            FeedRecord(batch_id='B-001', quantity_kg=50),
            FeedRecord(batch_id='B-001', quantity_kg=-20),
        ]
        assert total_feed_kg(records) == 50

    def test_batch_fcr(self, broiler_batch):
        samples = [sample(date(2024, 5, 1), 0.5), sample(date(2024, 6, 1), 2.5)]
        feed = [
            FeedRecord(batch_id='B-001', quantity_kg=2000),
            FeedRecord(batch_id='B-001', quantity_kg=2000),
        ]
        assert batch_fcr(broiler_batch, samples, feed) == 2.0

    def test_batch_fcr_needs_two_samples(self, broiler_batch):
        feed = [FeedRecord(batch_id='B-001', quantity_kg=100)]
        assert batch_fcr(broiler_batch, [sample(date(2024, 5, 1), 0.5)], feed) is None


# =============================================================================
# ADG & WEIGHT STATISTICS
# =============================================================================

class TestAverageDailyGain:

    def test_ten_day_example(self):
        result = average_daily_gain([
            sample(date(2024, 1, 1), 0.5),
            sample(date(2024, 1, 11), 1.5),
        ])
        assert result.adg == 0.1
        assert result.days_between == 10
        assert result.weight_gain == 1.0

    def test_uses_first_and_last_by_date(self):
        result = average_daily_gain([
            sample(date(2024, 1, 11), 1.5),
            sample(date(2024, 1, 6), 5.0),
            sample(date(2024, 1, 1), 0.5),
        ])
        assert result.adg == 0.1
        assert result.days_between == 10

    def test_partial_days_round_up(self):
        result = average_daily_gain([
            sample(timezone.make_aware(datetime(2024, 1, 1, 0, 0)), 1.0),
            sample(timezone.make_aware(datetime(2024, 1, 3, 12, 0)), 1.3),
        ])
        assert result.days_between == 3
        assert result.adg == 0.1

    def test_single_sample(self):
        assert average_daily_gain([sample(date(2024, 1, 1), 0.5)]) is None

    def test_no_elapsed_time(self):
        assert average_daily_gain([
            sample(date(2024, 1, 1), 0.5),
            sample(date(2024, 1, 1), 0.7),
        ]) is None

    def test_weight_statistics(self):
        stats = weight_statistics([
            sample(date(2024, 1, 1), 1.0),
            sample(date(2024, 1, 6), 1.5),
            sample(date(2024, 1, 11), 2.0),
        ])
        assert stats.average_weight == 1.5
        assert stats.total_gain == 1.0
        assert stats.daily_gain == 0.1
        assert stats.record_count == 3
        assert stats.days_between == 10

    def test_weight_statistics_empty(self):
        stats = weight_statistics([])
        assert stats.record_count == 0
        assert stats.average_weight == 0.0
        assert stats.daily_gain is None


# =============================================================================
# GROWTH
# =============================================================================

class TestGrowth:

    def test_critical_below_half_of_expected(self, config):
        alert = growth_alert(0.02, 'broiler', subject_id='B-001', config=config)
        assert alert.severity == AlertSeverity.CRITICAL
        assert alert.source == AlertSource.GROWTH
        assert alert.message == "Growth rate is 40% of expected (20g/day vs 50g/day expected)"
        assert alert.expected_value == 0.05

    def test_warning_between_half_and_seventy_percent(self, config):
        alert = growth_alert(0.03, 'broiler', config=config)
        assert alert.severity == AlertSeverity.WARNING
        assert alert.message.startswith("Growth rate is 60% of expected")

    def test_on_track(self, config):
        assert growth_alert(0.04, 'broiler', config=config) is None

    def test_species_is_case_insensitive(self, config):
        alert = growth_alert(0.02, 'Broiler', config=config)
        assert alert.expected_value == 0.05

    def test_unknown_species_uses_default(self, config):
        alert = growth_alert(0.012, 'duck', config=config)
        assert alert.expected_value == 0.03
        assert alert.severity == AlertSeverity.CRITICAL

    def test_no_adg(self, config):
        assert growth_alert(None, 'broiler', config=config) is None

    @pytest.mark.parametrize('adg,expected', [
        (0.02, GrowthStatus.SLOW),
        (0.05, GrowthStatus.NORMAL),
        (0.07, GrowthStatus.RAPID),
    ])
    def test_growth_status(self, config, adg, expected):
        assert growth_status(adg, 'broiler', config) == expected


class TestFeedEfficiencyAlert:

    def test_on_target(self, broiler_batch, config):
        assert feed_efficiency_alert(broiler_batch, 2.0, config) is None

    def test_warning(self, broiler_batch, config):
        alert = feed_efficiency_alert(broiler_batch, 2.3, config)
        assert alert.severity == AlertSeverity.WARNING
        assert alert.message == "High FCR: 2.30 (target: 1.8)"

    def test_critical(self, broiler_batch, config):
        alert = feed_efficiency_alert(broiler_batch, 2.6, config)
        assert alert.severity == AlertSeverity.CRITICAL

    def test_catfish_target(self, catfish_batch, config):
        alert = feed_efficiency_alert(catfish_batch, 2.2, config)
        assert alert.expected_value == 1.5
        assert alert.severity == AlertSeverity.CRITICAL

    def test_undefined_fcr(self, broiler_batch, config):
        assert feed_efficiency_alert(broiler_batch, None, config) is None


# =============================================================================
# FINANCIALS & INVENTORY
# =============================================================================

class TestProfit:

    def test_profit_and_margin(self):
        summary = profit(
            [SaleRecord(total_amount=100), SaleRecord(total_amount=50)],
            [ExpenseRecord(amount=30)],
        )
        assert summary.revenue == 150.0
        assert summary.expenses == 30.0
        assert summary.profit == 120.0
        assert summary.profit_margin == 80.0

    def test_profit_identity(self):
        summary = profit([SaleRecord(total_amount='245.50')], [ExpenseRecord(amount='99.25')])
        assert summary.profit == summary.revenue - summary.expenses

    def test_no_revenue(self):
        summary = profit([], [ExpenseRecord(amount=100)])
        assert summary.profit == -100.0
        assert summary.profit_margin == 0.0

    def test_no_expenses(self):
        assert profit([SaleRecord(total_amount=80)], []).profit_margin == 100.0

    def test_negative_amounts_ignored(self):
        summary = profit(
            [SaleRecord(total_amount=100), SaleRecord(total_amount=-40)],
            [ExpenseRecord(amount=-10)],
        )
        assert summary.revenue == 100.0
        assert summary.expenses == 0.0


class TestStock:

    def test_stock_percentage(self):
        assert stock_percentage(25, 100) == 25.0

    def test_stock_percentage_without_capacity(self):
        assert stock_percentage(10, 0) == 0.0

    def test_low_stock_is_inclusive(self):
        assert is_low_stock(10, 10) is True
        assert is_low_stock(9.5, 10) is True
        assert is_low_stock(11, 10) is False
