"""
Metric Calculators

Pure performance and financial calculations for a batch:
- Feed Conversion Ratio (FCR)
- Average Daily Gain (ADG) and weight statistics
- Growth and feed-efficiency alerts
- Profit and profit margin
- Stock percentage and low-stock detection

Undefined metrics (no weight gain, no elapsed time) come back as None,
never as zero, so callers can tell "not computable" from "bad".
"""

import math
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from ..config import MonitoringConfig, get_monitoring_config
from ..constants import AlertSeverity, AlertSource, GrowthStatus
from ..records import (
    AdgResult,
    Alert,
    Batch,
    ExpenseRecord,
    FeedRecord,
    ProfitSummary,
    SaleRecord,
    WeightSample,
    WeightStatistics,
)
from ..utils import as_datetime, non_negative, round_half_up, to_decimal

SECONDS_PER_DAY = 24 * 60 * 60


# =============================================================================
# FEED CONVERSION
# =============================================================================

def fcr_ratio(total_feed_kg, total_weight_gain_kg) -> Optional[Decimal]:
    """Unrounded feed-to-gain ratio, or None when there was no gain."""
    gain = to_decimal(total_weight_gain_kg)
    if gain <= 0:
        return None
    return non_negative(total_feed_kg) / gain


def fcr(total_feed_kg, total_weight_gain_kg) -> Optional[float]:
    """
    Feed Conversion Ratio: kilograms of feed per kilogram gained.

    Args:
        total_feed_kg: Feed consumed by the whole batch
        total_weight_gain_kg: Weight gained by the whole batch

    Returns:
        Ratio rounded to 2 decimals, or None when there was no gain
        (zero or weight loss) and the ratio is meaningless. Very small
        ratios round to 0.0; use fcr_ratio() for the exact value.
    """
    ratio = fcr_ratio(total_feed_kg, total_weight_gain_kg)
    if ratio is None:
        return None
    return round_half_up(ratio, 2)


def total_weight_gain(initial_weight_kg, final_weight_kg, batch_quantity) -> float:
    """Per-animal gain scaled to the batch. Negative when the batch lost mass."""
    gain = (to_decimal(final_weight_kg) - to_decimal(initial_weight_kg)) * to_decimal(batch_quantity)
    return float(gain)


def total_feed_kg(feed_records: Iterable[FeedRecord]) -> Decimal:
    return sum((non_negative(record.quantity_kg) for record in feed_records), Decimal('0'))


def batch_fcr(
    batch: Batch,
    weight_samples: Sequence[WeightSample],
    feed_records: Iterable[FeedRecord],
) -> Optional[float]:
    """
    FCR for a batch from its raw records.

    Gain is the change in average weight between the first and last
    sample, multiplied by the current head count.
    """
    ordered = _ordered_samples(weight_samples)
    if len(ordered) < 2:
        return None

    gain = total_weight_gain(
        ordered[0].average_weight_kg,
        ordered[-1].average_weight_kg,
        batch.current_quantity,
    )
    return fcr(total_feed_kg(feed_records), gain)


# =============================================================================
# GROWTH
# =============================================================================

def _ordered_samples(samples: Sequence[WeightSample]) -> List[WeightSample]:
    return sorted(samples, key=lambda sample: as_datetime(sample.date))


def _elapsed_days(first, last) -> float:
    delta = as_datetime(last.date) - as_datetime(first.date)
    return delta.total_seconds() / SECONDS_PER_DAY


def average_daily_gain(samples: Sequence[WeightSample]) -> Optional[AdgResult]:
    """
    Average Daily Gain between the first and last weight sample.

    Only the two end points are used; intermediate samples do not smooth
    the result. Elapsed time is rounded up to whole days.

    Returns:
        AdgResult(adg, days_between, weight_gain) or None with fewer than
        two samples or no elapsed time.
    """
    ordered = _ordered_samples(samples)
    if len(ordered) < 2:
        return None

    first, last = ordered[0], ordered[-1]
    days_between = math.ceil(_elapsed_days(first, last))
    if days_between <= 0:
        return None

    weight_gain = to_decimal(last.average_weight_kg) - to_decimal(first.average_weight_kg)
    return AdgResult(
        adg=round_half_up(weight_gain / days_between, 3),
        days_between=days_between,
        weight_gain=round_half_up(weight_gain, 3),
    )


def weight_statistics(samples: Sequence[WeightSample]) -> WeightStatistics:
    """Summary figures for a batch's weight history."""
    ordered = _ordered_samples(samples)
    if not ordered:
        return WeightStatistics(
            average_weight=0.0,
            total_gain=0.0,
            daily_gain=None,
            record_count=0,
            days_between=None,
        )

    weights = [to_decimal(sample.average_weight_kg) for sample in ordered]
    average_weight = sum(weights, Decimal('0')) / len(weights)
    total_gain = weights[-1] - weights[0]
    elapsed = _elapsed_days(ordered[0], ordered[-1])
    daily_gain = round_half_up(total_gain / to_decimal(elapsed), 3) if elapsed > 0 else None

    return WeightStatistics(
        average_weight=round_half_up(average_weight, 3),
        total_gain=round_half_up(total_gain, 3),
        daily_gain=daily_gain,
        record_count=len(ordered),
        days_between=math.ceil(elapsed),
    )


def growth_status(adg, species: str, config: Optional[MonitoringConfig] = None) -> Optional[str]:
    """Classify an ADG as slow, normal or rapid against the species target."""
    if adg is None:
        return None
    config = config or get_monitoring_config()
    expected = config.expected_adg(species)
    if expected <= 0:
        return None

    ratio = float(adg) / expected
    if ratio < config.growth_slow_ratio:
        return GrowthStatus.SLOW
    if ratio > config.growth_rapid_ratio:
        return GrowthStatus.RAPID
    return GrowthStatus.NORMAL


def growth_alert(
    adg,
    species: str,
    subject_id: str = '',
    subject_label: str = '',
    config: Optional[MonitoringConfig] = None,
) -> Optional[Alert]:
    """
    Alert when a batch grows slower than expected for its species.

    Below 50% of the expected ADG is critical, 50% up to 70% is a warning,
    and 70% or more raises nothing. Unknown species are measured against
    the default expected ADG.
    """
    if adg is None:
        return None
    config = config or get_monitoring_config()
    expected = config.expected_adg(species)
    if expected <= 0:
        return None

    percent_of_expected = float(adg) / expected * 100
    if percent_of_expected < config.growth_critical_percent:
        severity = AlertSeverity.CRITICAL
    elif percent_of_expected < config.growth_warning_percent:
        severity = AlertSeverity.WARNING
    else:
        return None

    return Alert(
        subject_id=subject_id,
        subject_label=subject_label or species,
        message=(
            f"Growth rate is {percent_of_expected:.0f}% of expected "
            f"({float(adg) * 1000:.0f}g/day vs {expected * 1000:.0f}g/day expected)"
        ),
        severity=severity,
        source=AlertSource.GROWTH,
        metric_value=float(adg),
        expected_value=expected,
        metadata={'percent_of_expected': round_half_up(percent_of_expected, 1)},
    )


def feed_efficiency_alert(
    batch: Batch,
    fcr_value,
    config: Optional[MonitoringConfig] = None,
) -> Optional[Alert]:
    """Alert when FCR runs 20% (warning) or 40% (critical) above target."""
    if fcr_value is None:
        return None
    config = config or get_monitoring_config()
    target = config.target_fcr(batch.species)
    value = float(fcr_value)

    if value > target * config.fcr_critical_factor:
        severity = AlertSeverity.CRITICAL
    elif value > target * config.fcr_warning_factor:
        severity = AlertSeverity.WARNING
    else:
        return None

    return Alert(
        subject_id=batch.id,
        subject_label=batch.display_label,
        message=f"High FCR: {value:.2f} (target: {target})",
        severity=severity,
        source=AlertSource.FEED,
        metric_value=value,
        expected_value=target,
    )


# =============================================================================
# FINANCIALS
# =============================================================================

def profit(sales: Iterable[SaleRecord], expenses: Iterable[ExpenseRecord]) -> ProfitSummary:
    """
    Revenue, expenses, profit and profit margin.

    The margin is reported as 0 when there is no revenue, rather than
    undefined, so dashboards always have a number to show.
    """
    revenue = sum((non_negative(sale.total_amount) for sale in sales), Decimal('0'))
    spent = sum((non_negative(expense.amount) for expense in expenses), Decimal('0'))
    net = revenue - spent

    margin = round_half_up(net / revenue * 100, 1) if revenue > 0 else 0.0

    return ProfitSummary(
        revenue=float(revenue),
        expenses=float(spent),
        profit=float(net),
        profit_margin=margin,
    )


# =============================================================================
# INVENTORY
# =============================================================================

def stock_percentage(current, maximum) -> float:
    """Fill level of a store as a percentage; 0 when capacity is unknown."""
    capacity = to_decimal(maximum)
    if capacity <= 0:
        return 0.0
    return float(to_decimal(current) / capacity * 100)


def is_low_stock(quantity, threshold) -> bool:
    # At the threshold already counts as low.
    return to_decimal(quantity) <= to_decimal(threshold)
