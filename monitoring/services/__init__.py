"""
Monitoring services module
"""

from .alerts import (
    AlertAggregator,
    count_alerts_by_severity,
    filter_alerts,
    sort_alerts_by_severity,
)
from .environment import environmental_score
from .metrics import (
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
    total_weight_gain,
    weight_statistics,
)
from .sensor_status import classify_sensor_status, summarize_sensor_fleet
from .thresholds import (
    evaluate_sensor_value,
    evaluate_water_quality,
    is_water_quality_alert,
    summarize_water_quality,
    water_parameter_status,
    water_quality_severity,
)
from .timeseries import aggregate_readings, bucket_readings, correlate_mortality

__all__ = [
    'AlertAggregator',
    'count_alerts_by_severity',
    'filter_alerts',
    'sort_alerts_by_severity',
    'environmental_score',
    'average_daily_gain',
    'batch_fcr',
    'fcr',
    'fcr_ratio',
    'feed_efficiency_alert',
    'growth_alert',
    'growth_status',
    'is_low_stock',
    'profit',
    'stock_percentage',
    'total_weight_gain',
    'weight_statistics',
    'classify_sensor_status',
    'summarize_sensor_fleet',
    'evaluate_sensor_value',
    'evaluate_water_quality',
    'is_water_quality_alert',
    'summarize_water_quality',
    'water_parameter_status',
    'water_quality_severity',
    'aggregate_readings',
    'bucket_readings',
    'correlate_mortality',
]
