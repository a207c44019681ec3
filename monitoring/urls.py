"""
Monitoring URL Routes

All endpoints require authentication. Raw records are posted in the
request body; nothing is read from or written to the database.
"""

from django.urls import path

from .views import (
    AlertScanView,
    BatchPerformanceView,
    EnvironmentalScoreView,
    FarmAlertsView,
    FcrView,
    MortalityCorrelationView,
    ProfitView,
    ReadingSummaryView,
    SensorEvaluateView,
    SensorStatusView,
    WaterQualityEvaluateView,
    WaterQualitySummaryView,
)

app_name = 'monitoring'

urlpatterns = [
    # Batch performance and financials
    path('metrics/fcr/', FcrView.as_view(), name='fcr'),
    path('batches/performance/', BatchPerformanceView.as_view(), name='batch-performance'),
    path('financials/profit/', ProfitView.as_view(), name='profit'),

    # Water quality
    path('water-quality/evaluate/', WaterQualityEvaluateView.as_view(), name='water-quality-evaluate'),
    path('water-quality/summary/', WaterQualitySummaryView.as_view(), name='water-quality-summary'),

    # Sensors
    path('sensors/evaluate/', SensorEvaluateView.as_view(), name='sensor-evaluate'),
    path('sensors/status/', SensorStatusView.as_view(), name='sensor-status'),
    path('sensors/readings/summary/', ReadingSummaryView.as_view(), name='reading-summary'),

    # Alerts
    path('alerts/scan/', AlertScanView.as_view(), name='alert-scan'),
    path('alerts/<str:farm_id>/', FarmAlertsView.as_view(), name='farm-alerts'),

    # Structures
    path('structures/environmental-score/', EnvironmentalScoreView.as_view(), name='environmental-score'),
    path('structures/mortality-correlation/', MortalityCorrelationView.as_view(), name='mortality-correlation'),
]
