"""
Monitoring Views

API endpoints that run the monitoring engine over posted raw records.

Endpoints:
- POST /api/monitoring/metrics/fcr/ - Feed conversion ratio
- POST /api/monitoring/batches/performance/ - ADG, FCR, weight stats, growth alert
- POST /api/monitoring/financials/profit/ - Revenue, expenses, profit, margin
- POST /api/monitoring/water-quality/evaluate/ - Check one water test
- POST /api/monitoring/water-quality/summary/ - Averages and grades over many tests
- POST /api/monitoring/sensors/evaluate/ - Check one sensor value
- POST /api/monitoring/sensors/status/ - Online/stale/offline per sensor
- POST /api/monitoring/sensors/readings/summary/ - Hourly or daily aggregates
- POST /api/monitoring/alerts/scan/ - Run the alert scan (inline or queued)
- GET  /api/monitoring/alerts/<farm_id>/ - Last cached scan for a farm
- POST /api/monitoring/structures/environmental-score/ - Structure environment score
- POST /api/monitoring/structures/mortality-correlation/ - Readings vs deaths
"""

import logging

from django.core.cache import cache
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .config import get_monitoring_config
from .records import Batch
from .serializers import (
    AlertScanRequestSerializer,
    BatchSnapshotSerializer,
    EnvironmentalScoreRequestSerializer,
    FcrRequestSerializer,
    MortalityCorrelationRequestSerializer,
    ProfitRequestSerializer,
    ReadingSummaryRequestSerializer,
    SensorEvaluationRequestSerializer,
    SensorStatusRequestSerializer,
    WaterQualityReadingSerializer,
    WaterQualitySummaryRequestSerializer,
)
from .services import (
    aggregate_readings,
    average_daily_gain,
    batch_fcr,
    bucket_readings,
    correlate_mortality,
    environmental_score,
    evaluate_sensor_value,
    evaluate_water_quality,
    fcr,
    filter_alerts,
    growth_alert,
    growth_status,
    profit,
    summarize_sensor_fleet,
    summarize_water_quality,
    water_parameter_status,
    water_quality_severity,
    weight_statistics,
)
from .services.thresholds import WATER_PARAMETERS
from .tasks import alerts_cache_key, run_alert_scan, scan_farm_alerts

logger = logging.getLogger(__name__)

TRUE_VALUES = (True, 'true', 'True', '1', 1)


class BaseMonitoringView(APIView):
    """Base class for monitoring views"""
    permission_classes = [IsAuthenticated]
    serializer_class = None

    def get_config(self):
        return get_monitoring_config()

    def validate(self, request):
        """
        Validate the request body.

        Returns:
            (serializer, None) on success, (None, 400 response) otherwise.
        """
        serializer = self.serializer_class(data=request.data)
        if not serializer.is_valid():
            logger.info("Rejected %s body: %s", self.__class__.__name__, serializer.errors)
            return None, Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        return serializer, None


# =============================================================================
# METRICS
# =============================================================================

class FcrView(BaseMonitoringView):
    """
    POST /api/monitoring/metrics/fcr/

    Body: {"total_feed_kg": 4000, "total_weight_gain_kg": 2000}
    Returns: {"fcr": 2.0}; fcr is null when there was no weight gain.
    """
    serializer_class = FcrRequestSerializer

    def post(self, request):
        serializer, error = self.validate(request)
        if error:
            return error
        data = serializer.validated_data
        return Response({'fcr': fcr(data['total_feed_kg'], data['total_weight_gain_kg'])})


class BatchPerformanceView(BaseMonitoringView):
    """
    POST /api/monitoring/batches/performance/

    Body: {"batch": {...}, "weight_samples": [...], "feed_records": [...]}

    Returns:
        - adg (null with fewer than two samples)
        - fcr (null without weight gain)
        - weight_statistics
        - growth_status (slow / normal / rapid)
        - growth_alert (null when growth is on track)
    """
    serializer_class = BatchSnapshotSerializer

    def post(self, request):
        serializer, error = self.validate(request)
        if error:
            return error
        snapshot = serializer.save()
        batch: Batch = snapshot.batch
        config = self.get_config()

        adg = average_daily_gain(snapshot.weight_samples)
        adg_value = adg.adg if adg else None
        alert = growth_alert(
            adg_value,
            batch.species,
            subject_id=batch.id,
            subject_label=batch.display_label,
            config=config,
        )

        return Response({
            'batch_id': batch.id,
            'adg': adg.to_dict() if adg else None,
            'fcr': batch_fcr(batch, snapshot.weight_samples, snapshot.feed_records),
            'weight_statistics': weight_statistics(snapshot.weight_samples).to_dict(),
            'growth_status': growth_status(adg_value, batch.species, config),
            'growth_alert': alert.to_dict() if alert else None,
        })


class ProfitView(BaseMonitoringView):
    """
    POST /api/monitoring/financials/profit/

    Body: {"sales": [{"total_amount": ...}], "expenses": [{"amount": ...}]}
    """
    serializer_class = ProfitRequestSerializer

    def post(self, request):
        serializer, error = self.validate(request)
        if error:
            return error
        data = serializer.save()
        summary = profit(data.get('sales', []), data.get('expenses', []))
        return Response(summary.to_dict())


# =============================================================================
# WATER QUALITY
# =============================================================================

class WaterQualityEvaluateView(BaseMonitoringView):
    """
    POST /api/monitoring/water-quality/evaluate/

    Returns the violated bounds, whether the test should alert, the
    severity and a grade for each parameter.
    """
    serializer_class = WaterQualityReadingSerializer

    def post(self, request):
        serializer, error = self.validate(request)
        if error:
            return error
        reading = serializer.save()
        config = self.get_config()

        issues = evaluate_water_quality(reading, config)
        parameters = {
            parameter: water_parameter_status(parameter, getattr(reading, attribute), config)
            for parameter, attribute in WATER_PARAMETERS.items()
        }
        return Response({
            'issues': issues,
            'is_alert': bool(issues),
            'severity': water_quality_severity(issues, config) if issues else None,
            'parameters': parameters,
        })


class WaterQualitySummaryView(BaseMonitoringView):
    """POST /api/monitoring/water-quality/summary/"""
    serializer_class = WaterQualitySummaryRequestSerializer

    def post(self, request):
        serializer, error = self.validate(request)
        if error:
            return error
        data = serializer.save()
        return Response(summarize_water_quality(data['readings'], self.get_config()).to_dict())


# =============================================================================
# SENSORS
# =============================================================================

class SensorEvaluateView(BaseMonitoringView):
    """POST /api/monitoring/sensors/evaluate/"""
    serializer_class = SensorEvaluationRequestSerializer

    def post(self, request):
        serializer, error = self.validate(request)
        if error:
            return error
        data = serializer.save()
        evaluation = evaluate_sensor_value(
            data['sensor_type'], data['value'], data.get('thresholds'), self.get_config()
        )
        return Response({**evaluation.to_dict(), 'is_alert': evaluation.is_alert})


class SensorStatusView(BaseMonitoringView):
    """
    POST /api/monitoring/sensors/status/

    Body: {"sensors": [...], "now": optional reference time}
    """
    serializer_class = SensorStatusRequestSerializer

    def post(self, request):
        serializer, error = self.validate(request)
        if error:
            return error
        data = serializer.save()
        summary = summarize_sensor_fleet(data['sensors'], data.get('now'), self.get_config())
        return Response(summary.to_dict())


class ReadingSummaryView(BaseMonitoringView):
    """
    POST /api/monitoring/sensors/readings/summary/

    Overall avg/min/max/count plus one aggregate per hour or day.
    """
    serializer_class = ReadingSummaryRequestSerializer

    def post(self, request):
        serializer, error = self.validate(request)
        if error:
            return error
        data = serializer.save()
        overall = aggregate_readings(data['readings'])
        return Response({
            'period': data['period'],
            'summary': overall.to_dict() if overall else None,
            'buckets': [bucket.to_dict() for bucket in bucket_readings(data['readings'], data['period'])],
        })


# =============================================================================
# ALERTS
# =============================================================================

class AlertScanView(BaseMonitoringView):
    """
    POST /api/monitoring/alerts/scan/

    Runs every alert check over a farm snapshot.

    Body:
        farm_id, batches, feed_stock, medication_stock, now (all optional)
        async (bool): queue the scan instead of running it inline; the
            result is then read from GET /api/monitoring/alerts/<farm_id>/

    Returns:
        {"alerts": [...], "counts": {"critical": n, "warning": n}} or 202
        with the queued task id.
    """
    serializer_class = AlertScanRequestSerializer

    def post(self, request):
        serializer, error = self.validate(request)
        if error:
            return error

        farm_id = serializer.validated_data.get('farm_id')
        if request.data.get('async') in TRUE_VALUES:
            if not farm_id:
                return Response({
                    'error': 'farm_id is required to queue a scan',
                    'code': 'FARM_ID_REQUIRED'
                }, status=status.HTTP_400_BAD_REQUEST)

            payload = {key: value for key, value in request.data.items() if key != 'async'}
            result = scan_farm_alerts.delay(farm_id, payload)
            logger.info("Queued alert scan for farm %s (task %s)", farm_id, result.id)
            return Response({
                'farm_id': farm_id,
                'task_id': result.id,
                'status': 'queued',
            }, status=status.HTTP_202_ACCEPTED)

        return Response(run_alert_scan(serializer.save(), farm_id))


class FarmAlertsView(BaseMonitoringView):
    """
    GET /api/monitoring/alerts/<farm_id>/

    Last scan result cached for the farm, 404 when none is cached.
    Query Parameters:
        severity: only alerts of this severity
        source: only alerts from this check
    """

    def get(self, request, farm_id):
        result = cache.get(alerts_cache_key(farm_id))
        if result is None:
            return Response({
                'error': 'No alert scan available for this farm',
                'code': 'NO_SCAN'
            }, status=status.HTTP_404_NOT_FOUND)

        severity = request.query_params.get('severity')
        source = request.query_params.get('source')
        if severity or source:
            result = {**result, 'alerts': filter_alerts(result['alerts'], severity, source)}
        return Response(result)


# =============================================================================
# STRUCTURES
# =============================================================================

class EnvironmentalScoreView(BaseMonitoringView):
    """
    POST /api/monitoring/structures/environmental-score/

    Body: {"sensors": [...], "readings": [...], "days": 7}
    """
    serializer_class = EnvironmentalScoreRequestSerializer

    def post(self, request):
        serializer, error = self.validate(request)
        if error:
            return error
        data = serializer.save()
        score = environmental_score(
            data['sensors'],
            data.get('readings', []),
            days=data['days'],
            now=data.get('now'),
            config=self.get_config(),
        )
        return Response(score.to_dict())


class MortalityCorrelationView(BaseMonitoringView):
    """
    POST /api/monitoring/structures/mortality-correlation/

    One row per reading: {timestamp, value, mortality}.
    """
    serializer_class = MortalityCorrelationRequestSerializer

    def post(self, request):
        serializer, error = self.validate(request)
        if error:
            return error
        data = serializer.save()
        points = correlate_mortality(data['readings'], data.get('mortality', []))
        return Response([point.to_dict() for point in points])
