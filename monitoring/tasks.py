"""
Monitoring Celery tasks.

Background alert scans. The scan result for a farm is cached so the
alerts endpoint can serve it without re-running every check.
"""
from celery import shared_task
from django.core.cache import cache
from django.utils import timezone
import logging

from .config import get_monitoring_config
from .serializers import AlertScanRequestSerializer
from .services import AlertAggregator, count_alerts_by_severity

logger = logging.getLogger(__name__)


def alerts_cache_key(farm_id):
    return f'monitoring:alerts:{farm_id}'


def run_alert_scan(data, farm_id=None):
    """
    Run the alert aggregator over validated scan data.

    Args:
        data: Output of AlertScanRequestSerializer.save()
        farm_id: When given, the result is cached under the farm's key

    Returns:
        dict with farm_id, generated_at, alerts and counts
    """
    config = get_monitoring_config()
    aggregator = AlertAggregator(config=config, now=data.get('now'))
    alerts = aggregator.scan(
        data.get('batches', []),
        feed_stock=data.get('feed_stock', []),
        medication_stock=data.get('medication_stock', []),
    )

    result = {
        'farm_id': farm_id,
        'generated_at': aggregator.now.isoformat(),
        'alerts': [alert.to_dict() for alert in alerts],
        'counts': count_alerts_by_severity(alerts),
        'skipped': aggregator.skipped,
    }

    if farm_id:
        cache.set(alerts_cache_key(farm_id), result, timeout=config.alert_cache_timeout)
    return result


@shared_task
def scan_farm_alerts(farm_id, payload):
    """
    Scan a farm snapshot for alerts and cache the result.

    Queued by the alert scan endpoint when the caller asks for an
    asynchronous scan; the payload is the raw request body.
    """
    logger.info(f"Starting alert scan for farm {farm_id}...")

    serializer = AlertScanRequestSerializer(data=payload)
    if not serializer.is_valid():
        logger.warning(f"Alert scan for farm {farm_id} rejected: {serializer.errors}")
        return {'status': 'invalid', 'farm_id': farm_id, 'errors': serializer.errors}

    try:
        result = run_alert_scan(serializer.save(), farm_id)
    except Exception as exc:
        logger.error(f"Alert scan for farm {farm_id} failed: {exc}")
        return {'status': 'error', 'farm_id': farm_id, 'error': str(exc)}

    logger.info(f"Alert scan for farm {farm_id} completed: {len(result['alerts'])} alerts")
    return {
        'status': 'success',
        'farm_id': farm_id,
        'timestamp': timezone.now().isoformat(),
        'alert_count': len(result['alerts']),
        'cache_key': alerts_cache_key(farm_id),
    }
