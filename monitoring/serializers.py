"""
Monitoring Serializers

Input serializers for the monitoring API. Each record serializer validates
one raw record and, through ``save()``, turns it into the matching
dataclass from records.py so views can hand it straight to the engine.
"""

from rest_framework import serializers

from .constants import BatchStatus, LivestockType, ReadingPeriod
from .records import (
    Batch,
    BatchSnapshot,
    ExpenseRecord,
    FeedRecord,
    FeedStockItem,
    MedicationStockItem,
    MortalityEvent,
    SaleRecord,
    Sensor,
    SensorReading,
    WaterQualityReading,
    WeightSample,
)

MONEY = {'max_digits': 14, 'decimal_places': 2}


class RecordSerializer(serializers.Serializer):
    """
    Base for serializers that build engine records.

    ``create()`` instantiates ``record_class`` from the validated data and
    builds nested serializers first. Without a ``record_class`` the
    validated data is returned as a plain dict.
    """
    record_class = None

    def create(self, validated_data):
        data = {}
        for name, value in validated_data.items():
            field = self.fields.get(name)
            data[name] = build_nested(field, value) if field is not None else value
        if self.record_class is None:
            return data
        return self.record_class(**data)


def build_nested(field, value):
    if value is None:
        return None
    if isinstance(field, serializers.ListSerializer) and isinstance(field.child, RecordSerializer):
        return [field.child.create(item) for item in value]
    if isinstance(field, RecordSerializer):
        return field.create(value)
    return value


# =============================================================================
# RAW RECORDS
# =============================================================================

class BatchSerializer(RecordSerializer):
    record_class = Batch

    id = serializers.CharField()
    species = serializers.CharField()
    livestock_type = serializers.ChoiceField(choices=LivestockType.choices)
    current_quantity = serializers.IntegerField(min_value=0, default=0)
    initial_quantity = serializers.IntegerField(min_value=0, default=0)
    acquisition_date = serializers.DateField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=BatchStatus.choices, default=BatchStatus.ACTIVE)
    structure_id = serializers.CharField(required=False, allow_null=True)
    label = serializers.CharField(required=False, allow_blank=True)


class WeightSampleSerializer(RecordSerializer):
    record_class = WeightSample

    batch_id = serializers.CharField(default='', allow_blank=True)
    date = serializers.DateField()
    average_weight_kg = serializers.FloatField(min_value=0)
    sample_size = serializers.IntegerField(min_value=1, default=1)


class FeedRecordSerializer(RecordSerializer):
    record_class = FeedRecord

    batch_id = serializers.CharField(default='', allow_blank=True)
    quantity_kg = serializers.FloatField(min_value=0)
    cost = serializers.DecimalField(min_value=0, default=0, **MONEY)
    feed_type = serializers.CharField(required=False, allow_blank=True)
    date = serializers.DateField(required=False, allow_null=True)


class WaterQualityReadingSerializer(RecordSerializer):
    record_class = WaterQualityReading

    batch_id = serializers.CharField(default='', allow_blank=True)
    date = serializers.DateField()
    ph = serializers.FloatField(min_value=0, max_value=14)
    temperature_celsius = serializers.FloatField()
    dissolved_oxygen_mg_l = serializers.FloatField(min_value=0)
    ammonia_mg_l = serializers.FloatField(min_value=0)


class SensorThresholdsSerializer(RecordSerializer):
    """Per-sensor bounds that override the sensor type defaults."""
    min = serializers.FloatField(required=False, allow_null=True)
    max = serializers.FloatField(required=False, allow_null=True)
    warning_min = serializers.FloatField(required=False, allow_null=True)
    warning_max = serializers.FloatField(required=False, allow_null=True)


class SensorSerializer(RecordSerializer):
    record_class = Sensor

    id = serializers.CharField()
    # Free text: unknown types are tolerated and simply carry no bounds
    sensor_type = serializers.CharField()
    polling_interval_minutes = serializers.IntegerField(min_value=1, default=15)
    structure_id = serializers.CharField(required=False, allow_null=True)
    name = serializers.CharField(required=False, allow_blank=True)
    last_reading_at = serializers.DateTimeField(required=False, allow_null=True)
    thresholds = SensorThresholdsSerializer(required=False, allow_null=True)


class SensorReadingSerializer(RecordSerializer):
    record_class = SensorReading

    sensor_id = serializers.CharField()
    value = serializers.FloatField()
    recorded_at = serializers.DateTimeField()
    sensor_type = serializers.CharField(required=False, allow_null=True)


class MortalityEventSerializer(RecordSerializer):
    record_class = MortalityEvent

    date = serializers.DateField()
    quantity = serializers.IntegerField(min_value=0)
    cause = serializers.CharField(required=False, allow_blank=True)
    batch_id = serializers.CharField(required=False, allow_null=True)
    structure_id = serializers.CharField(required=False, allow_null=True)


class SaleSerializer(RecordSerializer):
    record_class = SaleRecord

    total_amount = serializers.DecimalField(min_value=0, **MONEY)
    date = serializers.DateField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True)


class ExpenseSerializer(RecordSerializer):
    record_class = ExpenseRecord

    amount = serializers.DecimalField(min_value=0, **MONEY)
    date = serializers.DateField(required=False, allow_null=True)
    category = serializers.CharField(required=False, allow_blank=True)


class FeedStockItemSerializer(RecordSerializer):
    record_class = FeedStockItem

    id = serializers.CharField()
    feed_type = serializers.CharField()
    quantity_kg = serializers.FloatField()
    min_threshold_kg = serializers.FloatField(min_value=0)
    max_stock_kg = serializers.FloatField(required=False, allow_null=True, min_value=0)


class MedicationStockItemSerializer(RecordSerializer):
    record_class = MedicationStockItem

    id = serializers.CharField()
    name = serializers.CharField()
    quantity = serializers.FloatField()
    min_threshold = serializers.FloatField(min_value=0)
    unit = serializers.CharField(required=False, allow_blank=True)
    expiry_date = serializers.DateField(required=False, allow_null=True)


class BatchSnapshotSerializer(RecordSerializer):
    """One batch with the records the alert checks read."""
    record_class = BatchSnapshot

    batch = BatchSerializer()
    weight_samples = WeightSampleSerializer(many=True, required=False)
    feed_records = FeedRecordSerializer(many=True, required=False)
    water_quality_readings = WaterQualityReadingSerializer(many=True, required=False)
    mortality_events = MortalityEventSerializer(many=True, required=False)


# =============================================================================
# REQUEST BODIES
# =============================================================================

class FcrRequestSerializer(serializers.Serializer):
    total_feed_kg = serializers.FloatField(min_value=0)
    total_weight_gain_kg = serializers.FloatField()


class ProfitRequestSerializer(RecordSerializer):
    sales = SaleSerializer(many=True, required=False)
    expenses = ExpenseSerializer(many=True, required=False)


class WaterQualitySummaryRequestSerializer(RecordSerializer):
    readings = WaterQualityReadingSerializer(many=True, allow_empty=True)


class SensorEvaluationRequestSerializer(RecordSerializer):
    sensor_type = serializers.CharField()
    value = serializers.FloatField()
    thresholds = SensorThresholdsSerializer(required=False, allow_null=True)


class SensorStatusRequestSerializer(RecordSerializer):
    sensors = SensorSerializer(many=True, allow_empty=True)
    now = serializers.DateTimeField(required=False)


class ReadingSummaryRequestSerializer(RecordSerializer):
    readings = SensorReadingSerializer(many=True, allow_empty=True)
    period = serializers.ChoiceField(choices=ReadingPeriod.choices, default=ReadingPeriod.HOURLY)


class AlertScanRequestSerializer(RecordSerializer):
    """A farm snapshot: batches plus the farm's feed and medication stores."""
    farm_id = serializers.CharField(required=False)
    batches = BatchSnapshotSerializer(many=True, required=False)
    feed_stock = FeedStockItemSerializer(many=True, required=False)
    medication_stock = MedicationStockItemSerializer(many=True, required=False)
    now = serializers.DateTimeField(required=False)


class EnvironmentalScoreRequestSerializer(RecordSerializer):
    sensors = SensorSerializer(many=True, allow_empty=True)
    readings = SensorReadingSerializer(many=True, required=False)
    days = serializers.IntegerField(min_value=1, max_value=365, default=7)
    now = serializers.DateTimeField(required=False)


class MortalityCorrelationRequestSerializer(RecordSerializer):
    readings = SensorReadingSerializer(many=True, allow_empty=True)
    mortality = MortalityEventSerializer(many=True, required=False)
