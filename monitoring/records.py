"""
Monitoring Records

Plain data carriers for the monitoring engine.

Input records mirror the rows owned by the record-keeping apps (batches,
weight samples, feed logs, water tests, sensor telemetry, mortality,
sales, expenses, inventory). The engine never persists anything; output
records (alerts, scores, summaries) are built per call and handed back to
the caller.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from .constants import BatchStatus, LivestockType

Number = Union[int, float, Decimal]


# =============================================================================
# INPUT RECORDS
# =============================================================================

@dataclass
class Batch:
    """A group of animals raised together."""
    id: str
    species: str
    livestock_type: str
    current_quantity: int = 0
    initial_quantity: int = 0
    acquisition_date: Optional[date] = None
    status: str = BatchStatus.ACTIVE
    structure_id: Optional[str] = None
    label: str = ''

    @property
    def display_label(self) -> str:
        return self.label or f"{self.species} ({self.id})"

    @property
    def is_active(self) -> bool:
        return self.status == BatchStatus.ACTIVE


def supports_water_quality(batch: Batch) -> bool:
    """Water chemistry is only tracked for aquaculture batches."""
    return batch.livestock_type == LivestockType.FISH


@dataclass
class WeightSample:
    batch_id: str
    date: Union[date, datetime]
    average_weight_kg: Number
    sample_size: int = 1


@dataclass
class FeedRecord:
    batch_id: str
    quantity_kg: Number
    cost: Number = 0
    feed_type: str = ''
    date: Optional[date] = None


@dataclass
class WaterQualityReading:
    batch_id: str
    date: Union[date, datetime]
    ph: Number
    temperature_celsius: Number
    dissolved_oxygen_mg_l: Number
    ammonia_mg_l: Number


@dataclass
class Sensor:
    id: str
    sensor_type: str
    polling_interval_minutes: int = 15
    structure_id: Optional[str] = None
    name: str = ''
    last_reading_at: Optional[datetime] = None
    # Per-sensor overrides: min, max, warning_min, warning_max
    thresholds: Optional[Dict[str, Optional[Number]]] = None


@dataclass
class SensorReading:
    sensor_id: str
    value: Number
    recorded_at: datetime
    sensor_type: Optional[str] = None


@dataclass
class MortalityEvent:
    date: Union[date, datetime]
    quantity: int
    cause: str = ''
    batch_id: Optional[str] = None
    structure_id: Optional[str] = None


@dataclass
class SaleRecord:
    total_amount: Number
    date: Optional[date] = None
    description: str = ''


@dataclass
class ExpenseRecord:
    amount: Number
    date: Optional[date] = None
    category: str = ''


@dataclass
class FeedStockItem:
    id: str
    feed_type: str
    quantity_kg: Number
    min_threshold_kg: Number
    max_stock_kg: Optional[Number] = None


@dataclass
class MedicationStockItem:
    id: str
    name: str
    quantity: Number
    min_threshold: Number
    unit: str = ''
    expiry_date: Optional[date] = None


@dataclass
class BatchSnapshot:
    """Everything the alert scan needs to know about one batch."""
    batch: Batch
    weight_samples: List[WeightSample] = field(default_factory=list)
    feed_records: List[FeedRecord] = field(default_factory=list)
    water_quality_readings: List[WaterQualityReading] = field(default_factory=list)
    mortality_events: List[MortalityEvent] = field(default_factory=list)


# =============================================================================
# DERIVED RECORDS
# =============================================================================

class _Serializable:
    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Alert(_Serializable):
    subject_id: str
    subject_label: str
    message: str
    severity: str
    source: str
    metric_value: Optional[float] = None
    expected_value: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AdgResult(_Serializable):
    adg: float
    days_between: int
    weight_gain: float


@dataclass
class WeightStatistics(_Serializable):
    average_weight: float
    total_gain: float
    daily_gain: Optional[float]
    record_count: int
    days_between: Optional[int]


@dataclass
class ProfitSummary(_Serializable):
    revenue: float
    expenses: float
    profit: float
    profit_margin: float


@dataclass
class SensorEvaluation(_Serializable):
    sensor_type: str
    value: float
    severity: Optional[str] = None
    direction: Optional[str] = None
    limit: Optional[float] = None
    label: str = ''
    unit: str = ''

    @property
    def is_alert(self) -> bool:
        return self.severity is not None


@dataclass
class WaterQualitySummary(_Serializable):
    average_ph: Optional[float]
    average_temperature: Optional[float]
    average_dissolved_oxygen: Optional[float]
    average_ammonia: Optional[float]
    ph_status: str
    temperature_status: str
    dissolved_oxygen_status: str
    ammonia_status: str
    alert_count: int
    issue_count: int


@dataclass
class SensorHealth(_Serializable):
    sensor_id: str
    name: str
    sensor_type: str
    status: str
    last_reading_at: Optional[datetime]


@dataclass
class SensorFleetSummary(_Serializable):
    total_sensors: int
    online_sensors: int
    stale_sensors: int
    offline_sensors: int
    sensors: List[SensorHealth] = field(default_factory=list)


@dataclass
class EnvironmentalFactor(_Serializable):
    type: str
    label: str
    score: int
    status: str
    average: float


@dataclass
class EnvironmentalScore(_Serializable):
    score: Optional[int]
    factors: List[EnvironmentalFactor]
    message: str


@dataclass
class CorrelatedPoint(_Serializable):
    timestamp: datetime
    value: float
    mortality: Optional[int] = None


@dataclass
class ReadingAggregate(_Serializable):
    avg_value: float
    min_value: float
    max_value: float
    reading_count: int
    period_start: Optional[datetime] = None
