"""
Monitoring Constants

Enumerations and default reference tables used by the monitoring engine.

Tables in this module are defaults only. Calculators never read them
directly; they go through a MonitoringConfig instance (see config.py) so a
farm or a test can override any value.
"""

from django.db import models


class LivestockType(models.TextChoices):
    """Livestock categories a batch can belong to."""
    POULTRY = 'poultry', 'Poultry'
    FISH = 'fish', 'Fish'
    CATTLE = 'cattle', 'Cattle'
    GOATS = 'goats', 'Goats'
    SHEEP = 'sheep', 'Sheep'
    PIGS = 'pigs', 'Pigs'
    BEES = 'bees', 'Bees'


class BatchStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    DEPLETED = 'depleted', 'Depleted'
    SOLD = 'sold', 'Sold'


class SensorType(models.TextChoices):
    """Sensor hardware types supported by the telemetry ingest."""
    TEMPERATURE = 'temperature', 'Temperature'
    HUMIDITY = 'humidity', 'Humidity'
    PH = 'ph', 'pH'
    DISSOLVED_OXYGEN = 'dissolved_oxygen', 'Dissolved Oxygen'
    AMMONIA = 'ammonia', 'Ammonia'
    CO2 = 'co2', 'Carbon Dioxide'


class AlertSeverity(models.TextChoices):
    CRITICAL = 'critical', 'Critical'
    WARNING = 'warning', 'Warning'


class AlertSource(models.TextChoices):
    """Which check produced an alert."""
    GROWTH = 'growth', 'Growth'
    WATER_QUALITY = 'water_quality', 'Water Quality'
    MORTALITY = 'mortality', 'Mortality'
    FEED = 'feed', 'Feed Efficiency'
    FEED_INVENTORY = 'feed_inventory', 'Feed Inventory'
    MEDICATION_INVENTORY = 'medication_inventory', 'Medication Inventory'


class SensorStatus(models.TextChoices):
    ONLINE = 'online', 'Online'
    STALE = 'stale', 'Stale'
    OFFLINE = 'offline', 'Offline'


class FactorStatus(models.TextChoices):
    OPTIMAL = 'optimal', 'Optimal'
    LOW = 'low', 'Low'
    HIGH = 'high', 'High'


class ParameterStatus(models.TextChoices):
    OPTIMAL = 'optimal', 'Optimal'
    ACCEPTABLE = 'acceptable', 'Acceptable'
    WARNING = 'warning', 'Warning'
    CRITICAL = 'critical', 'Critical'


class GrowthStatus(models.TextChoices):
    SLOW = 'slow', 'Slow'
    NORMAL = 'normal', 'Normal'
    RAPID = 'rapid', 'Rapid'


class ReadingPeriod(models.TextChoices):
    HOURLY = 'hourly', 'Hourly'
    DAILY = 'daily', 'Daily'


# =============================================================================
# DEFAULT REFERENCE TABLES
# =============================================================================

# Safe ranges for pond water. None means the bound is not checked.
WATER_QUALITY_THRESHOLDS = {
    'ph': {'min': 6.5, 'max': 9.0},
    'temperature': {'min': 25, 'max': 30},
    'dissolved_oxygen': {'min': 5, 'max': None},
    'ammonia': {'min': None, 'max': 0.02},
}

# Per sensor type: safe range plus display metadata for chart reference lines.
SENSOR_TYPE_CONFIG = {
    SensorType.TEMPERATURE: {
        'label': 'Temperature', 'unit': '°C', 'min': 18, 'max': 32,
    },
    SensorType.HUMIDITY: {
        'label': 'Humidity', 'unit': '%', 'min': 40, 'max': 80,
    },
    SensorType.PH: {
        'label': 'pH', 'unit': '', 'min': 6.5, 'max': 9.0,
    },
    SensorType.DISSOLVED_OXYGEN: {
        'label': 'Dissolved Oxygen', 'unit': 'mg/L', 'min': 5, 'max': 12,
    },
    SensorType.AMMONIA: {
        'label': 'Ammonia', 'unit': 'ppm', 'min': 0, 'max': 25,
    },
    SensorType.CO2: {
        'label': 'Carbon Dioxide', 'unit': 'ppm', 'min': 0, 'max': 3000,
    },
}

# Expected average daily gain in kg/day
EXPECTED_ADG_BY_SPECIES = {
    'broiler': 0.05,
    'layer': 0.02,
    'catfish': 0.015,
    'tilapia': 0.01,
}
DEFAULT_EXPECTED_ADG = 0.03

# Industry target feed conversion ratios (kg feed per kg gain)
TARGET_FCR_BY_SPECIES = {
    'catfish': 1.5,
}
DEFAULT_TARGET_FCR = 1.8
