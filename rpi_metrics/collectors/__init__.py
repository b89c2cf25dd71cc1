"""
Metric collectors for host telemetry.
"""

from .base import CollectionError, Collector, MalformedReadingError
from .cooling import CoolingDeviceCollector
from .cpu import CPUUtilizationCollector
from .storage import StorageCollector
from .temperature import CPUTemperatureCollector

__all__ = [
    "Collector",
    "CollectionError",
    "MalformedReadingError",
    "CPUTemperatureCollector",
    "CoolingDeviceCollector",
    "CPUUtilizationCollector",
    "StorageCollector",
]
