"""
CPU temperature collector from a sysfs thermal zone.

Reads /sys/class/thermal/thermal_zone0/temp (millidegrees Celsius).
"""

from ..const import DEFAULT_CPU_TEMP_PATH
from ..models import Sample
from ..models.sample import utc_now
from .base import Collector, read_int


class CPUTemperatureCollector(Collector):
    """Collector for the CPU thermal zone temperature."""

    COLLECTOR_ID = "cpu_temp"

    def __init__(self, path: str = DEFAULT_CPU_TEMP_PATH, collector_id: str | None = None):
        super().__init__(collector_id)
        self.path = path or DEFAULT_CPU_TEMP_PATH

    async def collect(self) -> list[Sample]:
        """Read the zone temperature in degrees Celsius."""
        millidegrees = read_int(self.path)

        return [
            Sample(
                name="cpu_temperature",
                value=millidegrees / 1000.0,
                unit="celsius",
                timestamp=utc_now(),
                labels={"source": "sysfs", "path": self.path},
            )
        ]
