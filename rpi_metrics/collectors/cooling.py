"""
Cooling device (thermal throttle) state collector.

Reads cur_state of a thermal cooling device, e.g.
/sys/class/thermal/cooling_device0/cur_state. When the sibling
max_state file is readable its value is attached as a label.
"""

from pathlib import Path

from ..const import DEFAULT_COOLING_DEVICE_PATH
from ..logging import get_logger
from ..models import Sample
from ..models.sample import utc_now
from .base import Collector, CollectionError, read_int

logger = get_logger("collectors.cooling")


class CoolingDeviceCollector(Collector):
    """Collector for a cooling device's current state."""

    COLLECTOR_ID = "cpu_cooling_device"

    def __init__(self, path: str = DEFAULT_COOLING_DEVICE_PATH, collector_id: str | None = None):
        super().__init__(collector_id)
        self.path = path or DEFAULT_COOLING_DEVICE_PATH

    def _read_max_state(self) -> int | None:
        max_path = Path(self.path).with_name("max_state")
        try:
            return read_int(max_path)
        except (OSError, CollectionError) as e:
            logger.debug(f"No usable max_state next to {self.path}: {e}")
            return None

    async def collect(self) -> list[Sample]:
        state = read_int(self.path)

        labels = {"source": "sysfs", "path": self.path}
        max_state = self._read_max_state()
        if max_state is not None:
            labels["max_state"] = str(max_state)

        return [
            Sample(
                name="cooling_state",
                value=float(state),
                unit="state",
                timestamp=utc_now(),
                labels=labels,
            )
        ]
