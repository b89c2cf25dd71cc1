"""
Collection runner.

Invokes a fixed, ordered list of collectors once per call and folds
their samples and failures into a single Result.
"""

import dataclasses
from collections.abc import Iterable

from .collectors.base import Collector
from .logging import get_logger
from .models import CollectorError, Result, Sample
from .models.sample import utc_now

logger = get_logger("runner")


class Runner:
    """
    Runs collectors in order, isolating failures.

    A collector that raises contributes exactly one CollectorError and
    nothing else; the remaining collectors still run. There is no retry
    here: the periodic caller is the retry.
    """

    def __init__(self, collectors: Iterable[Collector]):
        self.collectors = list(collectors)

    async def collect_once(self) -> Result:
        """
        Run one collection cycle.

        Samples without a timestamp are stamped with the time taken at
        the start of the cycle; collector-provided timestamps are kept.
        """
        started = utc_now()
        samples: list[Sample] = []
        errors: list[CollectorError] = []

        for collector in self.collectors:
            try:
                collected = await collector.collect()
            except Exception as e:
                logger.warning(f"Collector {collector.collector_id} failed: {e}")
                errors.append(CollectorError(collector.collector_id, str(e) or type(e).__name__))
                continue

            samples.extend(
                s if s.timestamp is not None else dataclasses.replace(s, timestamp=started)
                for s in collected
            )

        logger.debug(f"Collected {len(samples)} samples, {len(errors)} errors")
        return Result(samples=tuple(samples), errors=tuple(errors))
