"""
Chat webhook exporter.

Posts a human-readable summary of a Result as {"content": "..."} to a
webhook URL (Discord-style). Sends are rate limited: within
min_interval of the last successful post, export() does nothing. A
failed post does not count as sent, so the next scheduled export
retries.
"""

import time
from datetime import timezone

import httpx

from ..const import WEBHOOK_ERROR_BODY_LIMIT, WEBHOOK_SEPARATOR_LEN, WEBHOOK_TIMEOUT
from ..logging import get_logger
from ..models import Result, Sample
from ..models.sample import utc_now
from .base import Exporter

logger = get_logger("exporters.webhook")

CPU_UTILIZATION = "cpu_utilization"

GIGABYTE = 1_000_000_000


class WebhookError(Exception):
    """The webhook could not be used or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


async def read_error_body(response: httpx.Response) -> str:
    """Read at most WEBHOOK_ERROR_BODY_LIMIT bytes of a streamed response body."""
    chunks: list[bytes] = []
    remaining = WEBHOOK_ERROR_BODY_LIMIT
    async for chunk in response.aiter_bytes():
        chunks.append(chunk[:remaining])
        remaining -= len(chunks[-1])
        if remaining <= 0:
            break
    return b"".join(chunks).decode("utf-8", errors="replace")


def format_bytes(value: float) -> str:
    """Decimal gigabytes plus the raw byte count."""
    value = max(value, 0.0)
    return f"{value / GIGABYTE:.3f} gigabytes ({value:.3f} bytes)"


def format_sample_line(sample: Sample) -> str:
    """One message line for a non-CPU sample."""
    if sample.unit == "bytes":
        return f"{sample.name}: {format_bytes(sample.value)}"
    if sample.unit == "celsius":
        return f"{sample.name}: {sample.value:.3f} celsius"
    return f"{sample.name}: {sample.value:.3f} {sample.unit or '(no unit)'}"


def format_cpu_block(samples: tuple[Sample, ...] | list[Sample]) -> str:
    """
    CPU utilization block: overall first, then cores.

    Cores are sorted by their label as strings, so "cpu10" comes
    before "cpu2".
    """
    overall: Sample | None = None
    per_core: list[Sample] = []

    for sample in samples:
        if sample.name != CPU_UTILIZATION:
            continue
        cpu_id = sample.labels.get("cpu", "")
        if cpu_id in ("", "total"):
            overall = sample
        else:
            per_core.append(sample)

    if overall is None and not per_core:
        return ""

    lines = ["CPU Utilization:"]
    if overall is not None:
        lines.append(f"- overall: {overall.value:.2f}%")
    for sample in sorted(per_core, key=lambda s: s.labels["cpu"]):
        lines.append(f"- {sample.labels['cpu']}: {sample.value:.2f}%")

    return "\n".join(lines)


def format_message(result: Result) -> str:
    """Render a Result as webhook message text."""
    collected_at = next((s.timestamp for s in result.samples if s.timestamp), None) or utc_now()
    stamp = collected_at.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    lines = ["-" * WEBHOOK_SEPARATOR_LEN, f"Metrics (collected at {stamp}):"]

    cpu_block = format_cpu_block(result.samples)
    if cpu_block:
        lines.append(cpu_block)

    lines.extend(format_sample_line(s) for s in result.samples if s.name != CPU_UTILIZATION)

    if result.errors:
        lines.append("Errors:")
        lines.extend(f"- {e.collector_id}: {e.message}" for e in result.errors)

    return "\n".join(lines)


class WebhookExporter(Exporter):
    """
    Rate-limited webhook notifier.

    Args:
        url: Webhook URL
        min_interval: Minimum seconds between successful posts (0 = no limit)
        timeout: HTTP timeout in seconds
        transport: Optional httpx transport (used by tests)
    """

    def __init__(
        self,
        url: str,
        min_interval: float = 0.0,
        timeout: float = WEBHOOK_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.min_interval = min_interval
        self.timeout = timeout
        self._transport = transport
        self._last_sent: float | None = None

    def _too_soon(self, now: float) -> bool:
        if self.min_interval <= 0 or self._last_sent is None:
            return False
        return now - self._last_sent < self.min_interval

    async def export(self, result: Result) -> None:
        """
        Post the Result unless the rate limit window is still closed.

        Raises:
            WebhookError: If no URL is configured or the response is not 2xx
            httpx.HTTPError: On transport failures (timeout, connection)
        """
        if not self.url:
            raise WebhookError("webhook url is empty")

        now = time.monotonic()
        if self._too_soon(now):
            logger.debug("Skipping webhook post: minimum interval not elapsed")
            return

        payload = {"content": format_message(result)}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            async with client.stream("POST", self.url, json=payload) as response:
                if not response.is_success:
                    body = await read_error_body(response)
                    message = f"webhook returned status {response.status_code}"
                    if body:
                        message = f"{message}: {body}"
                    raise WebhookError(message, status_code=response.status_code, body=body)

        self._last_sent = now
        logger.debug(f"Posted webhook message ({len(payload['content'])} chars)")

    def __repr__(self) -> str:
        return f"WebhookExporter(min_interval={self.min_interval}s)"
