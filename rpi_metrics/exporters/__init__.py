"""
Exporters delivering collection results.
"""

from .base import Exporter
from .console import ConsoleExporter
from .webhook import WebhookError, WebhookExporter

__all__ = [
    "Exporter",
    "ConsoleExporter",
    "WebhookExporter",
    "WebhookError",
]
