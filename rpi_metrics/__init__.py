"""
RPi Metrics - host telemetry sampler with console and webhook sinks.
"""

from .const import APP_VERSION

__version__ = APP_VERSION
