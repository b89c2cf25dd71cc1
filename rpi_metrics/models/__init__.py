"""
Data models for samples and collection results.
"""

from .sample import CollectorError, Result, Sample

__all__ = [
    "Sample",
    "Result",
    "CollectorError",
]
