"""Built-in processors. Importing this package registers them in :data:`PROCESSORS`."""

from __future__ import annotations

from .batch import BatcherConfig
from .periodic_reader import PeriodicReaderConfig
from .resource import ResourceConfig

__all__ = [
    "BatcherConfig",
    "PeriodicReaderConfig",
    "ResourceConfig",
]
