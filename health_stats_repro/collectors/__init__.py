"""
Stream collectors.

Each collector drains a runtime stream into a record sink until the
shared stop signal fires.
"""

from .events import EventLogger
from .stats import StatsFanIn, StatsSnapshot

__all__ = [
    "EventLogger",
    "StatsFanIn",
    "StatsSnapshot",
]
