"""
health-stats-repro - reproduce Docker API hangs on health-checked containers.

Runs two health-checked containers while streaming their stats and the
daemon events, then checks whether the daemon still answers lifecycle
calls for each of them.
"""

from .config import Settings
from .errors import ExitCode, SetupError
from .harness import ReproHarness, RunResult

__all__ = [
    "Settings",
    "ExitCode",
    "SetupError",
    "ReproHarness",
    "RunResult",
]
