"""
Process Fan-Out.

Launches many harness processes at once to raise the odds of hitting the
daemon race, then collects their exit codes.
"""

import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Exit status of one harness process."""
    index: int
    pid: int
    returncode: int


def run_command(config: Optional[Path] = None) -> list[str]:
    """Command line for a single harness run."""
    cmd = [sys.executable, "-m", "health_stats_repro.cli", "run"]
    if config:
        cmd += ["--config", str(config)]
    return cmd


async def _run_one(index: int, cmd: list[str]) -> ProcessResult:
    proc = await asyncio.create_subprocess_exec(*cmd)
    logger.debug(f"Run {index} started as pid {proc.pid}")
    returncode = await proc.wait()
    logger.info(f"Run {index} (pid {proc.pid}) exited {returncode}")
    return ProcessResult(index=index, pid=proc.pid, returncode=returncode)


async def fan_out(runs: int, cmd: list[str]) -> list[ProcessResult]:
    """Start ``runs`` copies of ``cmd`` concurrently and wait for all of them."""
    logger.info(f"Starting {runs} concurrent runs")
    return list(await asyncio.gather(*(_run_one(i, cmd) for i in range(runs))))


def overall_exit_code(results: list[ProcessResult]) -> int:
    """Highest child exit code, 0 when every run succeeded."""
    return max((r.returncode for r in results), default=0)
