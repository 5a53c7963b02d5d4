"""
Reproduction Harness.

Builds the health-checked image, starts the containers, streams their
stats and the daemon events for the observation window, then verifies
that every container still answers lifecycle calls.
"""

import asyncio
import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, TextIO

from .artifacts import RecordWriter, open_log_file, run_stamp
from .collectors import EventLogger, StatsFanIn
from .config import Settings
from .errors import ExitCode, RuntimeCallError, SetupError
from .lifecycle import ContainerOutcome, LifecycleVerifier
from .runtime import DockerRuntime, build_context, render_dockerfile

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of one harness run."""
    container_ids: list[str]
    outcomes: list[ContainerOutcome] = field(default_factory=list)
    stats_written: int = 0
    events_written: int = 0

    @property
    def affected(self) -> list[ContainerOutcome]:
        return [o for o in self.outcomes if o.affected]

    @property
    def exit_code(self) -> ExitCode:
        return ExitCode.AFFECTED if self.affected else ExitCode.OK


class ReproHarness:
    """
    One reproduction run.

    The runtime may be injected; otherwise a DockerRuntime is connected
    from the settings when the run starts and closed when it ends.
    """

    def __init__(self, settings: Settings, runtime=None):
        self.settings = settings
        self.runtime = runtime
        self.started_at = datetime.now().astimezone()
        self._owns_runtime = runtime is None
        self.verifier: Optional[LifecycleVerifier] = None

    async def run(self) -> RunResult:
        """Execute the run; raises SetupError if the containers cannot be brought up."""
        cfg = self.settings
        logger.info(f"| Config: stop container:\t{cfg.stop_container}")
        logger.info(f"| Config: remove container:\t{cfg.remove_container}")

        if self.runtime is None:
            self.runtime = DockerRuntime.connect(cfg.docker_host, cfg.client_timeout)
        self.verifier = LifecycleVerifier(
            self.runtime,
            call_timeout=cfg.call_timeout,
            stop_container=cfg.stop_container,
            remove_container=cfg.remove_container,
        )

        cfg.ensure_dirs()
        stamp = run_stamp(self.started_at, os.getpid())
        stop = asyncio.Event()
        tasks = []

        with open_log_file(cfg.output_dir, "events-out", stamp) as events_out, \
                open_log_file(cfg.output_dir, "stats-out", stamp) as stats_out:
            events_sink = RecordWriter(events_out)
            stats_sink = RecordWriter(stats_out)

            try:
                if cfg.stream_events:
                    tasks.append(asyncio.ensure_future(EventLogger(self.runtime, events_sink).run(stop)))

                container_ids = await self._setup()
                result = RunResult(container_ids=container_ids)

                if cfg.stream_stats:
                    tasks.append(asyncio.ensure_future(
                        StatsFanIn(self.runtime, stats_sink).run(stop, container_ids)
                    ))

                # Run the containers for some time.
                logger.info(f"Waiting for {cfg.run_duration:g}s")
                await asyncio.sleep(cfg.run_duration)

                if cfg.cancel_streams_after_window:
                    stop.set()

                result.outcomes = await self.verifier.verify_all(container_ids)
            finally:
                stop.set()
                await self._join(tasks)
                if self._owns_runtime:
                    self.runtime.close()

            result.stats_written = stats_sink.count
            result.events_written = events_sink.count

        return result

    async def _setup(self) -> list[str]:
        cfg = self.settings

        logger.info("Building docker image for test")
        context = build_context(render_dockerfile(cfg))
        try:
            await self.runtime.build_image(cfg.image_name, context)
        except RuntimeCallError as e:
            raise SetupError(f"Failed to build image {cfg.image_name!r}: {e}") from e

        container_ids = []
        for _ in range(cfg.container_count):
            try:
                container_ids.append(await self.runtime.create_container(cfg.image_name))
            except RuntimeCallError as e:
                raise SetupError(f"Failed to create container: {e}") from e

        started = []
        for container_id in container_ids:
            try:
                await self.runtime.start_container(container_id)
            except RuntimeCallError as e:
                # check the ones already running before giving up
                await self.verifier.verify_all(started)
                raise SetupError(f"Failed to start container {container_id!r}: {e}") from e
            started.append(container_id)

        return container_ids

    async def _join(self, tasks):
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for r in results:
            if isinstance(r, Exception):
                logger.error(f"Stream collector failed: {r}")


def report(result: RunResult, out: Optional[TextIO] = None) -> ExitCode:
    """Log the verdict and print an inspect command per affected container."""
    out = out or sys.stdout
    affected = result.affected

    logger.info(f"Wrote {result.stats_written} stats records, {result.events_written} event records")
    if affected:
        logger.warning(f"Run affected {len(affected)} container(s):")
        for outcome in affected:
            out.write(f"# docker inspect {outcome.container_id}\n")
        out.flush()

    return result.exit_code
