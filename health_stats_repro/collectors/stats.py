"""
Stats Fan-In Collector.

Streams statistics from several containers at once and merges them into a
single sink. Each container gets its own subscription and forwarding task,
so a stalled or closed stream never holds up the others; one merge task is
the only writer.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional, Protocol, Sequence

from ..artifacts import RecordWriter
from ..runtime.streams import Stopped, wait_or_stop

logger = logging.getLogger(__name__)


class StatsSource(Protocol):
    def subscribe_stats(self, container_id: str, stop: asyncio.Event) -> AsyncIterator[Optional[dict]]:
        ...


@dataclass
class StatsSnapshot:
    """A stats object received for one container."""
    container_id: str
    data: Optional[dict]
    received_at: float = field(default_factory=time.time)

    def to_record(self) -> dict[str, Any]:
        return {
            "container": self.container_id,
            "received_at": self.received_at,
            "stats": self.data,
        }


class StatsFanIn:
    """Merges per-container stats streams into one record sink."""

    def __init__(self, source: StatsSource, sink: RecordWriter):
        self.source = source
        self.sink = sink

    async def run(self, stop: asyncio.Event, container_ids: Sequence[str]) -> None:
        """
        Collect stats until ``stop`` is set.

        Returns as soon as the stop signal is observed; snapshots still
        queued at that point are dropped.
        """
        queue: asyncio.Queue = asyncio.Queue()
        forwarders = [
            asyncio.ensure_future(self._forward(container_id, stop, queue))
            for container_id in container_ids
        ]

        try:
            await self._merge(stop, queue)
        finally:
            for task in forwarders:
                task.cancel()

    async def _forward(self, container_id: str, stop: asyncio.Event, queue: asyncio.Queue):
        """Move one container's snapshots into the shared queue."""
        logger.info(f"Listening for stats for container {container_id!r}")
        stream = self.source.subscribe_stats(container_id, stop).__aiter__()

        while True:
            try:
                data = await wait_or_stop(stream.__anext__(), stop)
            except StopAsyncIteration:
                logger.info(f"Container {container_id!r} is no longer streaming")
                return
            except Stopped:
                return

            logger.debug(f"Received stat for container {container_id!r}")
            queue.put_nowait(StatsSnapshot(container_id=container_id, data=data))

    async def _merge(self, stop: asyncio.Event, queue: asyncio.Queue):
        while True:
            try:
                snapshot = await wait_or_stop(queue.get(), stop)
            except Stopped:
                return

            if not snapshot.data:
                continue
            self.sink.write(snapshot.to_record())
