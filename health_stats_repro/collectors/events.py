"""Daemon-wide event listener."""

import asyncio
import logging
from typing import AsyncIterator, Optional, Protocol

from ..artifacts import RecordWriter
from ..runtime.streams import Stopped, wait_or_stop

logger = logging.getLogger(__name__)


class EventSource(Protocol):
    def subscribe_events(self, stop: asyncio.Event) -> AsyncIterator[Optional[dict]]:
        ...


class EventLogger:
    """Writes every daemon event to a record sink until stopped."""

    def __init__(self, source: EventSource, sink: RecordWriter):
        self.source = source
        self.sink = sink

    async def run(self, stop: asyncio.Event) -> None:
        logger.info("Listening for daemon events")
        stream = self.source.subscribe_events(stop).__aiter__()

        while True:
            try:
                event = await wait_or_stop(stream.__anext__(), stop)
            except StopAsyncIteration:
                logger.info("Daemon event stream closed")
                return
            except Stopped:
                return

            if event:
                self.sink.write(event)
