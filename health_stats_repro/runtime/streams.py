"""
Thread/Event-Loop Bridges.

The docker SDK is blocking. These helpers run its calls and streams on
daemon threads and hand results back to the event loop, so a call the
daemon never answers can be abandoned without keeping the process alive.
"""

import asyncio
import inspect
import logging
import threading
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

_END = object()


class Stopped(Exception):
    """The shared stop signal fired before the awaited value arrived."""


async def wait_or_stop(aw: Awaitable, stop: asyncio.Event) -> Any:
    """
    Await ``aw`` unless ``stop`` fires first.

    Raises Stopped when the stop signal is set, even if ``aw`` completed in
    the same iteration; the pending awaitable is cancelled.
    """
    task = asyncio.ensure_future(aw)
    stopper = asyncio.ensure_future(stop.wait())
    try:
        await asyncio.wait({task, stopper}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        stopper.cancel()

    if stop.is_set():
        if task.done() and not task.cancelled():
            task.exception()
        task.cancel()
        raise Stopped()
    return task.result()


def _resolve(future: asyncio.Future, result: Any, error: Optional[BaseException]):
    # the caller may have given up (timeout) before the thread finished
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


def call_in_thread(func: Callable, *args, name: Optional[str] = None, **kwargs) -> asyncio.Future:
    """
    Run a blocking call on a daemon thread.

    Returns a future bound to the running loop. Cancelling the future (for
    example through ``asyncio.wait_for``) abandons the thread; it is never
    joined.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def target():
        result, error = None, None
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            error = e
        try:
            loop.call_soon_threadsafe(_resolve, future, result, error)
        except RuntimeError:
            logger.debug(f"Event loop closed before {name or func!r} returned")

    threading.Thread(target=target, name=name, daemon=True).start()
    return future


class ThreadedStream:
    """
    Async iterator over a blocking iterator pumped on a daemon thread.

    ``factory`` is called on the thread, so a subscription call that never
    returns only blocks that thread. When ``stop`` fires the pump stops
    forwarding items and, for cancellable iterators (the SDK's event stream),
    the underlying connection is closed at once. Plain generators (the SDK's
    stats stream) can only be closed from the pump thread, so they are closed
    when their next item arrives; the SDK's stats generator does not close its
    HTTP response itself, so the daemon-side subscription lasts until that
    socket is garbage collected. Iteration ends when the source is exhausted
    or fails; failures are logged, not raised.
    """

    def __init__(self, factory: Callable[[], Any], stop: asyncio.Event, name: str):
        self.name = name
        self._factory = factory
        self._stop = stop
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = threading.Event()
        self._iterator = None
        self._thread = threading.Thread(target=self._pump, name=name, daemon=True)
        self._watcher: Optional[asyncio.Task] = None

    def start(self) -> "ThreadedStream":
        """Start the pump thread and the stop watcher."""
        self._thread.start()
        self._watcher = self._loop.create_task(self._watch_stop())
        return self

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self):
        """Stop forwarding and close the source connection if possible."""
        self._closed.set()
        iterator = self._iterator
        # generators may only be closed from the thread running them
        if iterator is None or inspect.isgenerator(iterator) or not hasattr(iterator, "close"):
            return
        try:
            iterator.close()
        except OSError as e:
            logger.debug(f"{self.name}: error closing stream: {e}")

    async def _watch_stop(self):
        await self._stop.wait()
        self.close()

    def _pump(self):
        try:
            self._iterator = self._factory()
            if self._closed.is_set():
                self.close()
            for item in self._iterator:
                if self._closed.is_set():
                    break
                self._deliver(item)
        except Exception as e:
            if not self._closed.is_set():
                logger.warning(f"{self.name}: stream failed: {e}")
        finally:
            if inspect.isgenerator(self._iterator):
                self._iterator.close()
            self._deliver(_END)

    def _deliver(self, item):
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)
        except RuntimeError:
            # event loop already closed
            self._closed.set()

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self._queue.get()
        if item is _END:
            self._queue.put_nowait(_END)
            if self._watcher is not None:
                self._watcher.cancel()
            raise StopAsyncIteration
        return item
