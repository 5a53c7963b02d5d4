"""
Pytest configuration and shared fixtures
"""
import asyncio

import pytest

from health_stats_repro.config import Settings
from health_stats_repro.errors import RuntimeCallError


class FakeRuntime:
    """In-memory stand-in for DockerRuntime.

    ``fail`` maps (operation, container_id) to an error message and
    ``hang`` holds (operation, container_id) pairs that never return.
    """

    def __init__(self, stats=None, events=None, fail=None, hang=None, hanging_stats=()):
        self.stats = stats or {}
        self.events = events or []
        self.fail = fail or {}
        self.hang = set(hang or ())
        self.hanging_stats = set(hanging_stats)
        self.calls = []
        self.built_context = None
        self._ids = iter(["a", "b", "c", "d"])

    async def _op(self, operation, container_id, result=None):
        self.calls.append((operation, container_id))
        if (operation, container_id) in self.hang:
            await asyncio.Event().wait()
        if (operation, container_id) in self.fail:
            raise RuntimeCallError(operation, container_id, self.fail[(operation, container_id)])
        return result

    async def build_image(self, tag, context):
        self.built_context = context.read()
        return await self._op("build", None, "sha256:feed")

    async def create_container(self, image):
        container_id = next(self._ids)
        return await self._op("create", container_id, container_id)

    async def start_container(self, container_id):
        await self._op("start", container_id)

    async def kill_container(self, container_id):
        await self._op("kill", container_id)

    async def inspect_container(self, container_id):
        return await self._op("inspect", container_id, {"Id": container_id})

    async def remove_container(self, container_id):
        await self._op("remove", container_id)

    def subscribe_stats(self, container_id, stop):
        return self._stats_stream(container_id)

    async def _stats_stream(self, container_id):
        for item in self.stats.get(container_id, []):
            await asyncio.sleep(0)
            yield item
        if container_id in self.hanging_stats:
            await asyncio.Event().wait()

    def subscribe_events(self, stop):
        return self._event_stream()

    async def _event_stream(self):
        for event in self.events:
            await asyncio.sleep(0)
            yield event
        # the daemon keeps the events stream open
        await asyncio.Event().wait()

    def operations(self, operation):
        return [cid for op, cid in self.calls if op == operation]


def snapshots(count):
    return [{"read": i, "cpu_stats": {"total_usage": i * 10}} for i in range(count)]


@pytest.fixture
def fake_runtime_factory():
    return FakeRuntime


@pytest.fixture
def make_snapshots():
    return snapshots


@pytest.fixture
def harness_settings(tmp_path):
    return Settings(
        output_dir=tmp_path,
        run_duration=0.2,
        call_timeout=0.1,
        _env_file=None,
    )


@pytest.fixture
def wait_until():
    """Poll ``predicate`` until true or fail after ``timeout`` seconds."""
    async def _wait(predicate, timeout=2.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met in time")
            await asyncio.sleep(0.005)
    return _wait
