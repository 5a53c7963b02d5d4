"""
Docker Runtime Client.

Async wrapper around the Docker SDK covering the calls the harness makes:
image build, container lifecycle, and the stats and events streams.
Containers are referred to by id only.
"""

import asyncio
import io
import logging
from typing import Any, AsyncIterator, Dict, Optional

import docker
from docker.errors import BuildError, DockerException
from requests.exceptions import RequestException

from ..errors import RuntimeCallError, SetupError
from .streams import ThreadedStream, call_in_thread

logger = logging.getLogger(__name__)


class DockerRuntime:
    """Container runtime backed by the Docker Engine API."""

    def __init__(self, client: docker.DockerClient):
        self.client = client

    @classmethod
    def connect(cls, base_url: Optional[str] = None, timeout: int = 60) -> "DockerRuntime":
        """
        Connect to the Docker daemon.

        Args:
            base_url: Daemon URL. If None, uses the DOCKER_* environment.
            timeout: HTTP timeout for API calls, in seconds.
        """
        try:
            if base_url:
                client = docker.DockerClient(base_url=base_url, timeout=timeout)
            else:
                client = docker.from_env(timeout=timeout)
        except (DockerException, RequestException) as e:
            raise SetupError(f"Failed to connect to Docker daemon: {e}") from e
        return cls(client)

    async def _call(self, operation: str, container_id: Optional[str], func, *args, **kwargs):
        # the SDK does not wrap transport failures (resets, read timeouts)
        try:
            return await call_in_thread(func, *args, name=f"{operation}-{container_id or ''}", **kwargs)
        except (DockerException, RequestException) as e:
            raise RuntimeCallError(operation, container_id, e) from e

    def _build(self, tag: str, context: io.BytesIO) -> str:
        try:
            image, build_log = self.client.images.build(
                fileobj=context,
                custom_context=True,
                tag=tag,
                rm=True,
            )
        except BuildError as e:
            for chunk in e.build_log:
                if chunk.get("stream"):
                    logger.info(chunk["stream"].rstrip())
            raise

        for chunk in build_log:
            if chunk.get("stream"):
                logger.info(chunk["stream"].rstrip())
        return image.id

    async def build_image(self, tag: str, context: io.BytesIO) -> str:
        """Build ``tag`` from an in-memory tar context; returns the image id."""
        return await self._call("build", None, self._build, tag, context)

    async def create_container(self, image: str) -> str:
        """Create a container from ``image``; returns its id."""
        container = await self._call("create", None, self.client.containers.create, image)
        return container.id

    async def start_container(self, container_id: str) -> None:
        await self._call("start", container_id, self.client.api.start, container_id)

    async def kill_container(self, container_id: str) -> None:
        await self._call("kill", container_id, self.client.api.kill, container_id)

    async def inspect_container(self, container_id: str) -> Dict[str, Any]:
        return await self._call("inspect", container_id, self.client.api.inspect_container, container_id)

    async def remove_container(self, container_id: str) -> None:
        await self._call(
            "remove", container_id, self.client.api.remove_container, container_id, force=True
        )

    def subscribe_stats(self, container_id: str, stop: asyncio.Event) -> AsyncIterator[Optional[dict]]:
        """Stream decoded stats objects for one container until ``stop``."""
        return ThreadedStream(
            lambda: self.client.api.stats(container_id, stream=True, decode=True),
            stop,
            name=f"stats-{container_id[:12]}",
        ).start()

    def subscribe_events(self, stop: asyncio.Event) -> AsyncIterator[Optional[dict]]:
        """Stream decoded daemon-wide events until ``stop``."""
        return ThreadedStream(
            lambda: self.client.events(decode=True),
            stop,
            name="events",
        ).start()

    def close(self):
        self.client.close()
