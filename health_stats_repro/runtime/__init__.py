"""
Container runtime access.

Wraps the blocking Docker SDK for use from the asyncio harness.
"""

from .docker_client import DockerRuntime
from .image import build_context, render_dockerfile
from .streams import Stopped, ThreadedStream, call_in_thread, wait_or_stop

__all__ = [
    "DockerRuntime",
    "build_context",
    "render_dockerfile",
    "Stopped",
    "ThreadedStream",
    "call_in_thread",
    "wait_or_stop",
]
