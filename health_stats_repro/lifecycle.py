"""
Lifecycle Verification.

After the observation window every container is optionally killed, then
inspected, then optionally removed. Each call is bounded by a timeout; a
container whose calls fail or time out is reported as affected.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, Protocol, Sequence

from .errors import CallTimeout, RuntimeCallError

logger = logging.getLogger(__name__)


class LifecycleRuntime(Protocol):
    async def kill_container(self, container_id: str) -> None: ...

    async def inspect_container(self, container_id: str) -> Dict[str, Any]: ...

    async def remove_container(self, container_id: str) -> None: ...


@dataclass
class ContainerOutcome:
    """Result of verifying one container."""
    container_id: str
    errors: list[RuntimeCallError] = field(default_factory=list)
    inspected: bool = False
    removed: bool = False

    @property
    def affected(self) -> bool:
        return bool(self.errors)


class LifecycleVerifier:
    """Runs the kill/inspect/remove checks against each container."""

    def __init__(
        self,
        runtime: LifecycleRuntime,
        call_timeout: float = 15.0,
        stop_container: bool = False,
        remove_container: bool = False,
    ):
        self.runtime = runtime
        self.call_timeout = call_timeout
        self.stop_container = stop_container
        self.remove_container = remove_container

    async def _bounded(self, operation: str, container_id: str, call: Awaitable) -> Any:
        try:
            return await asyncio.wait_for(call, timeout=self.call_timeout)
        except asyncio.TimeoutError as e:
            raise CallTimeout(operation, container_id, self.call_timeout) from e

    async def verify(self, container_id: str) -> ContainerOutcome:
        """Check one container; never raises for runtime call failures."""
        outcome = ContainerOutcome(container_id=container_id)

        if self.stop_container:
            try:
                await self._bounded("kill", container_id, self.runtime.kill_container(container_id))
            except RuntimeCallError as e:
                outcome.errors.append(e)
                logger.warning(f"Could not stop container {container_id!r}: {e}")
                logger.info(f"Will try to inspect container {container_id!r}")

        try:
            info = await self._bounded(
                "inspect", container_id, self.runtime.inspect_container(container_id)
            )
        except RuntimeCallError as e:
            outcome.errors.append(e)
            logger.error(f"Error inspecting container {container_id!r}: {e}")
            return outcome

        outcome.inspected = True
        inspected_id = (info or {}).get("Id", container_id)
        logger.info(f"Successfully inspected container {inspected_id!r}")

        if self.remove_container:
            logger.info(f"Trying to remove container {container_id!r}")
            try:
                await self._bounded("remove", container_id, self.runtime.remove_container(container_id))
            except RuntimeCallError as e:
                outcome.errors.append(e)
                logger.error(f"Could not remove container {container_id!r}: {e}")
                return outcome
            outcome.removed = True
            logger.info(f"Removed container {container_id!r}")

        return outcome

    async def verify_all(self, container_ids: Sequence[str]) -> list[ContainerOutcome]:
        """Check containers one after another."""
        return [await self.verify(container_id) for container_id in container_ids]
