"""
Harness Errors and Exit Codes.

Setup errors abort a run; runtime call errors are collected per container
and only decide the final exit code.
"""

from enum import IntEnum
from typing import Optional


class ExitCode(IntEnum):
    """Process exit codes."""
    OK = 0
    SETUP_FAILURE = 1
    AFFECTED = 2


class HarnessError(Exception):
    """Base class for harness errors."""


class SetupError(HarnessError):
    """Image build, container create or start failed."""


class RuntimeCallError(HarnessError):
    """A call to the container runtime failed."""

    def __init__(self, operation: str, container_id: Optional[str], cause: object):
        self.operation = operation
        self.container_id = container_id
        self.cause = cause
        target = f" container {container_id!r}" if container_id else ""
        super().__init__(f"{operation}{target} failed: {cause}")


class CallTimeout(RuntimeCallError):
    """A runtime call did not return within its timeout."""

    def __init__(self, operation: str, container_id: Optional[str], timeout: float):
        self.timeout = timeout
        super().__init__(operation, container_id, f"no response after {timeout:g}s")
