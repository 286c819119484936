"""Bounded CPU task execution in child processes."""

import asyncio
import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import structlog

from core.errors import TaskExecutionError, TaskTimeout
from misc.active_tasks import ActiveTaskRegistry, TaskHandle

logger = structlog.getLogger(__name__)

# Directory holding the top-level packages, so children can import workloads
SOURCE_ROOT = Path(__file__).resolve().parent.parent

REAP_TIMEOUT_SECONDS = 2.0


def cpu_burn_command(seconds: int) -> List[str]:
    return [sys.executable, "-m", "workloads.cpu_burn", str(seconds)]


@dataclass
class TaskResult:
    task_id: str
    seconds_requested: int
    actual_duration_ms: int


class TaskRunner:
    """
    Runs one workload per call in its own child process.

    Every call registers its handle in the registry right after the child is
    spawned and, whatever the outcome, kills the child and unregisters the
    handle before returning.
    """

    def __init__(
        self,
        registry: ActiveTaskRegistry,
        grace_period: float = 5.0,
        command_factory: Callable[[int], List[str]] = cpu_burn_command,
    ):
        self.registry = registry
        self.grace_period = grace_period
        self.command_factory = command_factory

    def hard_timeout_for(self, seconds: int) -> float:
        return seconds + self.grace_period

    async def _spawn(self, seconds: int) -> asyncio.subprocess.Process:
        env = os.environ.copy()
        env["PYTHONPATH"] = os.pathsep.join(
            p for p in (str(SOURCE_ROOT), env.get("PYTHONPATH")) if p
        )
        return await asyncio.create_subprocess_exec(
            *self.command_factory(seconds),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )

    async def run_bounded(
        self, seconds: int, hard_timeout: Optional[float] = None
    ) -> TaskResult:
        """
        Run the workload for ``seconds`` and wait at most ``hard_timeout``.

        Args:
            seconds: Requested workload duration
            hard_timeout: Deadline in seconds, defaults to seconds + grace period

        Returns:
            TaskResult with the duration measured by the child

        Raises:
            TaskTimeout: The child did not report back before the deadline
            TaskExecutionError: The child could not start, crashed or
                produced unreadable output
        """
        if hard_timeout is None:
            hard_timeout = self.hard_timeout_for(seconds)

        try:
            process = await self._spawn(seconds)
        except OSError as e:
            raise TaskExecutionError(f"Failed to start worker: {e}") from e

        handle = TaskHandle(seconds=seconds, process=process)
        self.registry.register(handle)
        log = logger.bind(task_id=handle.task_id, seconds=seconds)
        log.debug(f"Dispatched CPU task to worker pid={process.pid}")

        try:
            try:
                stdout, stderr = await asyncio.wait_for(
                    process.communicate(), timeout=hard_timeout
                )
            except asyncio.TimeoutError:
                log.warning(f"CPU task timed out after {hard_timeout:g}s")
                raise TaskTimeout(seconds, hard_timeout) from None

            duration_ms = self._read_duration(process.returncode, stdout, stderr)
            log.info(f"CPU task completed in {duration_ms}ms")
            return TaskResult(
                task_id=handle.task_id,
                seconds_requested=seconds,
                actual_duration_ms=duration_ms,
            )
        except TaskExecutionError as e:
            log.error(f"CPU task failed: {e.details}")
            raise
        finally:
            await self._cleanup(handle)

    @staticmethod
    def _read_duration(returncode: int, stdout: bytes, stderr: bytes) -> int:
        if returncode != 0:
            lines = [l for l in stderr.decode(errors="replace").splitlines() if l.strip()]
            message = lines[-1] if lines else f"Worker exited with code {returncode}"
            raise TaskExecutionError(message)

        try:
            payload = json.loads(stdout.decode().strip().splitlines()[-1])
            return int(payload["duration_ms"])
        except (IndexError, KeyError, TypeError, ValueError) as e:
            raise TaskExecutionError(f"Malformed worker output: {stdout[:200]!r}") from e

    async def _cleanup(self, handle: TaskHandle) -> None:
        # Both steps run before the first await so a second cancellation
        # cannot skip them.
        self.registry.unregister(handle)
        try:
            killed = handle.terminate()
        except Exception:
            logger.exception("Failed to terminate worker", task_id=handle.task_id)
            return

        if killed:
            try:
                await asyncio.wait_for(handle.process.wait(), REAP_TIMEOUT_SECONDS)
            except asyncio.TimeoutError:
                logger.warning("Worker did not exit after kill", task_id=handle.task_id)
