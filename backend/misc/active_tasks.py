"""In-memory registry of task handles whose execution context is still live."""

import asyncio
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from uuid import uuid4

import structlog

from core.errors import DuplicateTaskError

logger = structlog.getLogger(__name__)


@dataclass(eq=False)
class TaskHandle:
    """One dispatched workload and the child process running it."""

    seconds: int
    process: asyncio.subprocess.Process
    task_id: str = field(default_factory=lambda: str(uuid4()))
    started_at: float = field(default_factory=time.monotonic)

    @property
    def finished(self) -> bool:
        return self.process.returncode is not None

    def terminate(self) -> bool:
        """
        Kill the child process if it is still running.

        Returns:
            True if a kill signal was delivered, False if the process had
            already exited (in which case this is a no-op).
        """
        if self.finished:
            return False
        try:
            self.process.kill()
        except ProcessLookupError:
            return False
        return True


class ActiveTaskRegistry:
    """
    Set of task handles owned by one server instance.

    A handle is a member from dispatch until its cleanup runs. The lock is
    re-entrant so the shutdown hook, which runs as a signal handler on the
    loop thread, can drain while a register/unregister call is interrupted.
    """

    def __init__(self):
        self._tasks: Dict[str, TaskHandle] = {}
        self._lock = threading.RLock()

    def register(self, handle: TaskHandle) -> None:
        with self._lock:
            if handle.task_id in self._tasks:
                raise DuplicateTaskError(f"Task '{handle.task_id}' already registered")
            self._tasks[handle.task_id] = handle

    def unregister(self, handle: TaskHandle) -> None:
        with self._lock:
            self._tasks.pop(handle.task_id, None)

    def get(self, task_id: str) -> Optional[TaskHandle]:
        with self._lock:
            return self._tasks.get(task_id)

    def snapshot(self) -> List[TaskHandle]:
        with self._lock:
            return list(self._tasks.values())

    def size(self) -> int:
        with self._lock:
            return len(self._tasks)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, handle: TaskHandle) -> bool:
        with self._lock:
            return handle.task_id in self._tasks

    def drain_and_terminate_all(self) -> int:
        """
        Terminate every current member and empty the registry.

        Handles registered after the snapshot is taken are left alone.

        Returns:
            Number of handles that were drained
        """
        with self._lock:
            handles = list(self._tasks.values())
            for handle in handles:
                self._tasks.pop(handle.task_id, None)

        for handle in handles:
            try:
                handle.terminate()
            except Exception:
                logger.exception("Failed to terminate task", task_id=handle.task_id)

        if handles:
            logger.info(f"Terminated {len(handles)} active tasks")
        return len(handles)
