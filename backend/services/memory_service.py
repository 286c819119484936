"""Synthetic memory pressure and forced garbage collection."""

import asyncio
import gc
import time
from dataclasses import dataclass

import psutil
import structlog

from core.errors import AllocationError, UnsupportedOperation

logger = structlog.getLogger(__name__)

MB = 1024 * 1024


@dataclass
class MemorySnapshot:
    heap_used_mb: float
    rss_mb: float


@dataclass
class AllocationResult:
    allocated_mb: int
    allocation_time_ms: int
    before: MemorySnapshot
    after: MemorySnapshot

    @property
    def heap_increase_mb(self) -> float:
        return round(self.after.heap_used_mb - self.before.heap_used_mb, 2)

    @property
    def rss_increase_mb(self) -> float:
        return round(self.after.rss_mb - self.before.rss_mb, 2)


@dataclass
class CollectionResult:
    collected_objects: int
    before: MemorySnapshot
    after: MemorySnapshot

    @property
    def heap_freed_mb(self) -> float:
        return round(self.before.heap_used_mb - self.after.heap_used_mb, 2)

    @property
    def rss_freed_mb(self) -> float:
        return round(self.before.rss_mb - self.after.rss_mb, 2)


class MemoryService:
    """Allocates and releases memory on the current process."""

    def __init__(
        self,
        chunk_mb: int = 1,
        yield_every: int = 10,
        step_pause_ms: int = 1,
        expose_gc: bool = True,
    ):
        self.chunk_mb = max(1, chunk_mb)
        self.yield_every = max(1, yield_every)
        self.step_pause_ms = max(0, step_pause_ms)
        self.expose_gc = expose_gc
        self._process = psutil.Process()

    def snapshot(self) -> MemorySnapshot:
        info = self._process.memory_info()
        # The data segment tracks the interpreter's heap; platforms without it
        # fall back to resident size.
        heap = getattr(info, "data", info.rss)
        return MemorySnapshot(
            heap_used_mb=round(heap / MB, 2),
            rss_mb=round(info.rss / MB, 2),
        )

    async def allocate(self, mb: int) -> AllocationResult:
        """
        Allocate ``mb`` megabytes in chunks, pausing between steps so other
        requests keep being served. The memory is released on return.

        Raises:
            AllocationError: The interpreter ran out of memory
        """
        before = self.snapshot()
        start = time.perf_counter()
        chunk_bytes = self.chunk_mb * MB
        blocks = []
        remaining = mb * MB

        try:
            step = 0
            while remaining > 0:
                size = min(chunk_bytes, remaining)
                # Filled bytes so the pages are actually committed
                blocks.append(b"\xa5" * size)
                remaining -= size
                step += 1
                if step % self.yield_every == 0:
                    await asyncio.sleep(self.step_pause_ms / 1000)

        except MemoryError as e:
            allocated = len(blocks) * self.chunk_mb
            blocks.clear()
            logger.error(f"Allocation failed after {allocated}MB of {mb}MB")
            raise AllocationError(
                f"Out of memory after allocating {allocated}MB of {mb}MB"
            ) from e

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        after = self.snapshot()
        blocks.clear()

        result = AllocationResult(
            allocated_mb=mb,
            allocation_time_ms=elapsed_ms,
            before=before,
            after=after,
        )
        logger.info(
            f"Allocated {mb}MB in {elapsed_ms}ms "
            f"(rss +{result.rss_increase_mb}MB)"
        )
        return result

    def collect(self) -> CollectionResult:
        """
        Run a full garbage collection.

        Raises:
            UnsupportedOperation: Forced collection is disabled by configuration
        """
        if not self.expose_gc:
            raise UnsupportedOperation(
                "Forced garbage collection is disabled. Set EXPOSE_GC=true to enable it."
            )

        before = self.snapshot()
        collected = gc.collect()
        after = self.snapshot()
        logger.info(f"Forced GC collected {collected} objects")
        return CollectionResult(collected_objects=collected, before=before, after=after)
