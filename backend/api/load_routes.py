"""Synthetic load endpoints: delay, CPU burn and memory pressure."""

import asyncio
import time
from typing import Optional

from fastapi import APIRouter
import structlog

from misc.utils import instance_info, parse_int_param
from models.load import (
    CpuTaskResponse,
    DelayResponse,
    MemoryStressResponse,
    MemoryUsage,
)
from utils.deps import MemoryServiceDep, SettingsDep, TaskRunnerDep

router = APIRouter()

logger = structlog.getLogger(__name__)


@router.get("/delay", response_model=DelayResponse)
@router.get("/delay/{ms}", response_model=DelayResponse)
async def delay(settings: SettingsDep, ms: Optional[str] = None):
    """Respond after waiting ``ms`` milliseconds without blocking the loop."""
    requested = parse_int_param(ms, settings.DEFAULT_DELAY_MS)

    start = time.perf_counter()
    await asyncio.sleep(requested / 1000)
    elapsed_ms = int((time.perf_counter() - start) * 1000)

    return DelayResponse(
        requested_delay=requested,
        actual_delay=requested,
        elapsed_ms=elapsed_ms,
        **instance_info(settings),
    )


@router.get("/cpu", response_model=CpuTaskResponse)
@router.get("/cpu/{seconds}", response_model=CpuTaskResponse)
async def cpu(
    runner: TaskRunnerDep, settings: SettingsDep, seconds: Optional[str] = None
):
    """
    Burn CPU for ``seconds`` in a dedicated worker process.

    Fails with 500 when the worker times out (seconds + grace period) or
    crashes.
    """
    requested = parse_int_param(seconds, settings.DEFAULT_CPU_SECONDS)
    logger.debug(f"CPU request for {requested}s")
    result = await runner.run_bounded(requested)

    return CpuTaskResponse(
        task_id=result.task_id,
        seconds_requested=result.seconds_requested,
        actual_duration_ms=result.actual_duration_ms,
        **instance_info(settings),
    )


@router.get("/memory", response_model=MemoryStressResponse)
@router.get("/memory/{mb}", response_model=MemoryStressResponse)
async def memory(
    memory_service: MemoryServiceDep, settings: SettingsDep, mb: Optional[str] = None
):
    """Allocate ``mb`` megabytes incrementally and report usage deltas."""
    requested = parse_int_param(mb, settings.DEFAULT_MEMORY_MB)
    logger.debug(f"Memory request for {requested}MB")
    result = await memory_service.allocate(requested)

    return MemoryStressResponse(
        allocated_mb=result.allocated_mb,
        allocation_time_ms=result.allocation_time_ms,
        before=MemoryUsage(**vars(result.before)),
        after=MemoryUsage(**vars(result.after)),
        heap_used_mb=result.after.heap_used_mb,
        rss_mb=result.after.rss_mb,
        heap_increase_mb=result.heap_increase_mb,
        rss_increase_mb=result.rss_increase_mb,
        **instance_info(settings),
    )
