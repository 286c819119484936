import pytest

from core.errors import UnsupportedOperation
from services.memory_service import MemoryService


async def test_allocate_reports_usage_before_and_after():
    service = MemoryService(chunk_mb=1, yield_every=2, step_pause_ms=0)

    result = await service.allocate(8)

    assert result.allocated_mb == 8
    assert result.allocation_time_ms >= 0
    assert result.before.rss_mb > 0
    assert result.after.heap_used_mb > 0
    assert result.rss_increase_mb == round(result.after.rss_mb - result.before.rss_mb, 2)
    assert result.heap_increase_mb == round(
        result.after.heap_used_mb - result.before.heap_used_mb, 2
    )


async def test_allocate_zero_megabytes():
    service = MemoryService()

    result = await service.allocate(0)

    assert result.allocated_mb == 0


async def test_allocate_yields_between_steps(monkeypatch):
    sleeps = []

    async def fake_sleep(delay):
        sleeps.append(delay)

    monkeypatch.setattr("services.memory_service.asyncio.sleep", fake_sleep)
    service = MemoryService(chunk_mb=1, yield_every=2, step_pause_ms=5)

    await service.allocate(6)

    assert sleeps == [0.005, 0.005, 0.005]


def test_collect_reports_freed_memory():
    service = MemoryService(expose_gc=True)

    result = service.collect()

    assert result.collected_objects >= 0
    assert result.heap_freed_mb == round(
        result.before.heap_used_mb - result.after.heap_used_mb, 2
    )


def test_collect_disabled_raises():
    service = MemoryService(expose_gc=False)

    with pytest.raises(UnsupportedOperation) as exc_info:
        service.collect()
    assert exc_info.value.status_code == 400
    assert "EXPOSE_GC" in exc_info.value.details
