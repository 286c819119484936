import asyncio
import sys

import pytest

from core.errors import DuplicateTaskError
from misc.active_tasks import ActiveTaskRegistry, TaskHandle

from conftest import make_handle


def test_register_and_unregister(registry):
    handle = make_handle()

    registry.register(handle)
    assert handle in registry
    assert registry.size() == 1
    assert registry.get(handle.task_id) is handle

    registry.unregister(handle)
    assert handle not in registry
    assert len(registry) == 0


def test_unregister_is_idempotent(registry):
    handle = make_handle()
    registry.register(handle)

    registry.unregister(handle)
    registry.unregister(handle)

    assert registry.size() == 0


def test_duplicate_register_raises(registry):
    handle = make_handle()
    registry.register(handle)

    with pytest.raises(DuplicateTaskError):
        registry.register(handle)
    assert registry.size() == 1


def test_handles_get_distinct_ids():
    assert make_handle().task_id != make_handle().task_id


def test_terminate_running_process_kills_it():
    handle = make_handle(returncode=None)

    assert handle.terminate() is True
    handle.process.kill.assert_called_once()


def test_terminate_finished_process_is_noop():
    handle = make_handle(returncode=0)

    assert handle.terminate() is False
    handle.process.kill.assert_not_called()


def test_terminate_tolerates_vanished_process():
    handle = make_handle(returncode=None)
    handle.process.kill.side_effect = ProcessLookupError()

    assert handle.terminate() is False


def test_drain_terminates_every_member(registry):
    handles = [make_handle() for _ in range(5)]
    for handle in handles:
        registry.register(handle)

    drained = registry.drain_and_terminate_all()

    assert drained == 5
    assert registry.size() == 0
    for handle in handles:
        handle.process.kill.assert_called_once()


def test_drain_continues_past_terminate_failures(registry):
    broken = make_handle()
    broken.process.kill.side_effect = RuntimeError("boom")
    healthy = make_handle()
    registry.register(broken)
    registry.register(healthy)

    assert registry.drain_and_terminate_all() == 2
    assert registry.size() == 0
    healthy.process.kill.assert_called_once()


def test_drain_on_empty_registry(registry):
    assert registry.drain_and_terminate_all() == 0


async def test_drain_kills_real_processes():
    registry = ActiveTaskRegistry()
    handles = []
    for _ in range(3):
        process = await asyncio.create_subprocess_exec(
            sys.executable, "-c", "import time; time.sleep(60)"
        )
        handle = TaskHandle(seconds=60, process=process)
        registry.register(handle)
        handles.append(handle)

    assert registry.drain_and_terminate_all() == 3
    assert registry.size() == 0

    for handle in handles:
        await asyncio.wait_for(handle.process.wait(), 5)
        assert handle.finished
        assert handle.process.returncode != 0
        # Already reaped, so a second terminate does nothing
        assert handle.terminate() is False
