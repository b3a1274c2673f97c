import asyncio
import os
import signal

import pytest

from pipeweaver.runtime import spawn_runtime
from pipeweaver.stop import Stop


@pytest.mark.asyncio
async def test_returns_when_already_triggered():
    stop = Stop()
    stop.trigger()
    await asyncio.wait_for(spawn_runtime(stop), 1)
    assert stop.stopped is True


@pytest.mark.asyncio
async def test_trigger_from_other_holder_ends_runtime():
    stop = Stop()
    other = stop.clone()
    task = asyncio.ensure_future(spawn_runtime(stop))
    await asyncio.sleep(0)
    other.trigger()
    await asyncio.wait_for(task, 1)
    assert task.done() and task.exception() is None
    await asyncio.wait_for(other.recv(), 1)
    assert other.stopped is True


@pytest.mark.asyncio
async def test_sigterm_triggers_stop_for_everyone():
    stop = Stop()
    observer = stop.clone()
    task = asyncio.ensure_future(spawn_runtime(stop))
    await asyncio.sleep(0)
    os.kill(os.getpid(), signal.SIGTERM)
    await asyncio.wait_for(task, 2)
    await asyncio.wait_for(observer.recv(), 1)
    assert observer.stopped is True