"""Platform runtime: turns termination signals into a daemon stop."""

from __future__ import annotations

import asyncio
import logging
import signal

from pipeweaver.stop import Stop

_log = logging.getLogger(__name__)

_SIGNALS = ((signal.SIGINT, "Ctrl+C"), (signal.SIGTERM, "Signal"))


def _resolve(future: asyncio.Future, label: str) -> None:
    if not future.done():
        future.set_result(label)


async def spawn_runtime(stop: Stop) -> None:
    """Wait for Ctrl+C, SIGTERM or a stop, then trigger a stop for every holder."""
    loop = asyncio.get_running_loop()
    received: asyncio.Future = loop.create_future()
    installed = []
    for signum, label in _SIGNALS:
        try:
            loop.add_signal_handler(signum, _resolve, received, label)
        except (NotImplementedError, RuntimeError, ValueError):
            continue
        installed.append(signum)

    stopped = asyncio.ensure_future(stop.recv())
    try:
        await asyncio.wait({received, stopped}, return_when=asyncio.FIRST_COMPLETED)
        if received.done():
            _log.info("[Platform] Got %s, Stopping...", received.result())
        stop.trigger()
    finally:
        for signum in installed:
            loop.remove_signal_handler(signum)
        stopped.cancel()
        received.cancel()
    _log.info("[Platform] Stopped")