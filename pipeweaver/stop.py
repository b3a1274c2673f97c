"""A shareable shutdown signal that any holder can trigger and await."""

from __future__ import annotations

import asyncio
import weakref


class _Receiver:
    def __init__(self) -> None:
        self.event = asyncio.Event()


class _Channel:
    def __init__(self) -> None:
        self.receivers: weakref.WeakSet[_Receiver] = weakref.WeakSet()

    def subscribe(self) -> _Receiver:
        receiver = _Receiver()
        self.receivers.add(receiver)
        return receiver


class Stop:
    """A stop signal; clones share the channel but only see triggers sent after they exist."""

    def __init__(self) -> None:
        self._channel = _Channel()
        self._receiver = self._channel.subscribe()
        self._shutdown = False

    @property
    def stopped(self) -> bool:
        """Whether this handle has already received a stop."""
        return self._shutdown

    def trigger(self) -> None:
        for receiver in list(self._channel.receivers):
            receiver.event.set()

    async def recv(self) -> None:
        """Wait until a stop is triggered; returns at once if one was already received."""
        if self._shutdown:
            return
        await self._receiver.event.wait()
        self._receiver.event.clear()
        self._shutdown = True

    def clone(self) -> Stop:
        twin = Stop.__new__(Stop)
        twin._channel = self._channel
        twin._receiver = self._channel.subscribe()
        twin._shutdown = self._shutdown
        return twin