"""Length-prefixed JSON message framing over asyncio streams."""

from __future__ import annotations

import asyncio
import json
import struct
from typing import Any, Callable, Generic, TypeVar

MAX_FRAME_LENGTH = 8 * 1024 * 1024
_HEADER = struct.Struct(">I")

In = TypeVar("In")
Out = TypeVar("Out")


class FrameError(Exception):
    """A frame could not be read, written or decoded."""


def encode_frame(payload: bytes) -> bytes:
    """Prefix a payload with its length as a 4-byte big-endian integer."""
    if len(payload) > MAX_FRAME_LENGTH:
        raise FrameError("frame size too big")
    return _HEADER.pack(len(payload)) + bytes(payload)


class Socket(Generic[In, Out]):
    """Reads messages of one type and writes messages of another over a stream pair."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: Any,
        decode: Callable[[Any], In],
        encode: Callable[[Out], Any],
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._decode = decode
        self._encode = encode
        self.address = ("127.0.0.1", 0)

    async def read(self) -> In | None:
        """Read the next message, or None once the stream ends cleanly."""
        try:
            header = await self._reader.readexactly(_HEADER.size)
        except asyncio.IncompleteReadError as error:
            if not error.partial:
                return None
            raise FrameError("bytes remaining on stream") from None
        (length,) = _HEADER.unpack(header)
        if length > MAX_FRAME_LENGTH:
            raise FrameError("frame size too big")
        try:
            payload = await self._reader.readexactly(length)
        except asyncio.IncompleteReadError:
            raise FrameError("bytes remaining on stream") from None
        try:
            return self._decode(json.loads(payload))
        except (ValueError, TypeError) as error:
            raise FrameError(f"invalid message: {error}") from error

    async def send(self, message: Out) -> None:
        """Encode a message and write it as one frame."""
        value = self._encode(message)
        payload = json.dumps(value, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        self._writer.write(encode_frame(payload))
        await self._writer.drain()

    async def close(self) -> None:
        self._writer.close()
        await self._writer.wait_closed()

    async def __aenter__(self) -> Socket[In, Out]:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()