import asyncio
import json

import pytest

from pipeweaver.framing import MAX_FRAME_LENGTH, FrameError, Socket, encode_frame


class _Writer:
    def __init__(self):
        self.data = bytearray()
        self.closed = False

    def write(self, data):
        self.data += data

    async def drain(self):
        pass

    def close(self):
        self.closed = True

    async def wait_closed(self):
        pass


def _identity(value):
    return value


def _socket(data=b""):
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    reader.feed_eof()
    writer = _Writer()
    return Socket(reader, writer, _identity, _identity), writer


def test_encode_frame_wire_bytes():
    assert encode_frame(b"abc") == b"\x00\x00\x00\x03abc"


def test_encode_frame_rejects_oversize():
    with pytest.raises(FrameError):
        encode_frame(bytes(MAX_FRAME_LENGTH + 1))


@pytest.mark.asyncio
async def test_send_then_read_round_trip():
    sender, writer = _socket()
    messages = [{"a": 1}, "Ping", [1, "é"]]
    for message in messages:
        await sender.send(message)
    receiver, _ = _socket(bytes(writer.data))
    received = [await receiver.read() for _ in messages]
    assert received == messages
    assert await receiver.read() is None


@pytest.mark.asyncio
async def test_sent_payload_is_json():
    sender, writer = _socket()
    await sender.send({"id": 3})
    assert json.loads(bytes(writer.data[4:])) == {"id": 3}
    assert int.from_bytes(writer.data[:4], "big") == len(writer.data) - 4


@pytest.mark.asyncio
async def test_clean_eof_returns_none():
    socket, _ = _socket()
    assert await socket.read() is None


@pytest.mark.asyncio
async def test_partial_header_is_error():
    socket, _ = _socket(b"\x00\x00")
    with pytest.raises(FrameError):
        await socket.read()


@pytest.mark.asyncio
async def test_partial_payload_is_error():
    socket, _ = _socket(b"\x00\x00\x00\x05ab")
    with pytest.raises(FrameError):
        await socket.read()


@pytest.mark.asyncio
async def test_invalid_json_is_error():
    socket, _ = _socket(encode_frame(b"{not json"))
    with pytest.raises(FrameError):
        await socket.read()


@pytest.mark.asyncio
async def test_oversize_frame_header_is_error():
    socket, _ = _socket((MAX_FRAME_LENGTH + 1).to_bytes(4, "big"))
    with pytest.raises(FrameError):
        await socket.read()


@pytest.mark.asyncio
async def test_decoder_failure_is_frame_error():
    def decode(value):
        raise ValueError("unexpected")

    reader = asyncio.StreamReader()
    reader.feed_data(encode_frame(b'"x"'))
    reader.feed_eof()
    socket = Socket(reader, _Writer(), decode, _identity)
    with pytest.raises(FrameError):
        await socket.read()


@pytest.mark.asyncio
async def test_close_closes_writer():
    socket, writer = _socket()
    async with socket:
        assert writer.closed is False
    assert writer.closed is True