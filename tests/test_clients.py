import asyncio
import json

import httpx
import pytest

from pipeweaver.clients import ClientError, IPCClient, WebClient
from pipeweaver.commands import (
    APICommand,
    ApiErr,
    ApiId,
    CommandKind,
    DaemonConfig,
    DaemonStatus,
    ErrResponse,
    GetStatus,
    HttpSettings,
    OkResponse,
    PatchResponse,
    PipewireRequest,
    PipewireResponse,
    Ping,
    StatusResponse,
    request_from_json,
    request_to_json,
    response_from_json,
    response_to_json,
)
from pipeweaver.framing import Socket, encode_frame
from pipeweaver.identifiers import Ulid
from pipeweaver.shared import Mix

MIC = Ulid.from_string("01JKMZFMP9A8J92S631RF3AP3W")


class _Writer:
    def __init__(self):
        self.data = bytearray()

    def write(self, data):
        self.data += data

    async def drain(self):
        pass

    def close(self):
        pass

    async def wait_closed(self):
        pass


def _frame(response):
    return encode_frame(json.dumps(response_to_json(response)).encode())


def _ipc(*responses, tail=b""):
    reader = asyncio.StreamReader()
    for response in responses:
        reader.feed_data(_frame(response))
    reader.feed_data(tail)
    reader.feed_eof()
    writer = _Writer()
    socket = Socket(reader, writer, response_from_json, request_to_json)
    return IPCClient(socket), writer


async def _sent(writer):
    reader = asyncio.StreamReader()
    reader.feed_data(bytes(writer.data))
    reader.feed_eof()
    socket = Socket(reader, _Writer(), request_from_json, request_to_json)
    requests = []
    while (request := await socket.read()) is not None:
        requests.append(request)
    return requests


def _status():
    return DaemonStatus(config=DaemonConfig(HttpSettings(True, "0.0.0.0", False, 14565)))


@pytest.mark.asyncio
async def test_ipc_poll_status_updates_status():
    status = _status()
    client, writer = _ipc(StatusResponse(status))
    await client.poll_status()
    assert client.status == status
    assert client.http_settings == status.config.http_settings
    assert await _sent(writer) == [GetStatus()]


@pytest.mark.asyncio
async def test_ipc_command_is_wrapped():
    command = APICommand(CommandKind.SetSourceVolume, (MIC, Mix.A, 20))
    client, writer = _ipc(PipewireResponse(ApiId(MIC)))
    await client.command(command)
    assert await _sent(writer) == [PipewireRequest(command)]


@pytest.mark.asyncio
async def test_ipc_ok_keeps_default_status():
    client, _ = _ipc(OkResponse())
    await client.send(Ping())
    assert client.status == DaemonStatus()


@pytest.mark.asyncio
async def test_ipc_error_response_raises_with_message():
    client, _ = _ipc(ErrResponse("no such node"))
    with pytest.raises(ClientError, match="no such node"):
        await client.send(Ping())


@pytest.mark.asyncio
async def test_ipc_patch_response_raises():
    client, _ = _ipc(PatchResponse([]))
    with pytest.raises(ClientError, match="Patch"):
        await client.send(Ping())


@pytest.mark.asyncio
async def test_ipc_closed_stream_raises():
    client, _ = _ipc()
    with pytest.raises(ClientError, match="retrieve"):
        await client.send(Ping())


@pytest.mark.asyncio
async def test_ipc_garbage_reply_raises():
    client, _ = _ipc(tail=encode_frame(b'"Nonsense"'))
    with pytest.raises(ClientError, match="parse"):
        await client.send(Ping())


def _web(reply, seen):
    def handler(request):
        seen.append(json.loads(request.content))
        return reply(request)

    return WebClient("http://localhost:14565/api/command", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_web_poll_status():
    status = _status()
    seen = []
    client = _web(lambda r: httpx.Response(200, json=response_to_json(StatusResponse(status))), seen)
    await client.poll_status()
    assert seen == [request_to_json(GetStatus())]
    assert client.status == status


@pytest.mark.asyncio
async def test_web_command_body():
    command = APICommand(CommandKind.RemoveNode, (MIC,))
    seen = []
    client = _web(lambda r: httpx.Response(200, json=response_to_json(OkResponse())), seen)
    await client.command(command)
    assert seen == [request_to_json(PipewireRequest(command))]


@pytest.mark.asyncio
async def test_web_api_error_raises():
    reply = response_to_json(PipewireResponse(ApiErr("route missing")))
    client = _web(lambda r: httpx.Response(200, json=reply), [])
    with pytest.raises(ClientError, match="route missing"):
        await client.send(Ping())


@pytest.mark.asyncio
async def test_web_patch_raises():
    client = _web(lambda r: httpx.Response(200, json=response_to_json(PatchResponse([]))), [])
    with pytest.raises(ClientError, match="PATCH"):
        await client.send(Ping())


@pytest.mark.asyncio
async def test_web_non_json_body_raises():
    client = _web(lambda r: httpx.Response(500, text="oops"), [])
    with pytest.raises(ClientError):
        await client.send(Ping())


def test_web_connect_keeps_url():
    client = WebClient.connect("http://localhost:14565/api/command")
    assert client.url == "http://localhost:14565/api/command"
    assert client.status == DaemonStatus()