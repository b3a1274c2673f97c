"""Clients that talk to the daemon over its local socket or its HTTP API."""

from __future__ import annotations

from abc import ABC, abstractmethod

import httpx

from pipeweaver.commands import (
    APICommand,
    ApiErr,
    DaemonRequest,
    DaemonResponse,
    DaemonStatus,
    ErrResponse,
    GetStatus,
    HttpSettings,
    OkResponse,
    PatchResponse,
    PipewireRequest,
    PipewireResponse,
    StatusResponse,
    request_to_json,
    response_from_json,
)
from pipeweaver.framing import FrameError, Socket


class ClientError(Exception):
    """The daemon could not be reached or reported a failure."""


class Client(ABC):
    """Sends requests to the daemon and keeps the last status it reported."""

    def __init__(self) -> None:
        self._status = DaemonStatus()

    @property
    def status(self) -> DaemonStatus:
        return self._status

    @abstractmethod
    async def send(self, request: DaemonRequest) -> None:
        """Send a request and handle the daemon's reply."""

    async def poll_status(self) -> None:
        await self.send(GetStatus())

    async def command(self, command: APICommand) -> None:
        await self.send(PipewireRequest(command))


class IPCClient(Client):
    """A client over the daemon's local socket."""

    def __init__(self, socket: Socket[DaemonResponse, DaemonRequest]) -> None:
        super().__init__()
        self._socket = socket
        self.http_settings = HttpSettings()

    async def send(self, request: DaemonRequest) -> None:
        try:
            await self._socket.send(request)
        except (OSError, FrameError, ValueError) as error:
            raise ClientError("Failed to send a command to the daemon process") from error
        try:
            response = await self._socket.read()
        except (OSError, FrameError) as error:
            raise ClientError("Failed to parse the command result from the daemon process") from error
        if response is None:
            raise ClientError("Failed to retrieve the command result from the daemon process")

        match response:
            case StatusResponse(status=status):
                self._status = status
                self.http_settings = status.config.http_settings
            case OkResponse() | PipewireResponse():
                pass
            case ErrResponse(message=message):
                raise ClientError(message)
            case PatchResponse():
                raise ClientError("Received Patch as response, shouldn't happen!")


class WebClient(Client):
    """A client over the daemon's HTTP command endpoint."""

    def __init__(self, url: str, transport: httpx.AsyncBaseTransport | None = None) -> None:
        super().__init__()
        self.url = url
        self._transport = transport

    @classmethod
    def connect(cls, url: str) -> WebClient:
        return cls(url)

    async def send(self, request: DaemonRequest) -> None:
        try:
            async with httpx.AsyncClient(transport=self._transport) as http:
                reply = await http.post(self.url, json=request_to_json(request))
            data = reply.json()
        except httpx.HTTPError as error:
            raise ClientError(str(error)) from error
        except ValueError as error:
            raise ClientError(f"invalid response body: {error}") from error
        try:
            response = response_from_json(data)
        except ValueError as error:
            raise ClientError(f"invalid response: {error}") from error

        match response:
            case StatusResponse(status=status):
                self._status = status
            case OkResponse():
                pass
            case ErrResponse(message=message):
                raise ClientError(message)
            case PatchResponse():
                raise ClientError("Received PATCH!")
            case PipewireResponse(response=ApiErr(message=message)):
                raise ClientError(message)
            case PipewireResponse():
                pass