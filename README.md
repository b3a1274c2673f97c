# pipeweaver

Building blocks for a virtual audio mixer:

- mixer profiles with their sources, targets, volumes, mute targets and routes;
- the requests and responses exchanged between a mixer daemon and its clients,
  with their JSON forms;
- clients that talk to such a daemon over a length-framed local socket or over HTTP;
- a shareable stop signal and a signal-handling runtime for asyncio programs;
- bookkeeping for an audio graph: managed nodes, filters and links, and the
  hardware devices, nodes, ports and links the audio server announces.

## Profiles

A profile describes which source devices feed the mixer, which target devices
it mixes into, and how audio is routed between them. `base_settings()` builds
the default layout (microphone, line in, system, browser, game, music and chat
sources; headphones, stream mix, VOD and chat mic targets).

```python
from pipeweaver.defaults import base_settings
from pipeweaver.profile import Profile

profile = base_settings()
text = profile.to_json()

restored = Profile.from_json(text)
assert restored.to_dict() == profile.to_dict()
```

`Profile.from_dict` and `Profile.from_json` raise `ValueError` for missing
fields, wrong types and out-of-range values.

Device identifiers are ULIDs, 26-character Crockford base32 strings:

```python
from pipeweaver.identifiers import Ulid

device_id = Ulid.new()
same_id = Ulid.from_string(str(device_id))
assert same_id == device_id
print(device_id.timestamp_ms())
```

The shared enumerations `NodeType`, `Mix`, `DeviceType`, `MuteState` and
`MuteTarget`, and `Colour` (an RGB value defaulting to yellow), live in
`pipeweaver.shared`.

`pipeweaver.settings.Settings` holds the daemon settings; its only field,
`profile`, defaults to `"default"` when missing from `Settings.from_dict`.

## Daemon messages

`pipeweaver.commands` holds:

- requests: `Ping`, `GetStatus` and `PipewireRequest`, which wraps an
  `APICommand`;
- responses: `OkResponse`, `ErrResponse`, `PatchResponse`, `StatusResponse`
  and `PipewireResponse`, which wraps `ApiOk`, `ApiId` or `ApiErr`;
- status structures: `DaemonStatus`, `AudioConfiguration`, `DaemonConfig`,
  `HttpSettings` and `PhysicalDevice`;
- `WebsocketRequest` and `WebsocketResponse`, which tag a request or response
  with a numeric id.

An `APICommand` is a `CommandKind` with its arguments, checked against the
command's signature when it is built:

```python
from pipeweaver.commands import APICommand, CommandKind, PipewireRequest, request_to_json
from pipeweaver.identifiers import Ulid

target = Ulid.from_string("01JKMZFMP9EMT8MFS30M8KP2FZ")
command = APICommand(CommandKind.SetTargetVolume, (target, 80))
print(request_to_json(PipewireRequest(command)))
# {'Pipewire': {'SetTargetVolume': ['01JKMZFMP9EMT8MFS30M8KP2FZ', 80]}}
```

`command_to_json`, `command_from_json`, `request_to_json`,
`request_from_json`, `response_to_json` and `response_from_json` convert
between these objects and JSON values; the decoders raise `ValueError` on
anything malformed.

## Talking to a daemon

`pipeweaver.framing.Socket` reads and writes JSON messages over an asyncio
stream pair, each framed by a 4-byte big-endian length prefix (at most 8 MiB).
`read()` returns `None` when the stream ends cleanly and raises `FrameError`
on a truncated or undecodable frame.

Two clients share one interface (`send`, `poll_status`, `command` and the
`status` property). A status response updates `status`; an error reported by
the daemon is raised as `ClientError`.

```python
import asyncio

from pipeweaver.clients import IPCClient, WebClient
from pipeweaver.commands import request_to_json, response_from_json
from pipeweaver.framing import Socket

async def over_http():
    client = WebClient.connect("http://localhost:14565/api/command")
    await client.poll_status()
    print(client.status)

async def over_socket(path):
    reader, writer = await asyncio.open_unix_connection(path)
    async with Socket(reader, writer, response_from_json, request_to_json) as socket:
        client = IPCClient(socket)
        await client.poll_status()
        print(client.http_settings)
```

`WebClient` also takes an `httpx` transport, which is handy for tests.

## Stopping

`pipeweaver.stop.Stop` is a shutdown signal for asyncio tasks. `clone()` gives
each task its own handle; `trigger()` wakes every handle that exists at that
moment, and `recv()` waits for a stop, returning at once on a handle that has
already received one. `pipeweaver.runtime.spawn_runtime(stop)` waits for
Ctrl+C, SIGTERM or a stop, then triggers the stop.

## The audio graph

`pipeweaver.audio_types` defines `MediaClass`, stereo `PortLocation`s
(`PortLocation.from_channel("FL")`), link ends (`LinkType`), typed
`FilterValue`s, the abstract `FilterHandler`, and the messages sent to
(`CreateDeviceNode`, `RemoveDeviceLink`, `Quit`, ...) and from
(`DeviceAdded`, `DeviceRemoved`, `ManagedLinkDropped`) an audio-graph thread.
`forward_messages(receiver, send)` passes messages on until a `Quit`.

`pipeweaver.registry` describes devices, nodes, ports and links seen on the
server. `pipeweaver.store.Store` keeps track of them together with the
mixer's own nodes, filters and link groups, fires their ready callbacks,
decides which hardware nodes are usable as sources, sinks or duplex devices,
and reports changes through a callback. `pipeweaver.events.RegistryListener`
turns raw global-added and global-removed announcements into store updates:

```python
from pipeweaver.events import ObjectType, RegistryListener
from pipeweaver.store import Store

events = []
listener = RegistryListener(Store(events.append))
listener.on_global(30, ObjectType.Device, {"device.name": "usb-interface"})
listener.on_global(40, ObjectType.Node, {"device.id": "30", "node.name": "usb-mic"})
listener.on_global(41, ObjectType.Port, {
    "node.id": "40", "port.id": "0", "port.name": "capture_FL",
    "audio.channel": "FL", "port.direction": "out",
})
print(events)  # [DeviceAdded(node=PipewireNode(node_id=40, node_class=<MediaClass.Source: ...>, ...))]

listener.on_global_remove(40)
print(events[-1])  # DeviceRemoved(node_id=40)
```

## What this package does not do

There is no daemon program and no command to run. The package has no HTTP,
websocket or local-socket server, serves no web interface, and does not
connect to an audio server: the store and the registry listener are fed by
whatever code receives the server's events, and creating nodes, filters and
links on the server is left to that code. Profiles and settings convert to
and from JSON values but are not saved to or loaded from disk by the package.

## Running the tests

Install the `test` extra, then run `pytest` from the project root.