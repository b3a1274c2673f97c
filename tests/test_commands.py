import json

import pytest

from pipeweaver.commands import (
    APICommand,
    ApiErr,
    ApiId,
    ApiOk,
    AudioConfiguration,
    CommandKind,
    DaemonConfig,
    DaemonStatus,
    ErrResponse,
    GetStatus,
    HttpSettings,
    OkResponse,
    PatchResponse,
    PhysicalDevice,
    PipewireRequest,
    PipewireResponse,
    Ping,
    StatusResponse,
    WebsocketRequest,
    WebsocketResponse,
    command_from_json,
    command_to_json,
    request_from_json,
    request_to_json,
    response_from_json,
    response_to_json,
)
from pipeweaver.defaults import base_settings
from pipeweaver.identifiers import Ulid
from pipeweaver.shared import Colour, DeviceType, Mix, MuteState, MuteTarget, NodeType

MIC = Ulid.from_string("01JKMZFMP9A8J92S631RF3AP3W")
HEADPHONES = Ulid.from_string("01JKMZFMP9EMT8MFS30M8KP2FZ")

SAMPLES = {
    CommandKind.CreateNode: (NodeType.VirtualSource, "Music"),
    CommandKind.RenameNode: (MIC, "Mic"),
    CommandKind.SetNodeColour: (MIC, Colour(1, 2, 3)),
    CommandKind.RemoveNode: (MIC,),
    CommandKind.SetSourceVolume: (MIC, Mix.B, 50),
    CommandKind.SetSourceVolumeLinked: (MIC, True),
    CommandKind.SetTargetVolume: (HEADPHONES, 255),
    CommandKind.SetTargetMix: (HEADPHONES, Mix.A),
    CommandKind.SetRoute: (MIC, HEADPHONES, False),
    CommandKind.AddSourceMuteTarget: (MIC, MuteTarget.TargetA),
    CommandKind.DelSourceMuteTarget: (MIC, MuteTarget.TargetB),
    CommandKind.AddMuteTargetNode: (MIC, MuteTarget.TargetA, HEADPHONES),
    CommandKind.DelMuteTargetNode: (MIC, MuteTarget.TargetB, HEADPHONES),
    CommandKind.ClearMuteTargetNodes: (MIC, MuteTarget.TargetA),
    CommandKind.SetTargetMuteState: (HEADPHONES, MuteState.Muted),
    CommandKind.AttachPhysicalNode: (MIC, 42),
    CommandKind.RemovePhysicalNode: (MIC, 0),
}


def _status():
    return DaemonStatus(
        config=DaemonConfig(HttpSettings(True, "0.0.0.0", False, 14565)),
        audio=AudioConfiguration(
            profile=base_settings(),
            devices={
                DeviceType.Source: [PhysicalDevice(7, "alsa_input", None)],
                DeviceType.Target: [PhysicalDevice(9, None, "Speakers")],
            },
        ),
    )


def test_samples_cover_every_command():
    assert set(SAMPLES) == set(CommandKind)


@pytest.mark.parametrize("kind", list(CommandKind))
def test_command_round_trip(kind):
    command = APICommand(kind, SAMPLES[kind])
    encoded = command_to_json(command)
    assert command_from_json(json.loads(json.dumps(encoded))) == command


def test_single_argument_command_is_not_wrapped_in_array():
    command = APICommand(CommandKind.RemoveNode, (MIC,))
    assert command_to_json(command) == {"RemoveNode": "01JKMZFMP9A8J92S631RF3AP3W"}


def test_multi_argument_command_is_an_array():
    command = APICommand(CommandKind.CreateNode, (NodeType.VirtualSource, "Music"))
    assert command_to_json(command) == {"CreateNode": ["VirtualSource", "Music"]}


def test_wrong_argument_count_rejected():
    with pytest.raises(ValueError):
        APICommand(CommandKind.SetRoute, (MIC, HEADPHONES))


def test_wrong_argument_type_rejected():
    with pytest.raises(ValueError):
        APICommand(CommandKind.SetTargetMix, (HEADPHONES, "A"))


def test_volume_out_of_range_rejected():
    with pytest.raises(ValueError):
        APICommand(CommandKind.SetTargetVolume, (HEADPHONES, 256))


def test_unknown_command_rejected():
    with pytest.raises(ValueError):
        command_from_json({"Explode": [str(MIC)]})


def test_command_array_length_checked():
    with pytest.raises(ValueError):
        command_from_json({"SetRoute": [str(MIC), str(HEADPHONES)]})


def test_simple_requests_are_bare_strings():
    assert request_to_json(Ping()) == "Ping"
    assert request_to_json(GetStatus()) == "GetStatus"
    assert request_from_json("Ping") == Ping()
    assert request_from_json("GetStatus") == GetStatus()


def test_pipewire_request_round_trip():
    request = PipewireRequest(APICommand(CommandKind.SetSourceVolume, (MIC, Mix.A, 10)))
    encoded = request_to_json(request)
    assert encoded == {"Pipewire": command_to_json(request.command)}
    assert request_from_json(encoded) == request


@pytest.mark.parametrize("data", ["Pong", {"Daemon": None}, {"Ping": None, "GetStatus": None}, 3])
def test_invalid_requests_rejected(data):
    with pytest.raises(ValueError):
        request_from_json(data)


@pytest.mark.parametrize(
    "response",
    [
        OkResponse(),
        ErrResponse("boom"),
        PatchResponse([{"op": "replace", "path": "/audio/profile", "value": 1}]),
        PipewireResponse(ApiOk()),
        PipewireResponse(ApiId(MIC)),
        PipewireResponse(ApiErr("bad node")),
    ],
)
def test_response_round_trip(response):
    assert response_from_json(json.loads(json.dumps(response_to_json(response)))) == response


def test_ok_and_err_wire_forms():
    assert response_to_json(OkResponse()) == "Ok"
    assert response_to_json(ErrResponse("boom")) == {"Err": "boom"}
    assert response_to_json(PipewireResponse(ApiId(MIC))) == {"Pipewire": {"Id": str(MIC)}}


def test_status_response_round_trip():
    response = StatusResponse(_status())
    text = json.dumps(response_to_json(response))
    assert response_from_json(json.loads(text)) == response


def test_default_status_round_trip():
    response = StatusResponse(DaemonStatus())
    assert response_from_json(response_to_json(response)) == response


def test_status_missing_field_rejected():
    data = response_to_json(StatusResponse(_status()))
    del data["Status"]["config"]["http_settings"]["port"]
    with pytest.raises(ValueError):
        response_from_json(data)


def test_status_port_out_of_range_rejected():
    data = response_to_json(StatusResponse(_status()))
    data["Status"]["config"]["http_settings"]["port"] = 70000
    with pytest.raises(ValueError):
        response_from_json(data)


def test_invalid_patch_rejected():
    with pytest.raises(ValueError):
        response_from_json({"Patch": [{"op": "frobnicate", "path": "/"}]})


def test_unknown_response_rejected():
    with pytest.raises(ValueError):
        response_from_json("Maybe")


def test_websocket_request_round_trip():
    request = WebsocketRequest(5, PipewireRequest(APICommand(CommandKind.RemoveNode, (MIC,))))
    encoded = request.to_dict()
    assert encoded["id"] == 5
    assert WebsocketRequest.from_dict(json.loads(json.dumps(encoded))) == request


def test_websocket_response_round_trip():
    response = WebsocketResponse(2**64 - 1, ErrResponse("nope"))
    assert WebsocketResponse.from_dict(response.to_dict()) == response


def test_websocket_request_requires_id():
    with pytest.raises(ValueError):
        WebsocketRequest.from_dict({"data": "Ping"})