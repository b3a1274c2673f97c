"""The profile used when no saved profile exists."""

from __future__ import annotations

from pipeweaver.identifiers import Ulid
from pipeweaver.profile import (
    DeviceDescription,
    Devices,
    MuteStates,
    PhysicalDeviceDescriptor,
    PhysicalSourceDevice,
    PhysicalTargetDevice,
    Profile,
    SourceDevices,
    TargetDevices,
    VirtualSourceDevice,
    VirtualTargetDevice,
    Volumes,
)
from pipeweaver.shared import Colour, Mix, MuteState, MuteTarget


def _volumes(linked: float | None = 1.0) -> Volumes:
    return Volumes(volume={Mix.A: 99, Mix.B: 99}, volumes_linked=linked)


def _by_description(description: str) -> PhysicalDeviceDescriptor:
    return PhysicalDeviceDescriptor(name=None, description=description)


def _mute_targets(target_a: set[Ulid], target_b: set[Ulid]) -> MuteStates:
    return MuteStates(
        mute_state=set(),
        mute_targets={MuteTarget.TargetA: target_a, MuteTarget.TargetB: target_b},
    )


def base_settings() -> Profile:
    """Build the default mixer layout: microphone, line in, apps, headphones and mixes."""
    mic_id = Ulid.from_string("01JKMZFMP9A8J92S631RF3AP3W")
    pc_line_in_id = Ulid.from_string("01JKMZFMP9A8J92S631RF3AP3J")
    system_id = Ulid.from_string("01JKMZFMP9QKHFTAJYC92HCXTV")
    browser_id = Ulid.from_string("01JKMZFMP9QKHFTAJYC92HCXTW")
    game_id = Ulid.from_string("01JKMZFMP940258X2W86A1FQMT")
    music_id = Ulid.from_string("01JKMZFMP9HHCDABBKGV038EMB")
    chat_id = Ulid.from_string("01JKMZFMP9Z4X6V73PQXWB786K")
    headphones_id = Ulid.from_string("01JKMZFMP9EMT8MFS30M8KP2FZ")
    stream_mix_id = Ulid.from_string("01JKMZFMP9XRDWX1QWBED7BB4T")
    vod_mix_id = Ulid.from_string("01JKMZFMP9XRDWX1QWBED7BB4W")
    chat_mic_id = Ulid.from_string("01JKMZFMP9RNMBGFMN6A9ER279")

    physical_sources = [
        PhysicalSourceDevice(
            description=DeviceDescription(mic_id, "Microphone", Colour(47, 24, 71)),
            mute_states=MuteStates(),
            volumes=_volumes(),
            attached_devices=[
                _by_description("BEACN Mic Microphone"),
                _by_description("Elgato XLR Dock Mono"),
            ],
        ),
        PhysicalSourceDevice(
            description=DeviceDescription(pc_line_in_id, "PC Line In", Colour(98, 17, 99)),
            mute_states=MuteStates(),
            volumes=_volumes(),
            attached_devices=[
                PhysicalDeviceDescriptor(
                    name="alsa_input.pci-0000_31_00.4.analog-stereo", description=None
                ),
            ],
        ),
    ]

    virtual_sources = [
        VirtualSourceDevice(
            description=DeviceDescription(system_id, "System", Colour(153, 98, 30)),
            mute_states=MuteStates(),
            volumes=_volumes(),
        ),
        VirtualSourceDevice(
            description=DeviceDescription(browser_id, "Browser", Colour(211, 139, 93)),
            mute_states=_mute_targets({stream_mix_id}, set()),
            volumes=_volumes(None),
        ),
        VirtualSourceDevice(
            description=DeviceDescription(game_id, "Game", Colour(243, 255, 182)),
            mute_states=_mute_targets({stream_mix_id}, {headphones_id}),
            volumes=_volumes(),
        ),
        VirtualSourceDevice(
            description=DeviceDescription(music_id, "Music", Colour(115, 158, 130)),
            mute_states=MuteStates(),
            volumes=_volumes(),
        ),
        VirtualSourceDevice(
            description=DeviceDescription(chat_id, "Chat", Colour(44, 85, 48)),
            mute_states=MuteStates(),
            volumes=_volumes(),
        ),
    ]

    physical_targets = [
        PhysicalTargetDevice(
            description=DeviceDescription(headphones_id, "Headphones", Colour()),
            mute_state=MuteState.Unmuted,
            volume=99,
            mix=Mix.A,
            attached_devices=[
                _by_description("BEACN Mic Headphones"),
                _by_description("GoXLR System"),
                _by_description("Elgato XLR Dock Analog Stereo"),
            ],
        ),
    ]

    virtual_targets = [
        VirtualTargetDevice(
            description=DeviceDescription(stream_mix_id, "Stream Mix", Colour(19, 64, 116)),
            mute_state=MuteState.Unmuted,
            volume=99,
            mix=Mix.B,
        ),
        VirtualTargetDevice(
            description=DeviceDescription(vod_mix_id, "VOD", Colour(19, 49, 92)),
            mute_state=MuteState.Unmuted,
            volume=99,
            mix=Mix.B,
        ),
        VirtualTargetDevice(
            description=DeviceDescription(chat_mic_id, "Chat Mic", Colour(11, 37, 69)),
            mute_state=MuteState.Unmuted,
            volume=99,
            mix=Mix.A,
        ),
    ]

    routes = {
        mic_id: {headphones_id, stream_mix_id, chat_mic_id},
        pc_line_in_id: {headphones_id, stream_mix_id},
        chat_id: {headphones_id, stream_mix_id},
        music_id: {headphones_id, stream_mix_id},
        game_id: {headphones_id, stream_mix_id},
        system_id: {headphones_id},
    }

    return Profile(
        devices=Devices(
            sources=SourceDevices(physical_sources, virtual_sources),
            targets=TargetDevices(physical_targets, virtual_targets),
        ),
        routes=routes,
    )