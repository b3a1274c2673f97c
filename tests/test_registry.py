import pytest

from pipeweaver.registry import (
    Direction,
    RegistryDevice,
    RegistryLink,
    RegistryNode,
    RegistryPort,
)


def test_direction_from_server_strings():
    assert Direction("in") is Direction.In
    assert Direction("out") is Direction.Out


@pytest.mark.parametrize("text", ["notify", "control", "IN"])
def test_direction_rejects_other_kinds(text):
    with pytest.raises(ValueError):
        Direction(text)


def test_device_defaults_and_add_node():
    device = RegistryDevice(nickname="nick", description="desc", name="name")
    assert device.nodes == []
    device.add_node(30)
    device.add_node(12)
    assert device.nodes == [30, 12]
    assert device.name == "name"


def test_devices_do_not_share_node_lists():
    first = RegistryDevice()
    second = RegistryDevice()
    first.add_node(1)
    assert second.nodes == []


def test_node_starts_with_empty_port_maps():
    node = RegistryNode(7, None, "desc", None)
    assert node.parent_id == 7
    assert node.ports == {Direction.In: {}, Direction.Out: {}}


def test_node_add_port_by_direction():
    node = RegistryNode(7)
    left = RegistryPort(100, "playback_FL", "FL", False)
    right = RegistryPort(101, "playback_FR", "FR", False)
    monitor = RegistryPort(102, "monitor_FL", "FL", True)
    node.add_port(0, Direction.In, left)
    node.add_port(1, Direction.In, right)
    node.add_port(0, Direction.Out, monitor)
    assert node.ports[Direction.In] == {0: left, 1: right}
    assert node.ports[Direction.Out] == {0: monitor}


def test_node_add_port_replaces_same_id():
    node = RegistryNode(7)
    node.add_port(0, Direction.In, RegistryPort(100, "a", "FL"))
    replacement = RegistryPort(200, "b", "FR")
    node.add_port(0, Direction.In, replacement)
    assert node.ports[Direction.In] == {0: replacement}


def test_port_monitor_defaults_false():
    port = RegistryPort(5, "capture_MONO", "MONO")
    assert port.is_monitor is False


def test_link_equality():
    link = RegistryLink(input_node=1, input_port=2, output_node=3, output_port=4)
    assert link == RegistryLink(1, 2, 3, 4)
    assert not link == RegistryLink(3, 4, 1, 2)
    assert len({link, RegistryLink(1, 2, 3, 4)}) == 1