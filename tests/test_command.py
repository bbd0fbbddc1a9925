"""Tests for the command catalog and command preparation."""

from __future__ import annotations

import pytest

from nec_projector import NecProjectorError
from nec_projector.protocol import (
    Input,
    NecCommand,
    checksum,
    append_checksum,
    get_all_commands,
    name_to_command_meta,
    bytes_to_command_meta,
    input_from_state,
)


def test_catalog_order_and_ordinals():
    names = [meta.name for meta in get_all_commands()]
    assert names == [
        "power_on", "power_off", "select_input",
        "video_mute_on", "video_mute_off", "audio_mute_on", "audio_mute_off",
        "volume_adjust", "get_status", "get_info", "get_lamp_info",
        "get_errors", "get_model_number", "get_serial_number",
    ]
    assert [meta.ordinal for meta in get_all_commands()] == list(range(1, 15))


def test_fixed_templates_carry_their_own_checksum():
    for meta in get_all_commands():
        if meta.payload_length == 0:
            assert checksum(meta.template[:-1]) == meta.template[-1], meta.name


def test_reply_lengths():
    assert name_to_command_meta("power_on").success_response_length == 6
    assert name_to_command_meta("select_input").success_response_length == 7
    assert name_to_command_meta("get_status").success_response_length == 22
    assert name_to_command_meta("get_info").success_response_length == 104
    assert name_to_command_meta("get_serial_number").success_response_length == 24
    assert all(meta.failure_response_length == 8 for meta in get_all_commands())


def test_unknown_command_name():
    with pytest.raises(NecProjectorError):
        name_to_command_meta("self_destruct")


def test_prepare_without_args_is_a_copy_of_the_template():
    command = NecCommand.create_from_name("power_on")
    prepared = command.prepare()
    assert prepared.raw_data == bytes.fromhex("02 00 00 00 00 02")
    assert not prepared.is_prepared
    assert prepared == command


def test_prepare_select_input():
    command = NecCommand.create_from_name("select_input")
    prepared = command.prepare(Input.HDMI1)
    assert prepared.raw_data == bytes.fromhex("02 03 00 00 02 01 1a 22")
    assert prepared.payload == b"\x1a"
    # The template is untouched.
    assert command.raw_data == bytes.fromhex("02 03 00 00 02 01")


def test_prepare_input_by_name():
    command = NecCommand.create_from_name("select_input")
    assert command.prepare("hdmi1").raw_data == command.prepare_input(Input.HDMI1).raw_data
    assert command.prepare_input("HDMI2Alternate").payload == b"\xa2"


def test_prepare_volume_adjust():
    up = NecCommand.create_from_name("volume_adjust", 0x01, 0x02, 0x00)
    down = NecCommand.create_from_name("volume_adjust", 0x01, 0xFE, 0xFF)
    assert up.raw_data == bytes.fromhex("03 10 00 00 05 05 00 01 02 00 20")
    assert down.raw_data == bytes.fromhex("03 10 00 00 05 05 00 01 fe ff 1b")


def test_prepare_lamp_info():
    command = NecCommand.create_from_name("get_lamp_info", 0x00, 0x01)
    assert command.raw_data == bytes.fromhex("03 96 00 00 02 00 01 9c")
    assert command.raw_data == append_checksum(command.template + b"\x00\x01")


@pytest.mark.parametrize("arg", [256, -1, True, 1.5, None])
def test_prepare_rejects_bad_arguments(arg):
    with pytest.raises(NecProjectorError):
        NecCommand.create_from_name("select_input", arg)


def test_prepare_rejects_unknown_input_name():
    with pytest.raises(NecProjectorError):
        NecCommand.create_from_name("select_input").prepare_input("Betamax")


def test_command_from_raw_bytes():
    command = NecCommand(bytes.fromhex("02 03 00 00 02 01 1a 22"))
    assert command.name == "select_input"
    assert command.payload == b"\x1a"
    with pytest.raises(NecProjectorError):
        NecCommand(bytes.fromhex("02 03 00 00 02 01 1a 23"))
    with pytest.raises(NecProjectorError):
        NecCommand(bytes.fromhex("7f 7f"))


def test_bytes_to_command_meta_distinguishes_status_and_serial_number():
    status = bytes_to_command_meta(bytes.fromhex("00 bf 00 00 01 02 c2"))
    serial_number = bytes_to_command_meta(bytes.fromhex("00 bf 00 00 02 01 06 c8"))
    assert [meta.name for meta in status] == ["get_status"]
    assert [meta.name for meta in serial_number] == ["get_serial_number"]
    assert bytes_to_command_meta(bytes.fromhex("00 bf 00 00")) == []


def test_command_length():
    assert name_to_command_meta("power_on").command_length == 6
    assert name_to_command_meta("select_input").command_length == 8
    assert name_to_command_meta("volume_adjust").command_length == 11
    assert name_to_command_meta("get_lamp_info").command_length == 8


def test_prepared_length_and_checksum():
    for meta in get_all_commands():
        if meta.payload_length == 0:
            continue
        args = list(range(1, meta.payload_length + 1))
        prepared = NecCommand.create_from_meta(meta, *args)
        assert len(prepared.raw_data) == len(meta.template) + len(args) + 1
        assert prepared.raw_data[-1] == sum(prepared.raw_data[:-1]) & 0xFF


def test_rgb1_selection_matches_reported_state():
    assert input_from_state((0x01, 0x01)) is Input.from_name("RGB1")
    command = NecCommand.create_from_name("select_input").prepare_input("RGB1")
    template = name_to_command_meta("select_input").template
    assert command.raw_data == template + bytes([0x01, checksum(template + b"\x01")])
