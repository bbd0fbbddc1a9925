"""Tests for call string parsing and the debug command table."""

from __future__ import annotations

import pytest

from nec_projector import NecProjectorError
from nec_projector.debug_commands import DebugCommandTable, parse_argument, parse_call_string


@pytest.mark.parametrize("text, expected", [
    ("true", True),
    ("false", False),
    ("null", None),
    ("42", 42),
    ("-3", -3),
    ("0x1a", 0x1A),
    ("2.5", 2.5),
    ("HDMI1", "HDMI1"),
    ('"quoted"', "quoted"),
])
def test_parse_argument(text, expected):
    assert parse_argument(text) == expected


def test_parse_call_string():
    assert parse_call_string("SelectInput(HDMI1)") == ("SelectInput", ["HDMI1"])
    assert parse_call_string("GetLampInfo(1, 0)") == ("GetLampInfo", [1, 0])
    assert parse_call_string("PowerOn") == ("PowerOn", [])
    assert parse_call_string("  PowerOff()  ") == ("PowerOff", [])
    with pytest.raises(NecProjectorError):
        parse_call_string("SelectInput(HDMI1")


async def test_table_runs_handlers():
    calls = []

    async def select_input(name):
        calls.append(name)
        return f"selected {name}"

    table = DebugCommandTable()
    table.add("SelectInput", select_input, "Select an input")
    assert "select_input" in table
    assert len(table) == 1
    assert await table.run("selectinput(HDMI2)") == "selected HDMI2"
    assert calls == ["HDMI2"]


async def test_get_methods_builtin():
    async def noop():
        return None

    table = DebugCommandTable()
    table.add("PowerOn", noop)
    table.add("PowerOff", noop, "Power off")
    assert await table.run("GetMethods") == "PowerOn\nPowerOff"
    assert table.describe() == "PowerOn\nPowerOff: Power off"


async def test_unknown_command_and_bad_arguments():
    async def one_arg(value):
        return value

    table = DebugCommandTable()
    table.add("Echo", one_arg)
    with pytest.raises(NecProjectorError):
        await table.run("Missing()")
    with pytest.raises(NecProjectorError):
        await table.run("Echo(1, 2)")


async def test_handler_type_errors_are_not_masked():
    async def broken():
        raise TypeError("inside handler")

    table = DebugCommandTable()
    table.add("Broken", broken)
    with pytest.raises(TypeError):
        await table.run("Broken")


def test_duplicate_names_are_rejected():
    async def noop():
        return None

    table = DebugCommandTable()
    table.add("PowerOn", noop)
    with pytest.raises(NecProjectorError):
        table.add("power_on", noop)
    with pytest.raises(NecProjectorError):
        table.add("GetMethods", noop)
