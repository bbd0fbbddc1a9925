"""Tests for NecProjectorClient, driven by scripted transport replies."""

from __future__ import annotations

import asyncio

import pytest

from nec_projector import (
    MessageType,
    NecProjectorError,
    NecProjectorCommandError,
    NecProjectorFaultError,
    NecProjectorOperationCancelled,
    NecProjectorTimeoutError,
)
from nec_projector.client.client_impl import COOLING_REASON, STANDBY_REASON, BUSY_REASON
from nec_projector.protocol import PowerState, Input, LampInfo

from mocks import (
    ok,
    fail,
    status_reply,
    lamp_reply,
    errors_reply,
    model_reply,
    serial_reply,
)


def record(client):
    statuses = []
    errors = []
    client.subscribe(statuses.append, errors.append)
    return statuses, errors


async def test_initialize(client, transport):
    transport.queue("get_model_number", model_reply("NP-PA1004UL"))
    transport.queue("get_serial_number", serial_reply("7Y00123AB"))
    transport.queue(
        "get_lamp_info",
        lamp_reply(LampInfo.GOOD_FOR_SECONDS, 20000 * 3600),
        lamp_reply(LampInfo.USAGE_TIME_SECONDS, 1500 * 3600 + 1799),
    )
    statuses, errors = record(client)
    await client.initialize()
    assert transport.connection_tests == 1
    status = client.status
    assert status.model_number == "NP-PA1004UL"
    assert status.serial_number == "7Y00123AB"
    assert status.lamp_hours_total == 20000
    assert status.lamp_hours_used == 1500
    assert statuses[-1] == status.with_message(None)
    assert errors == []


async def test_model_and_serial_number_unavailable(client, transport):
    transport.queue("get_model_number", fail("get_model_number", (0x00, 0x01)))
    transport.queue("get_serial_number", fail("get_serial_number", (0x00, 0x01)))
    assert await client.get_model_number() is None
    assert await client.get_serial_number() is None
    assert client.status.model_number is None


async def test_lamp_query_failure_uses_sentinel(client, transport):
    transport.queue("get_lamp_info", fail("get_lamp_info", (0x00, 0x01)))
    assert await client.get_lamp_info(LampInfo.GOOD_FOR_SECONDS) == -1
    assert client.status.lamp_hours_total == -1
    assert client.status.lamp_hours_used == -1


async def test_refresh_status(client, transport):
    transport.queue("get_status", status_reply(PowerState.ON, (0x02, 0x21), video_muted=True, audio_muted=False))
    transport.queue("get_lamp_info", lamp_reply(LampInfo.USAGE_TIME_SECONDS, 7200))
    statuses, _ = record(client)
    status = await client.refresh_status()
    assert status.power_state == PowerState.ON
    assert status.input_selected == Input.HDMI2
    assert status.video_muted is True
    assert status.audio_muted is False
    assert status.lamp_hours_used == 2
    assert len(statuses) == 1


async def test_unmapped_input_state(client, transport):
    transport.queue("get_status", status_reply(PowerState.ON, (0x09, 0x09)))
    transport.queue("get_lamp_info", lamp_reply(LampInfo.USAGE_TIME_SECONDS, 0))
    assert await client.get_input_selection() is None


async def test_power_on_polls_until_operable(client, transport):
    transport.queue("power_on", ok("power_on"))
    transport.queue(
        "get_status",
        status_reply(PowerState.INITIALIZING),
        status_reply(PowerState.STARTING),
        status_reply(PowerState.WARMING),
    )
    statuses, _ = record(client)
    assert await client.power_on() is None
    assert transport.sent_names == ["power_on", "get_status", "get_status", "get_status"]
    debug_messages = [s.message for s in statuses if s.message_type == MessageType.DEBUG]
    assert debug_messages == ["Power state: INITIALIZING", "Power state: STARTING", "Power state: WARMING"]
    assert statuses[-1].message_type == MessageType.SUCCESS


@pytest.mark.parametrize("state, reason", [
    (PowerState.COOLING, COOLING_REASON),
    (PowerState.STANDBY_SLEEP, STANDBY_REASON),
    (PowerState.STANDBY_NETWORK, STANDBY_REASON),
    (PowerState.STANDBY_POWER_SAVING, STANDBY_REASON),
    (PowerState.UNKNOWN, BUSY_REASON),
    (0x42, BUSY_REASON),
])
async def test_power_on_soft_failures(client, transport, state, reason):
    transport.queue("power_on", ok("power_on"))
    transport.queue("get_status", status_reply(state))
    statuses, errors = record(client)
    assert await client.power_on() == reason
    assert transport.sent_names == ["power_on", "get_status"]
    assert statuses[-1].message == reason
    assert statuses[-1].message_type == MessageType.WARNING
    assert errors == []


async def test_power_on_standby_error_reports_faults(client, transport):
    transport.queue("power_on", ok("power_on"))
    transport.queue("get_status", status_reply(PowerState.STANDBY_ERROR))
    transport.queue("get_errors", errors_reply([0x40, 0x00, 0x08]))
    statuses, errors = record(client)
    with pytest.raises(NecProjectorFaultError) as exc_info:
        await client.power_on()
    faults = exc_info.value.faults
    assert [fault.description for fault in faults] == ["Lamp 1 failed to light", "Lamp 1 not present"]
    assert errors == [exc_info.value]


async def test_power_on_rejected(client, transport):
    transport.queue("power_on", fail("power_on", (0x02, 0x03)))
    _, errors = record(client)
    with pytest.raises(NecProjectorCommandError) as exc_info:
        await client.await_power_on()
    assert exc_info.value.error_code == (0x02, 0x03)
    assert transport.sent_names == ["power_on"]
    assert len(errors) == 1


async def test_power_on_deadline(client, transport):
    transport.queue("power_on", ok("power_on"))
    transport.queue("get_status", status_reply(PowerState.STARTING))
    with pytest.raises(NecProjectorOperationCancelled) as exc_info:
        await client.await_power_on(timeout_secs=0.05)
    assert exc_info.value.last_power_state == PowerState.STARTING


async def test_power_on_select_input(client, transport):
    transport.queue("power_on", ok("power_on"))
    transport.queue("get_status", status_reply(PowerState.ON))
    transport.queue("select_input", ok("select_input", b"\x00"))
    assert await client.power_on_select_input("HDMI1") is None
    assert transport.sent[-1].raw_data == bytes.fromhex("02 03 00 00 02 01 1a 22")
    assert client.status.input_selected == Input.HDMI1


async def test_power_on_select_input_not_ready(client, transport):
    transport.queue("power_on", ok("power_on"))
    transport.queue("get_status", status_reply(PowerState.COOLING))
    assert await client.power_on_select_input(Input.VIDEO) == COOLING_REASON
    assert "select_input" not in transport.sent_names


async def test_select_input_publishes_success(client, transport):
    transport.queue("select_input", ok("select_input", b"\x00"))
    statuses, _ = record(client)
    await client.select_input(Input.DISPLAY_PORT)
    assert statuses[-1].message == "Input 'DISPLAY_PORT' selected."
    assert statuses[-1].message_type == MessageType.SUCCESS


async def test_select_input_rejected(client, transport):
    transport.queue("select_input", fail("select_input", (0x02, 0x0D)))
    _, errors = record(client)
    with pytest.raises(NecProjectorCommandError) as exc_info:
        await client.select_input("HDMI2")
    assert exc_info.value.message == "The command cannot be accepted because the power is off."
    assert errors == [exc_info.value]


async def test_mute_and_volume(client, transport):
    for name in ("video_mute_on", "audio_mute_off"):
        transport.queue(name, ok(name))
    transport.queue("volume_adjust", ok("volume_adjust", b"\x00\x00"))
    statuses, _ = record(client)
    await client.display_mute(True)
    await client.audio_mute(False)
    await client.volume_up()
    await client.volume_down()
    assert client.status.video_muted is True
    assert client.status.audio_muted is False
    assert [s.message for s in statuses] == ["Video mute ON", "Audio mute OFF", "Volume +2", "Volume -2"]
    assert transport.sent[2].payload == b"\x01\x02\x00"
    assert transport.sent[3].payload == b"\x01\xfe\xff"


async def test_transport_error_is_published_once(client, transport):
    transport.queue("power_off", NecProjectorTimeoutError("Timed out", command_name="power_off"))
    _, errors = record(client)
    with pytest.raises(NecProjectorTimeoutError):
        await client.power_off()
    assert len(errors) == 1


async def test_disconnect_and_recovery(client, transport):
    statuses, _ = record(client)
    transport.on_disconnect(ConnectionResetError("reset"))
    assert client.disconnected
    assert statuses[-1].message_type == MessageType.WARNING
    transport.queue("power_off", ok("power_off"))
    await client.power_off()
    assert not client.disconnected


async def test_get_debug_info(client, transport):
    transport.queue("get_status", status_reply(PowerState.ON, (0x01, 0x06)))
    transport.queue("get_lamp_info", lamp_reply(LampInfo.USAGE_TIME_SECONDS, 500 * 3600))
    transport.queue("get_errors", errors_reply([0x01]))
    client._status = client.status.replace(lamp_hours_total=2000, model_number="NP-X")
    info = await client.get_debug_info()
    assert "Model: NP-X" in info
    assert "Power state: ON" in info
    assert "Input selected: HDMI1" in info
    assert "Lamp hours used: 500 / 2000 (75% life remaining)" in info
    assert "Lamp cover error" in info


async def test_debug_commands(client, transport):
    transport.queue("select_input", ok("select_input", b"\x00"))
    transport.queue("video_mute_off", ok("video_mute_off"))
    await client.run_debug_command("SelectInput(HDMI1)")
    await client.run_debug_command("DisplayMute(false)")
    assert transport.sent_names == ["select_input", "video_mute_off"]
    methods = await client.run_debug_command("GetMethods")
    assert "PowerOn" in methods.split("\n")


async def test_status_polling(client, transport):
    transport.queue("get_status", status_reply(PowerState.STANDBY_SLEEP))
    transport.queue("get_lamp_info", lamp_reply(LampInfo.USAGE_TIME_SECONDS, 0))
    polled = asyncio.Event()
    client.subscribe(lambda status: polled.set())
    client.start_status_polling(0.01)
    assert client.is_polling
    await asyncio.wait_for(polled.wait(), 1.0)
    await client.stop_status_polling()
    assert not client.is_polling
    assert client.status.power_state == PowerState.STANDBY_SLEEP


async def test_status_polling_paused_while_disconnected(client, transport):
    transport.connection_test_exception = NecProjectorTimeoutError("Timed out")
    transport.on_disconnect(ConnectionResetError("reset"))
    _, errors = record(client)
    client.start_status_polling(0.01)
    await asyncio.sleep(0.05)
    await client.stop_status_polling()
    assert transport.connection_tests > 0
    assert "get_status" not in transport.sent_names
    assert errors == []


async def test_aclose_closes_transport(client, transport):
    async with client:
        client.start_status_polling(10.0)
    assert transport.closed
    assert not client.is_polling


@pytest.mark.parametrize("call", ["GetLampInfo(3)", "GetLampInfo(1, 5)"])
async def test_unknown_lamp_codes_are_rejected(client, transport, call):
    _, errors = record(client)
    with pytest.raises(NecProjectorError):
        await client.run_debug_command(call)
    assert transport.sent_names == []
    assert len(errors) == 1


async def test_lamp_reply_for_another_request_is_logged(client, transport, caplog):
    transport.queue("get_lamp_info", lamp_reply(LampInfo.USAGE_TIME_SECONDS, 7200))
    value = await client.get_lamp_info(LampInfo.GOOD_FOR_SECONDS)
    assert value == 7200
    assert "Lamp reply is for lamp 0, request 0x01" in caplog.text


async def test_status_polling_survives_unexpected_exceptions(client, transport, caplog):
    transport.queue("get_status", RuntimeError("parser bug"), status_reply(PowerState.ON))
    transport.queue("get_lamp_info", lamp_reply(LampInfo.USAGE_TIME_SECONDS, 0))
    polled = asyncio.Event()
    client.subscribe(lambda status: polled.set())
    client.start_status_polling(0.01)
    await asyncio.wait_for(polled.wait(), 1.0)
    assert client.is_polling
    await client.stop_status_polling()
    assert "Unexpected exception while polling status" in caplog.text
    assert "parser bug" in caplog.text
