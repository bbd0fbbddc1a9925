"""Tests for the RS-232 transport, with pyserial-asyncio-fast replaced by fake streams."""

from __future__ import annotations

import asyncio

import pytest
import serial
import serial_asyncio_fast

from nec_projector import NecProjectorTransportError, NecProjectorTimeoutError
from nec_projector.constants import SERIAL_SETTLE_DELAY
from nec_projector.client import SerialNecProjectorClientTransport
from nec_projector.protocol import NecCommand

from mocks import FakeStreamWriter, ok


class FakeSerialPort:
    """Replaces serial_asyncio_fast.open_serial_connection."""

    def __init__(self, replies=(), exception=None):
        self.replies = list(replies)
        self.exception = exception
        self.calls = []
        self.writers = []

    async def __call__(self, **kwargs):
        self.calls.append(kwargs)
        if self.exception is not None:
            raise self.exception
        reader = asyncio.StreamReader()
        if len(self.replies) > 0:
            reader.feed_data(self.replies.pop(0))
        reader.feed_eof()
        writer = FakeStreamWriter()
        self.writers.append(writer)
        return reader, writer


@pytest.fixture
def fake_port(monkeypatch):
    port = FakeSerialPort()
    monkeypatch.setattr(serial_asyncio_fast, "open_serial_connection", port)
    return port


async def test_opens_port_per_command_with_8n1(fake_port):
    fake_port.replies = [ok("power_off").raw_data, ok("power_on").raw_data]
    transport = SerialNecProjectorClientTransport("/dev/ttyUSB0")
    await transport.send_command(NecCommand.create_from_name("power_off"))
    await transport.send_command(NecCommand.create_from_name("power_on"))
    assert len(fake_port.calls) == 2
    assert fake_port.calls[0] == dict(
        url="/dev/ttyUSB0",
        baudrate=38400,
        bytesize=serial.EIGHTBITS,
        parity=serial.PARITY_NONE,
        stopbits=serial.STOPBITS_ONE,
    )
    assert all(writer.closed for writer in fake_port.writers)
    assert fake_port.writers[0].written == bytes.fromhex("02 01 00 00 00 03")


async def test_test_connection_sends_information_request(fake_port):
    fake_port.replies = [ok("get_info", bytes(98)).raw_data]
    transport = SerialNecProjectorClientTransport("COM3", baudrate=9600)
    await transport.test_connection()
    assert fake_port.calls[0]["baudrate"] == 9600
    assert fake_port.writers[0].written == NecCommand.create_from_name("get_info").raw_data


async def test_open_failure(fake_port):
    fake_port.exception = serial.SerialException("could not open port")
    transport = SerialNecProjectorClientTransport("/dev/ttyUSB9")
    with pytest.raises(NecProjectorTransportError) as exc_info:
        await transport.send_command(NecCommand.create_from_name("get_status"))
    assert exc_info.value.command_name == "get_status"
    assert isinstance(exc_info.value.__cause__, serial.SerialException)


async def test_open_timeout(monkeypatch):
    async def never_opens(**kwargs):
        await asyncio.sleep(10)

    monkeypatch.setattr(serial_asyncio_fast, "open_serial_connection", never_opens)
    transport = SerialNecProjectorClientTransport("/dev/ttyUSB0", timeout_secs=0.05)
    with pytest.raises(NecProjectorTimeoutError):
        await transport.send_command(NecCommand.create_from_name("get_status"))


class TimedStreamReader(asyncio.StreamReader):
    def __init__(self, events):
        super().__init__()
        self.events = events

    async def readexactly(self, n):
        self.events.append(("read", asyncio.get_running_loop().time()))
        return await super().readexactly(n)


class TimedStreamWriter(FakeStreamWriter):
    def __init__(self, events):
        super().__init__()
        self.events = events

    def write(self, data):
        self.events.append(("write", asyncio.get_running_loop().time()))
        super().write(data)


async def test_settle_delay_between_write_and_first_read(monkeypatch):
    assert SERIAL_SETTLE_DELAY == 0.1
    events = []

    async def open_timed_port(**kwargs):
        reader = TimedStreamReader(events)
        reader.feed_data(ok("power_on").raw_data)
        reader.feed_eof()
        return reader, TimedStreamWriter(events)

    monkeypatch.setattr(serial_asyncio_fast, "open_serial_connection", open_timed_port)
    transport = SerialNecProjectorClientTransport("/dev/ttyUSB0")
    await transport.send_command(NecCommand.create_from_name("power_on"))
    assert events[0][0] == "write"
    assert events[1][0] == "read"
    # The event loop may wake a timer up to one clock tick early.
    assert events[1][1] - events[0][1] >= SERIAL_SETTLE_DELAY - 0.001
