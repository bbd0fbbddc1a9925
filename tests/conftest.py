"""Pytest configuration for nec_projector tests."""

from __future__ import annotations

import logging

import pytest

from nec_projector.client import NecProjectorClient
from nec_projector.emulator import NecProjectorEmulator

from mocks import ScriptedTransport

_ENV_VARS = (
    "NEC_PROJECTOR_HOST",
    "NEC_PROJECTOR_PORT",
    "NEC_PROJECTOR_SERIAL_PORT",
    "NEC_PROJECTOR_BAUDRATE",
    "NEC_PROJECTOR_TIMEOUT",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's NEC_PROJECTOR_* settings out of the tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def debug_logging(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="nec_projector")


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def client(transport: ScriptedTransport) -> NecProjectorClient:
    return NecProjectorClient(
        transport,
        name="Test Projector",
        power_on_timeout_secs=5.0,
        power_poll_interval_secs=0.01,
    )


@pytest.fixture
async def emulator():
    async with NecProjectorEmulator() as emulator:
        yield emulator
