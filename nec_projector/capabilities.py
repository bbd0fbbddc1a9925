# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Abstract device capabilities.

A device driver derives from Device plus whichever capability interfaces it
supports. Front ends (UIs, TV drivers, schedulers) program against these
interfaces rather than against a particular driver.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .internal_types import *
from .status import DeviceStatus, Subscription, StatusListener, ErrorListener

class Device(ABC):
    """A controllable device that publishes DeviceStatus updates."""

    name: str = "Device"

    @abstractmethod
    async def initialize(self) -> None:
        """Establishes communication and reads static device information.

        Must be implemented by subclasses.
        """
        raise NotImplementedError()

    @abstractmethod
    def subscribe(self, on_status: StatusListener, on_error: Optional[ErrorListener]=None) -> Subscription:
        """Registers listeners for status updates and errors."""
        raise NotImplementedError()

    @property
    @abstractmethod
    def status(self) -> DeviceStatus:
        """The last known status of the device."""
        raise NotImplementedError()

class PowerControl(Device):
    @abstractmethod
    async def power_on(self) -> Optional[str]:
        """Powers the device on and waits until it is operable.

        Returns None on success, or a human-readable reason why the device
        could not be brought to an operable state.
        """
        raise NotImplementedError()

    @abstractmethod
    async def power_off(self) -> None:
        raise NotImplementedError()

    @abstractmethod
    async def get_power_state(self) -> Any:
        raise NotImplementedError()

class InputSelect(PowerControl):
    @abstractmethod
    async def select_input(self, input: Any) -> None:
        """Selects an input, given as a driver-specific input value or its name."""
        raise NotImplementedError()

    @abstractmethod
    async def get_input_selection(self) -> Any:
        raise NotImplementedError()

    @abstractmethod
    async def power_on_select_input(self, input: Any) -> Optional[str]:
        """Powers the device on, waits until it is operable, then selects an input.

        Returns None on success, or the reason the device did not become operable
        (in which case no input was selected).
        """
        raise NotImplementedError()

class DisplayMute(Device):
    @abstractmethod
    async def display_mute(self, muted: bool) -> None:
        raise NotImplementedError()

    @abstractmethod
    async def is_display_muted(self) -> bool:
        raise NotImplementedError()

class AudioControl(Device):
    @abstractmethod
    async def volume_up(self) -> None:
        raise NotImplementedError()

    @abstractmethod
    async def volume_down(self) -> None:
        raise NotImplementedError()

    @abstractmethod
    async def audio_mute(self, muted: bool) -> None:
        raise NotImplementedError()

    @abstractmethod
    async def is_audio_muted(self) -> bool:
        raise NotImplementedError()

class Debuggable(ABC):
    """A device that exposes named debug commands to diagnostic front ends."""

    @abstractmethod
    async def get_debug_info(self) -> str:
        """Returns a multi-line, human-readable description of the device's state."""
        raise NotImplementedError()

    @abstractmethod
    def get_debug_commands(self) -> DebugCommandTable:
        raise NotImplementedError()

if TYPE_CHECKING:
    from .debug_commands import DebugCommandTable
