# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
NEC Projector client.

Provides the device driver for NEC projectors: semantic operations (power,
input selection, mute, volume, diagnostics) on top of an
NecProjectorClientTransport, a record of the last known device status, and
the power-on synchronization state machine.

Every public operation that fails publishes the exception to error listeners
and then re-raises it to the caller.
"""

from __future__ import annotations

import asyncio
import functools
import time

from ..internal_types import *
from ..exceptions import (
    NecProjectorError,
    NecProjectorCommandError,
    NecProjectorFaultError,
    NecProjectorOperationCancelled,
    InternalFault,
  )
from ..constants import POWER_ON_TIMEOUT, POWER_POLL_INTERVAL, STATUS_POLL_INTERVAL
from ..pkg_logging import logger
from ..protocol import (
    NecCommand,
    NecResponse,
    PowerState,
    Input,
    LampInfo,
    LampNumber,
    input_from_state,
    is_success_response_for,
    command_error_from_response,
    decode_internal_faults,
  )
from ..protocol.constants import (
    STATUS_POWER_STATE_OFFSET,
    STATUS_INPUT_OFFSET,
    STATUS_VIDEO_MUTE_OFFSET,
    STATUS_AUDIO_MUTE_OFFSET,
    MUTED,
    LAMP_NUMBER_OFFSET,
    LAMP_REQUEST_OFFSET,
    LAMP_VALUE_OFFSET,
    MODEL_NUMBER_OFFSET,
    MODEL_NUMBER_LENGTH,
    SERIAL_NUMBER_OFFSET,
    SERIAL_NUMBER_LENGTH,
  )
from ..status import DeviceStatus, MessageType, StatusPublisher, Subscription, StatusListener, ErrorListener
from ..capabilities import InputSelect, DisplayMute, AudioControl, Debuggable
from ..debug_commands import DebugCommandTable

from .client_transport import NecProjectorClientTransport

COOLING_REASON = "Device is cooling. Please wait until power cycle is complete."
STANDBY_REASON = "Device in standby. Please wait for power on before input selection."
BUSY_REASON = "Device is busy. Please wait."
FAULT_MESSAGE = "Device is reporting one or more errors."

# Relative volume adjustments: mode 01 (relative), then a signed 16-bit little-endian step.
VOLUME_UP_ARGS = (0x01, 0x02, 0x00)
VOLUME_DOWN_ARGS = (0x01, 0xFE, 0xFF)

_T = TypeVar('_T')

def _publishes_errors(method: Callable[..., Awaitable[_T]]) -> Callable[..., Awaitable[_T]]:
    """Decorates a public driver operation so that a failure is published to error
       listeners before it propagates to the caller."""
    @functools.wraps(method)
    async def wrapper(self: NecProjectorClient, *args: Any, **kwargs: Any) -> _T:
        try:
            return await method(self, *args, **kwargs)
        except Exception as e:
            self._report_error(e, method.__name__)
            raise
    return wrapper

class PowerOnResult(NamedTuple):
    ready: bool
    """True iff the projector reached an operable state (ON or WARMING)."""
    failure_reason: Optional[str]
    """Why the projector cannot be powered on right now, if not ready."""
    power_state: Optional[PowerState]
    """The last power state seen."""

class NecProjectorClient(InputSelect, DisplayMute, AudioControl, Debuggable):
    """NEC Projector client."""

    transport: NecProjectorClientTransport
    name: str
    power_on_timeout_secs: float
    power_poll_interval_secs: float
    publisher: StatusPublisher

    _status: DeviceStatus
    _disconnected: bool = False
    _poll_task: Optional[asyncio.Task[None]] = None
    _debug_commands: Optional[DebugCommandTable] = None

    def __init__(
            self,
            transport: NecProjectorClientTransport,
            name: str="NEC Projector",
            power_on_timeout_secs: float=POWER_ON_TIMEOUT,
            power_poll_interval_secs: float=POWER_POLL_INTERVAL,
          ):
        self.transport = transport
        self.name = name
        self.power_on_timeout_secs = power_on_timeout_secs
        self.power_poll_interval_secs = power_poll_interval_secs
        self.publisher = StatusPublisher()
        self._status = DeviceStatus()
        transport.on_disconnect = self._on_transport_disconnect

    # ----- plumbing -----

    @property
    def status(self) -> DeviceStatus:
        """The last known device status."""
        return self._status

    @property
    def disconnected(self) -> bool:
        """True if the connection was reset and no command has succeeded since."""
        return self._disconnected

    def subscribe(self, on_status: StatusListener, on_error: Optional[ErrorListener]=None) -> Subscription:
        return self.publisher.subscribe(on_status, on_error)

    def _publish(self, message: Optional[str]=None, message_type: MessageType=MessageType.INFO) -> None:
        self.publisher.publish_status(self._status.with_message(message, message_type))

    def _report_error(self, error: BaseException, operation: str) -> None:
        logger.error(f"{self}: {operation}: {error}")
        self.publisher.publish_error(error)

    def _on_transport_disconnect(self, exc: BaseException) -> None:
        if not self._disconnected:
            self._disconnected = True
            logger.warning(f"{self}: Connection to projector lost: {exc}")
            self._publish("Connection to device lost.", MessageType.WARNING)

    async def transact(self, command: NecCommand) -> NecResponse:
        """Sends a command and returns the reply, whether success or failure."""
        response = await self.transport.send_command(command)
        if self._disconnected:
            self._disconnected = False
            logger.info(f"{self}: Connection to projector restored")
        return response

    async def _send_checked(self, command: NecCommand) -> NecResponse:
        """Sends a command; raises NecProjectorCommandError if the projector rejects it."""
        response = await self.transact(command)
        if response.indicates_failure:
            raise command_error_from_response(response)
        return response

    # ----- state queries (internal; do not publish errors) -----

    async def _refresh_status(self, publish: bool=True, include_lamp: bool=True) -> DeviceStatus:
        response = await self._send_checked(NecCommand.create_from_name("get_status"))
        raw_data = response.raw_data
        power_state = PowerState.from_code(raw_data[STATUS_POWER_STATE_OFFSET])
        input_state = (raw_data[STATUS_INPUT_OFFSET], raw_data[STATUS_INPUT_OFFSET + 1])
        input_selected = input_from_state(input_state)
        if input_selected is None:
            logger.debug(f"{self}: Unmapped input state ({input_state[0]:02x}, {input_state[1]:02x})")
        logger.debug(f"{self}: Power state {power_state}, input {input_selected}")
        self._status = self._status.replace(
            power_state=power_state,
            input_selected=input_selected,
            video_muted=raw_data[STATUS_VIDEO_MUTE_OFFSET] == MUTED,
            audio_muted=raw_data[STATUS_AUDIO_MUTE_OFFSET] == MUTED,
          )
        if include_lamp:
            await self._get_lamp_info(LampInfo.USAGE_TIME_SECONDS)
        if publish:
            self._publish()
        return self._status

    async def _get_lamp_info(self, info: LampInfo, lamp: LampNumber=LampNumber.LAMP_1) -> int:
        command = NecCommand.create_from_name("get_lamp_info", int(lamp), int(info))
        try:
            response = await self._send_checked(command)
        except NecProjectorCommandError as e:
            # Lampless models reject lamp queries.
            logger.debug(f"{self}: Lamp information unavailable: {e}")
            self._status = self._status.replace(lamp_hours_total=-1, lamp_hours_used=-1)
            return -1
        echoed = (response.raw_data[LAMP_NUMBER_OFFSET], response.raw_data[LAMP_REQUEST_OFFSET])
        if echoed != (int(lamp), int(info)):
            logger.warning(f"{self}: Lamp reply is for lamp {echoed[0]}, request 0x{echoed[1]:02x}; expected lamp {int(lamp)}, request 0x{int(info):02x}")
        value = int.from_bytes(response.raw_data[LAMP_VALUE_OFFSET:LAMP_VALUE_OFFSET + 4], 'little', signed=True)
        if info == LampInfo.GOOD_FOR_SECONDS:
            self._status = self._status.replace(lamp_hours_total=value // 3600)
        elif info == LampInfo.USAGE_TIME_SECONDS:
            self._status = self._status.replace(lamp_hours_used=value // 3600)
        return value

    async def _get_model_number(self) -> Optional[str]:
        # Some models reject this over serial until they have been power cycled;
        # that is not treated as an error.
        response = await self.transact(NecCommand.create_from_name("get_model_number"))
        if not is_success_response_for(response, "get_model_number"):
            logger.warning(f"{self}: Model number unavailable: {response}")
            return None
        data = response.raw_data[MODEL_NUMBER_OFFSET:MODEL_NUMBER_OFFSET + MODEL_NUMBER_LENGTH]
        model_number = data.decode('utf-8', errors='replace').rstrip('\0')
        self._status = self._status.replace(model_number=model_number)
        return model_number

    async def _get_serial_number(self) -> Optional[str]:
        response = await self.transact(NecCommand.create_from_name("get_serial_number"))
        if not is_success_response_for(response, "get_serial_number"):
            logger.warning(f"{self}: Serial number unavailable: {response}")
            return None
        data = response.raw_data[SERIAL_NUMBER_OFFSET:SERIAL_NUMBER_OFFSET + SERIAL_NUMBER_LENGTH]
        serial_number = data.decode('utf-8', errors='replace').rstrip('\0')
        self._status = self._status.replace(serial_number=serial_number)
        return serial_number

    async def _get_errors(self, log_errors: bool=True) -> List[InternalFault]:
        response = await self._send_checked(NecCommand.create_from_name("get_errors"))
        faults = decode_internal_faults(response)
        if len(faults) > 0 and log_errors:
            logger.warning(f"{self}: Device is reporting the following internal error(s):")
            for fault in faults:
                logger.warning(f"  {fault}")
        return faults

    async def _select_input(self, input: Union[Input, str, int]) -> Input:
        resolved = Input.resolve(input)
        await self._send_checked(NecCommand.create_from_name("select_input").prepare_input(resolved))
        self._status = self._status.replace(input_selected=resolved)
        self._publish(f"Input '{resolved}' selected.", MessageType.SUCCESS)
        return resolved

    async def _await_power_on(self, timeout_secs: Optional[float]=None) -> PowerOnResult:
        if timeout_secs is None:
            timeout_secs = self.power_on_timeout_secs
        deadline = time.monotonic() + timeout_secs
        await self._send_checked(NecCommand.create_from_name("power_on"))
        last_state: Optional[PowerState] = None
        while True:
            if time.monotonic() >= deadline:
                raise NecProjectorOperationCancelled(
                    f"Power on did not complete within {timeout_secs} seconds (last power state: {last_state})",
                    last_power_state=last_state,
                  )
            status = await self._refresh_status(publish=False, include_lamp=False)
            state = cast(PowerState, status.power_state)
            last_state = state
            self._publish(f"Power state: {state}", MessageType.DEBUG)

            if state.is_operable:
                return PowerOnResult(True, None, state)
            if state == PowerState.COOLING:
                reason = COOLING_REASON
            elif state.is_standby:
                reason = STANDBY_REASON
            elif state == PowerState.STANDBY_ERROR:
                faults = await self._get_errors(log_errors=True)
                raise NecProjectorFaultError(FAULT_MESSAGE, faults, command_name="power_on")
            elif state == PowerState.UNKNOWN:
                reason = BUSY_REASON
            else:
                # Initializing, starting, or running self-diagnostics; check again shortly.
                remaining = deadline - time.monotonic()
                if remaining > 0:
                    await asyncio.sleep(min(self.power_poll_interval_secs, remaining))
                continue
            logger.warning(f"{self}: {reason}")
            return PowerOnResult(False, reason, state)

    # ----- Device -----

    @_publishes_errors
    async def initialize(self) -> None:
        """Verifies the connection and reads model number, serial number and lamp hours."""
        await self.transport.test_connection()
        await self._get_model_number()
        await self._get_serial_number()
        await self._get_lamp_info(LampInfo.GOOD_FOR_SECONDS)
        await self._get_lamp_info(LampInfo.USAGE_TIME_SECONDS)
        logger.info(f"{self}: Initialized")
        self._publish()

    @_publishes_errors
    async def refresh_status(self) -> DeviceStatus:
        """Queries power, input, mute and lamp state and publishes the result."""
        return await self._refresh_status()

    # ----- PowerControl -----

    @_publishes_errors
    async def await_power_on(self, timeout_secs: Optional[float]=None) -> PowerOnResult:
        """Powers the projector on and polls until it is operable, a reason it cannot be
           powered on is found, or timeout_secs (default power_on_timeout_secs) elapses.

           Raises NecProjectorCommandError if the power on command is rejected,
           NecProjectorFaultError if the projector reports internal errors, and
           NecProjectorOperationCancelled if the deadline passes.
        """
        return await self._await_power_on(timeout_secs)

    @_publishes_errors
    async def power_on(self) -> Optional[str]:
        result = await self._await_power_on()
        if result.ready:
            self._publish("Device powered on.", MessageType.SUCCESS)
            return None
        self._publish(result.failure_reason, MessageType.WARNING)
        return result.failure_reason

    @_publishes_errors
    async def power_off(self) -> None:
        await self._send_checked(NecCommand.create_from_name("power_off"))
        self._publish("Device powering off.")

    @_publishes_errors
    async def get_power_state(self) -> PowerState:
        status = await self._refresh_status()
        return cast(PowerState, status.power_state)

    # ----- InputSelect -----

    @_publishes_errors
    async def select_input(self, input: Union[Input, str, int]) -> None:
        await self._select_input(input)

    @_publishes_errors
    async def get_input_selection(self) -> Optional[Input]:
        status = await self._refresh_status()
        return cast(Optional[Input], status.input_selected)

    @_publishes_errors
    async def power_on_select_input(self, input: Union[Input, str, int]) -> Optional[str]:
        resolved = Input.resolve(input)
        result = await self._await_power_on()
        if not result.ready:
            self._publish(result.failure_reason, MessageType.WARNING)
            return result.failure_reason
        await self._select_input(resolved)
        return None

    # ----- DisplayMute -----

    @_publishes_errors
    async def display_mute(self, muted: bool) -> None:
        await self._send_checked(NecCommand.create_from_name("video_mute_on" if muted else "video_mute_off"))
        self._status = self._status.replace(video_muted=muted)
        self._publish(f"Video mute {'ON' if muted else 'OFF'}")

    @_publishes_errors
    async def is_display_muted(self) -> bool:
        status = await self._refresh_status()
        return bool(status.video_muted)

    # ----- AudioControl -----

    @_publishes_errors
    async def volume_up(self) -> None:
        await self._send_checked(NecCommand.create_from_name("volume_adjust", *VOLUME_UP_ARGS))
        self._publish("Volume +2")

    @_publishes_errors
    async def volume_down(self) -> None:
        await self._send_checked(NecCommand.create_from_name("volume_adjust", *VOLUME_DOWN_ARGS))
        self._publish("Volume -2")

    @_publishes_errors
    async def audio_mute(self, muted: bool) -> None:
        await self._send_checked(NecCommand.create_from_name("audio_mute_on" if muted else "audio_mute_off"))
        self._status = self._status.replace(audio_muted=muted)
        self._publish(f"Audio mute {'ON' if muted else 'OFF'}")

    @_publishes_errors
    async def is_audio_muted(self) -> bool:
        status = await self._refresh_status()
        return bool(status.audio_muted)

    # ----- diagnostics -----

    @_publishes_errors
    async def get_errors(self, log_errors: bool=True) -> List[InternalFault]:
        """Returns the internal faults the projector is currently reporting."""
        return await self._get_errors(log_errors=log_errors)

    @_publishes_errors
    async def get_model_number(self) -> Optional[str]:
        return await self._get_model_number()

    @_publishes_errors
    async def get_serial_number(self) -> Optional[str]:
        return await self._get_serial_number()

    @_publishes_errors
    async def get_lamp_info(
            self,
            info: Union[LampInfo, int]=LampInfo.USAGE_TIME_SECONDS,
            lamp: Union[LampNumber, int]=LampNumber.LAMP_1,
          ) -> int:
        """Returns the requested lamp value (seconds or percent), or -1 if the
           projector has no lamp information."""
        return await self._get_lamp_info(LampInfo.resolve(info), LampNumber.resolve(lamp))

    @_publishes_errors
    async def get_info(self) -> bytes:
        """Returns the raw data block of the information request reply."""
        response = await self._send_checked(NecCommand.create_from_name("get_info"))
        return response.raw_data[5:-1]

    @_publishes_errors
    async def get_debug_info(self) -> str:
        status = await self._refresh_status()
        lines = [
            f"Device name: {self.name}",
            f"Connection info - {self.transport}",
            f"Model: {status.model_number}",
            f"Serial #: {status.serial_number}",
            f"Power state: {status.power_state}",
            f"Input selected: {status.input_selected}",
            f"Video mute: {'on' if status.video_muted else 'off'}",
            f"Audio mute: {'on' if status.audio_muted else 'off'}",
          ]
        hours_used = status.lamp_hours_used
        hours_total = status.lamp_hours_total
        if hours_used is not None and hours_total is not None and hours_used > -1 and hours_total > 0:
            percent_remaining = 100 - (hours_used * 100) // hours_total
            lines.append(f"Lamp hours used: {hours_used} / {hours_total} ({percent_remaining}% life remaining)")
        faults = await self._get_errors()
        if len(faults) > 0:
            lines.append("")
            lines.append("Device is reporting the following error(s):")
            lines.extend(str(fault) for fault in faults)
        return "\n".join(lines) + "\n"

    def get_debug_commands(self) -> DebugCommandTable:
        if self._debug_commands is None:
            table = DebugCommandTable()
            table.add("PowerOn", self.power_on, "Power on and wait until operable")
            table.add("PowerOff", self.power_off, "Power off")
            table.add("AwaitPowerOn", self.await_power_on, "Power on and wait; returns the outcome")
            table.add("SelectInput", self.select_input, "Select an input by name, e.g. SelectInput(HDMI1)")
            table.add("PowerOnSelectInput", self.power_on_select_input, "Power on, wait, then select an input")
            table.add("GetPowerState", self.get_power_state, "Query the power state")
            table.add("GetInputSelection", self.get_input_selection, "Query the selected input")
            table.add("DisplayMute", self.display_mute, "Set video mute, e.g. DisplayMute(true)")
            table.add("IsDisplayMuted", self.is_display_muted, "Query video mute")
            table.add("AudioMute", self.audio_mute, "Set audio mute, e.g. AudioMute(false)")
            table.add("IsAudioMuted", self.is_audio_muted, "Query audio mute")
            table.add("VolumeUp", self.volume_up, "Raise the volume by 2")
            table.add("VolumeDown", self.volume_down, "Lower the volume by 2")
            table.add("RefreshStatus", self.refresh_status, "Query and publish the full status")
            table.add("GetErrors", self.get_errors, "List internal faults")
            table.add("GetModelNumber", self.get_model_number, "Query the model number")
            table.add("GetSerialNumber", self.get_serial_number, "Query the serial number")
            table.add("GetLampInfo", self.get_lamp_info, "Query lamp information, e.g. GetLampInfo(1, 0)")
            table.add("GetInfo", self.get_info, "Query the raw information block")
            table.add("GetDebugInfo", self.get_debug_info, "Describe the device and its state")
            self._debug_commands = table
        return self._debug_commands

    async def run_debug_command(self, call_string: str) -> Any:
        """Runs a debug command given as a call string, e.g. "SelectInput(HDMI1)"."""
        return await self.get_debug_commands().run(call_string)

    # ----- background status polling -----

    def start_status_polling(self, interval_secs: float=STATUS_POLL_INTERVAL) -> None:
        """Starts refreshing (and publishing) the status every interval_secs in the
           background. Has no effect if polling is already running."""
        if self._poll_task is not None and not self._poll_task.done():
            return
        self._poll_task = asyncio.create_task(self._poll_status(interval_secs))

    async def stop_status_polling(self) -> None:
        task = self._poll_task
        self._poll_task = None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    async def _poll_status(self, interval_secs: float) -> None:
        logger.debug(f"{self}: Status polling started (every {interval_secs} seconds)")
        while True:
            await asyncio.sleep(interval_secs)
            try:
                if self._disconnected:
                    # Paused until the projector answers again.
                    await self.transport.test_connection()
                    self._disconnected = False
                    logger.info(f"{self}: Connection to projector restored; resuming status polling")
                await self._refresh_status()
            except NecProjectorError as e:
                if not self._disconnected:
                    self._report_error(e, "status poll")
            except Exception:
                logger.exception(f"{self}: Unexpected exception while polling status")

    # ----- lifecycle -----

    async def aclose(self) -> None:
        await self.stop_status_polling()
        await self.transport.aclose()

    async def __aenter__(self) -> NecProjectorClient:
        logger.debug(f"{self}: Entering async context manager")
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc_val: Optional[BaseException],
            exc_tb: Optional[TracebackType],
          ) -> None:
        logger.debug(f"{self}: Exiting async context manager, exc={exc_val}")
        await self.aclose()

    def __str__(self) -> str:
        return f"NecProjectorClient({self.name}: {self.transport})"

    def __repr__(self) -> str:
        return str(self)
