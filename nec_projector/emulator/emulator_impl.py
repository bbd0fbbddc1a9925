# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
NEC Projector emulator.

Provides a simple emulation of an NEC projector on TCP/IP. It keeps power,
input, mute, volume, lamp and fault state, and can be scripted to report a
sequence of power states, reject specific commands, stay silent, send garbage,
or drop the connection.
"""

from __future__ import annotations

import asyncio
from collections import deque

from ..internal_types import *
from ..pkg_logging import logger
from ..protocol import (
    NecCommand,
    NecResponse,
    PowerState,
    Input,
    INPUT_STATE_MAP,
    LampInfo,
    create_success_response,
    create_failure_response,
  )
from ..protocol.constants import MODEL_NUMBER_LENGTH, SERIAL_NUMBER_LENGTH, FAULT_BITFIELD_LENGTH
from ..exceptions import NecProjectorError

from .session import NecProjectorEmulatorSession

POWER_IS_OFF_ERROR = (0x02, 0x0D)
INVALID_VALUE_ERROR = (0x01, 0x00)
INVALID_INPUT_ERROR = (0x01, 0x01)
NOT_SUPPORTED_ERROR = (0x00, 0x01)

EmulatorReply = Union[NecResponse, bytes, None]

# Alternate codes select the same terminal as the primary code.
_ALTERNATE_INPUTS = {
    Input.HDMI1_ALTERNATE: Input.HDMI1,
    Input.HDMI2_ALTERNATE: Input.HDMI2,
    Input.HDBASET_ALTERNATE: Input.HDBASET,
  }

def _input_to_state(input: Input) -> Tuple[int, int]:
    input = _ALTERNATE_INPUTS.get(input, input)
    for state, mapped in INPUT_STATE_MAP.items():
        if mapped == input:
            return state
    raise NecProjectorError(f"No reported input state for {input}")

class NecProjectorEmulator(AsyncContextManager['NecProjectorEmulator']):
    bind_addr: str
    port: int
    sessions: Dict[int, NecProjectorEmulatorSession]
    next_session_id: int = 0
    requests: asyncio.Queue[Optional[Tuple[NecProjectorEmulatorSession, bytes]]]
    server: Optional[asyncio.Server] = None
    handler_task: Optional[asyncio.Task[None]] = None
    final_result: Optional[asyncio.Future[None]] = None

    # Emulated device state
    power_state: PowerState
    input_state: Tuple[int, int]
    video_muted: bool = False
    audio_muted: bool = False
    volume: int = 20
    model_number: str
    serial_number: str
    projector_id: bytes = b'\x00\x00'
    has_lamp: bool = True
    lamp_usage_seconds: int
    lamp_good_for_seconds: int
    fault_bytes: bytearray
    """The get_errors bitfield (9 bytes)."""

    # Scripting
    power_on_sequence: List[PowerState]
    """States reported by successive get_status queries after power on from standby."""
    power_state_script: Deque[PowerState]
    forced_errors: Dict[str, Tuple[int, int]]
    """Command name -> error code to reply with instead of executing the command."""
    silent_commands: Set[str]
    """Commands that are never answered."""
    garbage_replies: Dict[str, bytes]
    """Command name -> raw bytes sent instead of a reply."""
    disconnect_commands: Set[str]
    """Commands on which the connection is closed without a reply."""
    received_commands: List[str]
    """Names of all commands received, in order."""

    def __init__(
            self,
            bind_addr: Optional[str]=None,
            port: int=0,
            power_state: PowerState=PowerState.STANDBY_SLEEP,
            input: Input=Input.HDMI1,
            model_number: str="NP-EMULATOR",
            serial_number: str="0000000001",
            power_on_sequence: Optional[Iterable[PowerState]]=None,
          ):
        self.bind_addr = '127.0.0.1' if bind_addr is None else bind_addr
        self.port = port
        self.sessions = {}
        self.requests = asyncio.Queue()
        self.power_state = power_state
        self.input_state = _input_to_state(input)
        self.model_number = model_number
        self.serial_number = serial_number
        self.lamp_usage_seconds = 1234 * 3600
        self.lamp_good_for_seconds = 4000 * 3600
        self.fault_bytes = bytearray(FAULT_BITFIELD_LENGTH)
        self.power_on_sequence = [PowerState.WARMING, PowerState.ON] if power_on_sequence is None else list(power_on_sequence)
        self.power_state_script = deque()
        self.forced_errors = {}
        self.silent_commands = set()
        self.garbage_replies = {}
        self.disconnect_commands = set()
        self.received_commands = []

    # ----- scripting helpers -----

    def script_power_states(self, states: Iterable[PowerState]) -> None:
        """Reports states one per get_status query; the last one sticks."""
        self.power_state_script = deque(states)

    def set_fault(self, byte_index: int, bit_mask: int) -> None:
        self.fault_bytes[byte_index] |= bit_mask

    @property
    def num_sessions(self) -> int:
        return len(self.sessions)

    # ----- session plumbing -----

    def alloc_session_id(self, session: NecProjectorEmulatorSession) -> int:
        result = self.next_session_id
        self.next_session_id += 1
        self.sessions[result] = session
        return result

    def free_session_id(self, session_id: int) -> None:
        self.sessions.pop(session_id, None)

    def on_command_received(self, session: NecProjectorEmulatorSession, raw_data: bytes) -> None:
        """Called when a complete command is received from a session."""
        self.requests.put_nowait((session, raw_data))

    def on_unrecognized_data(self, session: NecProjectorEmulatorSession, raw_data: bytes) -> None:
        logger.warning(f"{session}: Closing session after unrecognized data: {raw_data.hex(' ')}")
        session.close()

    # ----- command handling -----

    def _advance_power_state(self) -> None:
        if len(self.power_state_script) > 0:
            self.power_state = self.power_state_script.popleft()

    def _status_reply(self) -> NecResponse:
        self._advance_power_state()
        data = bytes([
            self.power_state.value,
            0x00,
            self.input_state[0],
            self.input_state[1],
            0x00,
            0x01 if self.video_muted else 0x00,
            0x01 if self.audio_muted else 0x00,
          ]) + bytes(8)
        return create_success_response("get_status", data, self.projector_id)

    async def handle_command(
            self,
            session: NecProjectorEmulatorSession,
            command: NecCommand
          ) -> EmulatorReply:
        """Handle a single command, and return a reply.

        If an NecResponse or bytes is returned, it is sent as-is.
        If None is returned, nothing is sent.
        """
        name = command.name
        if name in self.silent_commands:
            logger.debug(f"{session}: Not replying to {name}")
            return None
        if name in self.garbage_replies:
            return self.garbage_replies[name]
        if name in self.forced_errors:
            return create_failure_response(name, self.forced_errors[name], self.projector_id)

        operable = self.power_state.is_operable

        def ok(data: bytes=b'') -> NecResponse:
            return create_success_response(name, data, self.projector_id)

        def fail(error_code: Tuple[int, int]) -> NecResponse:
            return create_failure_response(name, error_code, self.projector_id)

        if name == "power_on":
            if self.power_state.is_standby:
                self.power_state_script = deque(self.power_on_sequence)
            return ok()
        if name == "power_off":
            self.power_state_script.clear()
            self.power_state = PowerState.STANDBY_SLEEP
            return ok()
        if name == "get_status":
            return self._status_reply()
        if name == "select_input":
            if not operable:
                return fail(POWER_IS_OFF_ERROR)
            try:
                input = Input(command.payload[0])
            except ValueError:
                return fail(INVALID_INPUT_ERROR)
            self.input_state = _input_to_state(input)
            return ok(b'\x00')
        if name in ("video_mute_on", "video_mute_off"):
            if not operable:
                return fail(POWER_IS_OFF_ERROR)
            self.video_muted = name == "video_mute_on"
            return ok()
        if name in ("audio_mute_on", "audio_mute_off"):
            if not operable:
                return fail(POWER_IS_OFF_ERROR)
            self.audio_muted = name == "audio_mute_on"
            return ok()
        if name == "volume_adjust":
            if not operable:
                return fail(POWER_IS_OFF_ERROR)
            mode = command.payload[0]
            value = int.from_bytes(command.payload[1:3], 'little', signed=True)
            self.volume = max(0, min(63, value if mode == 0x00 else self.volume + value))
            return ok(b'\x00\x00')
        if name == "get_lamp_info":
            if not self.has_lamp:
                return fail(NOT_SUPPORTED_ERROR)
            lamp, request = command.payload[0], command.payload[1]
            if lamp != 0x00:
                return fail(INVALID_VALUE_ERROR)
            if request == LampInfo.USAGE_TIME_SECONDS:
                value = self.lamp_usage_seconds
            elif request == LampInfo.GOOD_FOR_SECONDS:
                value = self.lamp_good_for_seconds
            elif request == LampInfo.REMAINING_SECONDS:
                value = max(0, self.lamp_good_for_seconds - self.lamp_usage_seconds)
            elif request == LampInfo.REMAINING_PERCENT:
                value = 100 - (self.lamp_usage_seconds * 100) // max(1, self.lamp_good_for_seconds)
            else:
                return fail(INVALID_VALUE_ERROR)
            return ok(bytes([lamp, request]) + value.to_bytes(4, 'little', signed=True))
        if name == "get_errors":
            return ok(bytes(self.fault_bytes) + bytes(3))
        if name == "get_model_number":
            return ok(self.model_number.encode('utf-8')[:MODEL_NUMBER_LENGTH].ljust(MODEL_NUMBER_LENGTH, b'\0'))
        if name == "get_serial_number":
            return ok(self.serial_number.encode('utf-8')[:SERIAL_NUMBER_LENGTH].ljust(SERIAL_NUMBER_LENGTH, b'\0'))
        if name == "get_info":
            return ok(self.model_number.encode('utf-8')[:49].ljust(98, b'\0'))

        raise NecProjectorError(f"Unhandled command {command}")

    async def handle_request(
            self,
            session: NecProjectorEmulatorSession,
            raw_data: bytes
          ) -> None:
        """Handle a single command from a session, and write the reply, if any.

        If an exception is raised, the session is closed.
        """
        command = NecCommand(raw_data)
        logger.debug(f"{session}: Received command: {command}")
        self.received_commands.append(command.name)
        if command.name in self.disconnect_commands:
            logger.debug(f"{session}: Dropping connection on {command.name}")
            session.close()
            return
        reply = await self.handle_command(session, command)
        if reply is None:
            return
        raw_reply = reply.raw_data if isinstance(reply, NecResponse) else reply
        session.write(raw_reply)

    async def handle_requests(self) -> None:
        """Handle requests from sessions."""
        while True:
            session_and_data = await self.requests.get()
            try:
                if session_and_data is None:
                    logger.debug("Emulator handler: Received EOF; exiting")
                    break
                session, raw_data = session_and_data
                try:
                    await self.handle_request(session, raw_data)
                except Exception as e:
                    logger.exception(f"{session}: Handler task: Exception while handling request; killing session: {e}")
                    session.close()
            finally:
                self.requests.task_done()

    # ----- lifecycle -----

    async def run(self) -> None:
        """Runs the Emulator until it is closed."""
        async with self:
            await self.wait_closed()

    async def start(self) -> None:
        loop = asyncio.get_running_loop()
        self.final_result = loop.create_future()
        try:
            self.handler_task = asyncio.create_task(self.handle_requests())
            self.server = await loop.create_server(
                lambda: NecProjectorEmulatorSession(self),
                host=self.bind_addr,
                port=self.port)
            # port 0 binds an ephemeral port
            self.port = self.server.sockets[0].getsockname()[1]
            logger.debug(f"Emulator: Listening on {self.bind_addr}:{self.port}")
            await self.server.start_serving()
        except BaseException as e:
            self.set_final_result(e)
            try:
                await self.wait_closed()
            except BaseException:
                logger.debug("Emulator: Exception while cleaning up after failed start", exc_info=True)
            raise

    def close(self, exc: Optional[BaseException]=None) -> None:
        """Stops the Emulator."""
        self.set_final_result(exc)

    async def wait_closed(self) -> None:
        """Waits for the emulator to be fully closed. Does not initiate shutdown."""
        assert self.final_result is not None
        try:
            await self.final_result
        finally:
            try:
                if self.server is not None:
                    try:
                        for session in list(self.sessions.values()):
                            session.close()
                        self.server.close()
                    finally:
                        await self.server.wait_closed()
            finally:
                self.server = None
                if self.handler_task is not None:
                    try:
                        await self.handler_task
                    finally:
                        self.handler_task = None

    def set_final_result(self, exc: Optional[BaseException]=None) -> None:
        if self.final_result is not None and not self.final_result.done():
            if exc is None:
                logger.debug(f"Emulator: Setting final result to success")
                self.final_result.set_result(None)
            else:
                logger.debug(f"Emulator: Setting final exception: {exc}")
                self.final_result.set_exception(exc)
            self.requests.put_nowait(None)
            if self.server is not None:
                self.server.close()

    async def __aenter__(self) -> NecProjectorEmulator:
        await self.start()
        return self

    async def __aexit__(self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> None:
        self.set_final_result(exc)
        try:
            # ensure that final_result has been awaited
            await self.wait_closed()
        except Exception:
            logger.debug("Emulator: Exception while closing", exc_info=True)

    def __str__(self) -> str:
        return f"NecProjectorEmulator({self.bind_addr}:{self.port})"

    def __repr__(self) -> str:
        return str(self)
