# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Named debug commands.

A diagnostic front end (the command-line tool, a service console) runs device
operations by name from simple call strings such as "SelectInput(HDMI1)" or
"DisplayMute(true)". Each device registers exactly the operations it wants to
expose in a DebugCommandTable; nothing is discovered by introspection.
"""

from __future__ import annotations

import inspect
import re

from .internal_types import *
from .exceptions import NecProjectorError
from .pkg_logging import logger

DebugHandler = Callable[..., Awaitable[Any]]

LIST_COMMANDS_NAME = "GetMethods"
"""Built-in command that lists the registered command names."""

_CALL_RE = re.compile(r'^\s*([A-Za-z_][A-Za-z0-9_.]*)\s*(?:\((.*)\))?\s*$')
_ARG_SPLIT_RE = re.compile(r'\s*,\s*')
_INT_RE = re.compile(r'^[+-]?(?:0[xX][0-9a-fA-F]+|\d+)$')

class DebugCommand(NamedTuple):
    name: str
    handler: DebugHandler
    description: Optional[str]

def _normalize_name(name: str) -> str:
    return name.replace('_', '').lower()

def parse_argument(text: str) -> Any:
    """Converts a single literal argument: true, false, null, an int (decimal or 0x hex),
       a float, or otherwise a string with any quote characters removed."""
    if text == 'true':
        return True
    if text == 'false':
        return False
    if text == 'null':
        return None
    if _INT_RE.match(text):
        return int(text, 0) if text.lstrip('+-').lower().startswith('0x') else int(text)
    try:
        return float(text)
    except ValueError:
        pass
    return text.replace('"', '').replace("'", '').replace('`', '')

def parse_call_string(call_string: str) -> Tuple[str, List[Any]]:
    """Parses "Name(arg, arg, ...)" (or a bare "Name") into a name and a list of
       literal arguments. Nested calls and commas inside arguments are not supported."""
    match = _CALL_RE.match(call_string)
    if match is None:
        raise NecProjectorError(f"Invalid debug command call string: '{call_string}'")
    name = match.group(1)
    arg_text = (match.group(2) or '').strip()
    args: List[Any] = []
    if arg_text != '':
        args = [ parse_argument(arg) for arg in _ARG_SPLIT_RE.split(arg_text) ]
    return name, args

class DebugCommandTable:
    """Explicit mapping of debug command names to async handlers. Name lookup ignores
       case and underscores, so "SelectInput", "selectinput" and "select_input" are
       the same command."""

    _commands: Dict[str, DebugCommand]

    def __init__(self) -> None:
        self._commands = {}

    def add(self, name: str, handler: DebugHandler, description: Optional[str]=None) -> None:
        key = _normalize_name(name)
        if key in self._commands or key == _normalize_name(LIST_COMMANDS_NAME):
            raise NecProjectorError(f"Duplicate debug command name: '{name}'")
        self._commands[key] = DebugCommand(name, handler, description)

    def get(self, name: str) -> DebugCommand:
        result = self._commands.get(_normalize_name(name))
        if result is None:
            raise NecProjectorError(f"Unknown debug command: '{name}'")
        return result

    def get_methods(self) -> List[str]:
        """Returns the registered command names, in registration order."""
        return [ command.name for command in self._commands.values() ]

    def describe(self) -> str:
        return "\n".join(
            command.name if command.description is None else f"{command.name}: {command.description}"
            for command in self._commands.values()
          )

    async def invoke(self, name: str, args: Sequence[Any]=()) -> Any:
        if _normalize_name(name) == _normalize_name(LIST_COMMANDS_NAME):
            return "\n".join(self.get_methods())
        command = self.get(name)
        logger.debug(f"Running debug command {command.name}({', '.join(repr(arg) for arg in args)})")
        try:
            inspect.signature(command.handler).bind(*args)
        except TypeError as e:
            raise NecProjectorError(f"Invalid arguments for debug command {command.name}: {e}") from e
        return await command.handler(*args)

    async def run(self, call_string: str) -> Any:
        """Parses and runs a call string such as "SelectInput(HDMI1)"."""
        name, args = parse_call_string(call_string)
        return await self.invoke(name, args)

    def __contains__(self, name: str) -> bool:
        return _normalize_name(name) in self._commands

    def __len__(self) -> int:
        return len(self._commands)
