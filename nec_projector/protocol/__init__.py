# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Low-level protocol definitions for NEC projectors.

Refer to NEC's "Projector Control Command Reference Manual" for the official
protocol documentation.
"""

from .constants import (
    WILDCARD,
    SUCCESS_NIBBLE,
    FAILURE_NIBBLE,
  )

from .checksum import (
    checksum,
    append_checksum,
  )

from .states import (
    PowerState,
    Input,
    INPUT_STATE_MAP,
    input_from_state,
    LampNumber,
    LampInfo,
  )

from .command_meta import (
    CommandMeta,
    get_all_commands,
    name_to_command_meta,
    bytes_to_command_meta,
  )

from .command import (
    NecCommand,
  )

from .response import (
    NecResponse,
    UNKNOWN_RESPONSE_NAME,
    response_templates,
    get_response_template,
    get_matching_response_name,
    is_success_response_for,
    create_success_response,
    create_failure_response,
  )

from .errors import (
    COMMAND_ERROR_MESSAGES,
    UNKNOWN_ERROR_MESSAGE,
    INTERNAL_FAULTS,
    lookup_command_error,
    command_error_for,
    command_error_from_response,
    decode_internal_faults,
  )
