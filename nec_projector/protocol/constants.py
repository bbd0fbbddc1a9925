# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Wire-level constants for the NEC projector control protocol.

Every command and reply is a flat, fixed-length byte array. The high nibble of
the first reply byte tells whether the command succeeded; the byte offsets below
locate the fields this package reads out of specific replies.
"""

WILDCARD = 0x2A
"""Byte value ('*') that matches any byte when comparing a reply against a template."""

SUCCESS_NIBBLE = 0x2
"""High nibble of the first byte of every success reply."""

FAILURE_NIBBLE = 0xA
"""High nibble of the first byte of every failure reply."""

ERROR_CODE_OFFSET = 5
"""Failure replies carry (error byte 1, error byte 2) at this offset."""

# get_status success reply
STATUS_POWER_STATE_OFFSET = 6
STATUS_INPUT_OFFSET = 8
"""Two bytes: the reported input tuple."""
STATUS_VIDEO_MUTE_OFFSET = 11
STATUS_AUDIO_MUTE_OFFSET = 12
MUTED = 0x01

# get_lamp_info success reply
LAMP_NUMBER_OFFSET = 5
LAMP_REQUEST_OFFSET = 6
LAMP_VALUE_OFFSET = 7
"""Four bytes, little-endian 32-bit value (seconds or percent)."""

# get_model_number success reply
MODEL_NUMBER_OFFSET = 5
MODEL_NUMBER_LENGTH = 32

# get_serial_number success reply
SERIAL_NUMBER_OFFSET = 7
SERIAL_NUMBER_LENGTH = 16

# get_errors success reply
FAULT_BITFIELD_OFFSET = 5
FAULT_BITFIELD_LENGTH = 9
