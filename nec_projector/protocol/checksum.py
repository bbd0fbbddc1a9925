# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

from ..internal_types import *

def checksum(data: Iterable[int]) -> int:
    """Returns the single-byte additive checksum of data (unsigned sum mod 256)."""
    return sum(data) & 0xFF

def append_checksum(data: bytes) -> bytes:
    """Returns data with its checksum appended as a final byte."""
    return data + bytes([checksum(data)])
