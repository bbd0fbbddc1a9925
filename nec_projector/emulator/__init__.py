# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
NEC Projector emulator.

Provides a TCP/IP emulation of an NEC projector, for testing and demos.
"""

from .emulator_impl import NecProjectorEmulator
from .session import NecProjectorEmulatorSession
