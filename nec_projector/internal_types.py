# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Type aliases and typing re-exports used throughout the nec_projector package"""

from __future__ import annotations

from typing import *
from typing import Self
from types import TracebackType

JsonableScalar = Union[str, int, float, bool, None]
Jsonable = Union[JsonableScalar, List['Jsonable'], Dict[str, 'Jsonable']]
JsonableDict = Dict[str, Jsonable]
