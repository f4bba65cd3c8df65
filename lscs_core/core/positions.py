"""
Position hierarchy for the organization.

Higher level means more authority. Unknown or missing positions rank 0 and
never satisfy a minimum-level check.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


class Position(str, Enum):
    PRES = "PRES"
    EVP = "EVP"
    VP = "VP"
    AVP = "AVP"
    CT = "CT"
    JO = "JO"
    MEM = "MEM"


POSITION_LEVELS: Mapping[str, int] = MappingProxyType({
    Position.PRES.value: 7,
    Position.EVP.value: 6,
    Position.VP.value: 5,
    Position.AVP.value: 4,
    Position.CT.value: 3,
    Position.JO.value: 2,
    Position.MEM.value: 1,
})


def _key(position: Optional[str]) -> str:
    if isinstance(position, Position):
        return position.value
    return position or ""


def position_level(position: Optional[str]) -> int:
    return POSITION_LEVELS.get(_key(position), 0)


def is_higher_position(position1: Optional[str], position2: Optional[str]) -> bool:
    """True if position1 strictly outranks position2."""
    return position_level(position1) > position_level(position2)


def is_higher_or_equal_position(position1: Optional[str], position2: Optional[str]) -> bool:
    return position_level(position1) >= position_level(position2)
