# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Conversion of the textual values found in SVD documents to Python values, and back.
"""

from __future__ import annotations

import enum
import re
from typing import Optional, Tuple, Type, TypeVar

from typing_extensions import Self

from .errors import InvalidBooleanValueError, InvalidNumberError, UnknownEnumValueError

_DECIMAL = re.compile(r"[0-9]+")
_HEXADECIMAL = re.compile(r"0[xX](?P<digits>[0-9a-fA-F]+)")
_BINARY = re.compile(r"(?:#|0[bB])(?P<digits>[01]+)")
_BINARY_PATTERN = re.compile(r"(?:#|0[bB])(?P<digits>[01xX]+)")

_TRUE_VALUES = ("true", "1", "enabled")
_FALSE_VALUES = ("false", "0", "disabled")


class CaseInsensitiveStrEnum(enum.Enum):
    """String enum class that can be constructed from a case-insensitive string."""

    @classmethod
    def _missing_(cls, value: object) -> Optional[Self]:
        """Handler for string values with mismatched case."""
        if not isinstance(value, str):
            return None

        value_lower = value.lower()
        for member in cls:
            if member.value.lower() == value_lower:
                return member

        return None

    def __str__(self) -> str:
        return self.value


E = TypeVar("E", bound=CaseInsensitiveStrEnum)


def to_int(number: str) -> int:
    """
    Convert a string representation of an integer following the SVD format to its corresponding
    integer representation.
    Decimal, 0x/0X-prefixed hexadecimal and #/0b-prefixed binary numbers are accepted.

    :param number: String representation of the integer.
    :raises InvalidNumberError: If the string is not a valid SVD integer.

    :return: Decoded integer.
    """
    text = number.strip()

    if _DECIMAL.fullmatch(text):
        return int(text, base=10)
    if (match := _HEXADECIMAL.fullmatch(text)) is not None:
        return int(match["digits"], base=16)
    if (match := _BINARY.fullmatch(text)) is not None:
        return int(match["digits"], base=2)

    raise InvalidNumberError(number)


def to_int_pattern(number: str) -> Tuple[int, int]:
    """
    Convert an SVD integer that may contain "don't care" bits to the inclusive range it denotes.
    Each x/X digit in a binary pattern is substituted with 0 for the first result and with 1 for
    the second result. Numbers without don't care bits return the same value twice.

    :param number: String representation of the integer or bit pattern.
    :raises InvalidNumberError: If the string is neither a valid SVD integer nor a bit pattern.

    :return: Tuple of the lowest and highest value matched by the pattern.
    """
    match = _BINARY_PATTERN.fullmatch(number.strip())
    if match is None or not any(c in "xX" for c in match["digits"]):
        value = to_int(number)
        return value, value

    digits = match["digits"]
    low = int(re.sub("[xX]", "0", digits), base=2)
    high = int(re.sub("[xX]", "1", digits), base=2)
    return low, high


def to_bool(value: str) -> bool:
    """
    Convert a string representation of a boolean following the SVD format to its corresponding
    boolean representation.

    :param value: String representation of the boolean.
    :raises InvalidBooleanValueError: If the string is not a recognized boolean spelling.

    :return: Decoded boolean.
    """
    value_lower = value.strip().lower()
    if value_lower in _TRUE_VALUES:
        return True
    if value_lower in _FALSE_VALUES:
        return False
    raise InvalidBooleanValueError(value)


def to_enum(enum_cls: Type[E], value: str) -> E:
    """Convert a string to a member of the given SVD enum class."""
    try:
        return enum_cls(value.strip())
    except ValueError as e:
        raise UnknownEnumValueError(enum_cls.__name__, value) from e


def format_hex(value: int) -> str:
    """Format an address-like integer."""
    return f"0x{value:X}"


def format_dec(value: int) -> str:
    return str(value)


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def format_pattern(value: int, dont_care_mask: int) -> str:
    """
    Format an integer with don't care bits as an SVD binary pattern, for example '#1x0'.
    Integers without don't care bits are formatted as decimal.
    """
    if not dont_care_mask:
        return format_dec(value)

    width = max((value | dont_care_mask).bit_length(), 1)
    digits = []
    for bit in reversed(range(width)):
        if dont_care_mask & (1 << bit):
            digits.append("x")
        else:
            digits.append("1" if value & (1 << bit) else "0")
    return "#" + "".join(digits)
