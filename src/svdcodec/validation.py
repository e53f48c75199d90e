# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Validation levels and the checks shared by several entity types.
"""

from __future__ import annotations

import enum
import re
from typing import Iterable

from .errors import DuplicateNameError, InvalidNameError

_NAME = re.compile(r"[_A-Za-z0-9]*")
_IDENTIFIER = r"[_A-Za-z][_A-Za-z0-9]*"
_DIMABLE_NAME = re.compile(
    rf"(%s)|(%s){_IDENTIFIER}|{_IDENTIFIER}(\[%s\])?|{_IDENTIFIER}(%s)?[_A-Za-z0-9]*"
)


@enum.unique
class ValidateLevel(enum.Enum):
    """Strictness used when building and validating entities."""

    # No checks. Any structurally buildable entity is accepted.
    DISABLED = "disabled"
    # Only checks that required values are present.
    WEAK = "weak"
    # All checks, including name formats, numeric ranges and mutual exclusion rules.
    STRICT = "strict"

    def is_disabled(self) -> bool:
        return self is ValidateLevel.DISABLED

    def is_strict(self) -> bool:
        return self is ValidateLevel.STRICT


def check_name(name: str, tag: str) -> None:
    """Check that a name only contains characters permitted in SVD names."""
    if _NAME.fullmatch(name) is None:
        raise InvalidNameError(name, tag)


def check_dimable_name(name: str, tag: str) -> None:
    """Check a name that may contain an array placeholder ('%s' or '[%s]')."""
    if _DIMABLE_NAME.fullmatch(name) is None:
        raise InvalidNameError(name, tag)


def check_derived_name(name: str, tag: str) -> None:
    """Check a (possibly dot-separated) reference to another element."""
    for part in name.split("."):
        check_dimable_name(part, tag)


def check_unique_names(names: Iterable[str], tag: str) -> None:
    """:raises DuplicateNameError: If a name occurs more than once."""
    seen = set()
    for name in names:
        if name in seen:
            raise DuplicateNameError(name, tag)
        seen.add(name)
