# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import dataclasses as dc
from dataclasses import dataclass
from typing import List, Optional

from ._builder import Buildable, Builder, Prop, builder_for
from .errors import AbsentValueError, OutOfRangeError, ValueAndDefaultError
from .validation import ValidateLevel, check_name


@dataclass
class EnumeratedValue(Buildable):
    """A single named value of a field."""

    # Name of the value, displayed instead of the number.
    name: str

    # Extended description of the value.
    description: Optional[str] = None

    # Numeric value. If the value was given as a bit pattern, this is the value with every
    # don't care bit set to zero.
    value: Optional[int] = None

    # True if this entry names every value that is not listed explicitly.
    is_default: Optional[bool] = None

    # Bits of the value that are "don't care" (written as 'x' in a binary pattern).
    dont_care_mask: int = 0

    # Comments preceding the element in the source document.
    comments: List[str] = dc.field(default_factory=list, compare=False)

    @property
    def default(self) -> bool:
        """True if the value is marked as the default."""
        return self.is_default is True

    @property
    def max_value(self) -> Optional[int]:
        """Highest number matched by the value, taking don't care bits into account."""
        if self.value is None:
            return None
        return self.value | self.dont_care_mask

    def matches(self, number: int) -> bool:
        """Return True if the given number is described by this (non-default) value."""
        if self.value is None:
            return False
        return (number & ~self.dont_care_mask) == (self.value & ~self.dont_care_mask)

    def validate(self, level: ValidateLevel) -> None:
        if level.is_disabled():
            return

        if level.is_strict():
            check_name(self.name, "name")

            if self.value is None and not self.default:
                raise AbsentValueError()
            if self.value is not None and self.default:
                raise ValueAndDefaultError(self.value)
            if self.value is not None and self.value < 0:
                raise OutOfRangeError(self.value, range(0, self.value + 1))

    def check_range(self, valid_range: range) -> None:
        """
        :param valid_range: Range of numbers the value must lie within.
        :raises OutOfRangeError: If the value (or any number it matches) is outside the range.
        """
        if self.value is None:
            return
        for number in (self.value, self.max_value):
            if number not in valid_range:
                raise OutOfRangeError(number, valid_range)


@builder_for(EnumeratedValue)
class EnumeratedValueBuilder(Builder[EnumeratedValue]):
    """Builder for EnumeratedValue."""

    name: Prop[str] = Prop(required=True)
    description: Prop[Optional[str]] = Prop(empty_to_none=True)
    value: Prop[Optional[int]] = Prop()
    is_default: Prop[Optional[bool]] = Prop()
    dont_care_mask: Prop[int] = Prop()
    comments: Prop[List[str]] = Prop()
