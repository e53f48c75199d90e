# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import dataclasses as dc
from dataclasses import dataclass
from typing import Iterator, List, Optional

from ._builder import Buildable, Builder, Prop, builder_for
from .enumerated_value import EnumeratedValue
from .enums import EnumUsage
from .errors import DuplicateDefaultError, DuplicateValueError, EmptyCollectionError
from .validation import ValidateLevel, check_derived_name, check_name


@dataclass
class EnumeratedValues(Buildable):
    """Set of enumerated values that apply to a field."""

    # Name of the set, used to reference it from other sets.
    name: Optional[str] = None

    # Identifier of the enumeration in a generated header file.
    header_enum_name: Optional[str] = None

    # Which accesses the set applies to. None means the SVD default (read-write).
    usage: Optional[EnumUsage] = None

    # Name or path of the set this set is derived from.
    derived_from: Optional[str] = None

    # Values in the set.
    values: List[EnumeratedValue] = dc.field(default_factory=list)

    # Comments preceding the element in the source document.
    comments: List[str] = dc.field(default_factory=list, compare=False)

    @property
    def effective_usage(self) -> EnumUsage:
        return self.usage if self.usage is not None else EnumUsage.READ_WRITE

    @property
    def default_value(self) -> Optional[EnumeratedValue]:
        """The value marked as default, if any."""
        return next((v for v in self.values if v.default), None)

    def get(self, number: int) -> Optional[EnumeratedValue]:
        """
        Look up the enumerated value describing the given number.
        Explicit values take precedence over the default value.
        """
        for value in self.values:
            if value.matches(number):
                return value
        return self.default_value

    def __iter__(self) -> Iterator[EnumeratedValue]:
        return iter(self.values)

    def validate(self, level: ValidateLevel) -> None:
        if level.is_disabled():
            return

        if level.is_strict():
            if self.derived_from is None and not self.values:
                raise EmptyCollectionError("enumeratedValue")
            if self.name is not None:
                check_name(self.name, "name")
            if self.derived_from is not None:
                check_derived_name(self.derived_from, "derivedFrom")

            defaults = [v.name for v in self.values if v.default]
            if len(defaults) > 1:
                raise DuplicateDefaultError(defaults)

            explicit = [v for v in self.values if v.value is not None]
            for i, value in enumerate(explicit):
                for other in explicit[:i]:
                    if _overlaps(value, other):
                        raise DuplicateValueError(value.value)

    def validate_all(self, level: ValidateLevel) -> None:
        for value in self.values:
            value.validate(level)
        self.validate(level)

    def check_range(self, valid_range: range) -> None:
        """:raises OutOfRangeError: If any value in the set is outside the given range."""
        for value in self.values:
            value.check_range(valid_range)


def _overlaps(a: EnumeratedValue, b: EnumeratedValue) -> bool:
    """True if some number is matched by both values."""
    care = ~(a.dont_care_mask | b.dont_care_mask)
    return (a.value & care) == (b.value & care)


@builder_for(EnumeratedValues)
class EnumeratedValuesBuilder(Builder[EnumeratedValues]):
    """Builder for EnumeratedValues."""

    name: Prop[Optional[str]] = Prop(empty_to_none=True)
    header_enum_name: Prop[Optional[str]] = Prop(empty_to_none=True)
    usage: Prop[Optional[EnumUsage]] = Prop()
    derived_from: Prop[Optional[str]] = Prop(empty_to_none=True)
    values: Prop[List[EnumeratedValue]] = Prop()
    comments: Prop[List[str]] = Prop()
