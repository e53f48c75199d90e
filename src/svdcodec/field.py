# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import dataclasses as dc
import enum
from dataclasses import dataclass
from typing import List, Optional

from typing_extensions import Self

from ._builder import Buildable, Builder, Prop, builder_for
from .array import Array, DimElement, MaybeArray, Single
from .enumerated_values import EnumeratedValues
from .enums import Access, EnumUsage, ReadAction, WriteAction
from .errors import BitRangeError, EnumerationUsageError
from .primitives import to_int
from .properties import WriteConstraint
from .validation import ValidateLevel, check_derived_name, check_dimable_name


@enum.unique
class BitRangeType(enum.Enum):
    """Textual style a bit range is written in."""

    # <bitRange>[msb:lsb]</bitRange>
    BIT_RANGE = "bitRange"
    # <bitOffset> and <bitWidth>
    OFFSET_WIDTH = "offsetWidth"
    # <lsb> and <msb>
    MSB_LSB = "msbLsb"


@dataclass(frozen=True)
class BitRange:
    """Bit range of a field."""

    # Bit offset of the field.
    offset: int

    # Bit width of the field.
    width: int

    # Style the range was written in. Not part of the value.
    range_type: BitRangeType = dc.field(default=BitRangeType.OFFSET_WIDTH, compare=False)

    @property
    def lsb(self) -> int:
        return self.offset

    @property
    def msb(self) -> int:
        return self.offset + self.width - 1

    @property
    def mask(self) -> int:
        return ((1 << self.width) - 1) << self.offset

    @classmethod
    def from_lsb_msb(
        cls, lsb: int, msb: int, range_type: BitRangeType = BitRangeType.MSB_LSB
    ) -> BitRange:
        return cls(offset=lsb, width=msb - lsb + 1, range_type=range_type)

    @classmethod
    def from_pattern(cls, text: str) -> BitRange:
        """Parse a bit range given in the form "[msb:lsb]"."""
        text = text.strip()
        if not (text.startswith("[") and text.endswith("]")) or text.count(":") != 1:
            raise ValueError(f"Invalid bit range pattern '{text}'")
        msb_string, lsb_string = text[1:-1].split(":")
        return cls.from_lsb_msb(
            to_int(lsb_string), to_int(msb_string), range_type=BitRangeType.BIT_RANGE
        )

    def to_pattern(self) -> str:
        return f"[{self.msb}:{self.lsb}]"

    def __str__(self) -> str:
        return self.to_pattern()


@dataclass
class FieldInfo(Buildable):
    """A bit field of a register."""

    # Name of the field.
    name: str

    # Bit range of the field within the register.
    bit_range: BitRange

    # Description of the field.
    description: Optional[str] = None

    # Name or path of the field this field is derived from.
    derived_from: Optional[str] = None

    # Access rights of the field.
    access: Optional[Access] = None

    # Side effect of writing the field.
    modified_write_values: Optional[WriteAction] = None

    # Constraint on the values that can be written to the field.
    write_constraint: Optional[WriteConstraint] = None

    # Side effect of reading the field.
    read_action: Optional[ReadAction] = None

    # Enumerated value sets, at most one for reads and one for writes.
    enumerated_values: List[EnumeratedValues] = dc.field(default_factory=list)

    # Comments preceding the element in the source document.
    comments: List[str] = dc.field(default_factory=list, compare=False)

    @property
    def dim_offset(self) -> int:
        return self.bit_range.offset

    def with_dim(self, name: str, offset: int) -> Self:
        bit_range = dc.replace(self.bit_range, offset=offset)
        return dc.replace(self, name=name, bit_range=bit_range)

    def single(self) -> Field:
        return Single(self)

    def array(self, dim: DimElement) -> Field:
        return Array(self, dim)

    def enumeration_for(self, usage: EnumUsage) -> Optional[EnumeratedValues]:
        """The enumerated value set that applies to reads or writes, if any."""
        for enumeration in self.enumerated_values:
            if enumeration.effective_usage in (usage, EnumUsage.READ_WRITE):
                return enumeration
        return None

    def validate(self, level: ValidateLevel) -> None:
        if level.is_disabled():
            return

        if level.is_strict():
            check_dimable_name(self.name, "name")
            if self.derived_from is not None:
                check_derived_name(self.derived_from, "derivedFrom")
            if self.bit_range.width < 1 or self.bit_range.offset < 0:
                raise BitRangeError(self.name, self.bit_range)
            if self.write_constraint is not None:
                self.write_constraint.validate(level)

            self._check_enumerations()

    def _check_enumerations(self) -> None:
        if len(self.enumerated_values) > 2:
            raise EnumerationUsageError(
                f"field '{self.name}' has {len(self.enumerated_values)} enumerated value sets"
            )
        if len(self.enumerated_values) == 2:
            usages = {e.effective_usage for e in self.enumerated_values}
            if usages != {EnumUsage.READ, EnumUsage.WRITE}:
                raise EnumerationUsageError(
                    f"field '{self.name}' has two enumerated value sets that are not "
                    "one read and one write set"
                )

        valid_range = range(0, 1 << self.bit_range.width)
        for enumeration in self.enumerated_values:
            enumeration.check_range(valid_range)

    def validate_all(self, level: ValidateLevel) -> None:
        for enumeration in self.enumerated_values:
            enumeration.validate_all(level)
        self.validate(level)


@builder_for(FieldInfo)
class FieldInfoBuilder(Builder[FieldInfo]):
    """Builder for FieldInfo."""

    name: Prop[str] = Prop(required=True)
    bit_range: Prop[BitRange] = Prop(required=True)
    description: Prop[Optional[str]] = Prop(empty_to_none=True)
    derived_from: Prop[Optional[str]] = Prop(empty_to_none=True)
    access: Prop[Optional[Access]] = Prop()
    modified_write_values: Prop[Optional[WriteAction]] = Prop()
    write_constraint: Prop[Optional[WriteConstraint]] = Prop()
    read_action: Prop[Optional[ReadAction]] = Prop()
    enumerated_values: Prop[List[EnumeratedValues]] = Prop()
    comments: Prop[List[str]] = Prop()


# A single field or an array of fields at a fixed bit stride.
Field = MaybeArray[FieldInfo]
