# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import dataclasses as dc
from dataclasses import dataclass
from typing import List, Optional

from typing_extensions import Self

from ._builder import Buildable, Builder, Prop, builder_for
from .array import Array, DimElement, MaybeArray, Single, expand_all
from .enums import DataType, ReadAction, WriteAction
from .errors import BitRangeError, EmptyCollectionError
from .field import Field
from .properties import (
    RegisterProperties,
    RegisterPropertiesBuilderMixin,
    WriteConstraint,
    or_empty,
)
from .validation import (
    ValidateLevel,
    check_derived_name,
    check_dimable_name,
    check_unique_names,
)


@dataclass
class RegisterInfo(Buildable):
    """A register of a peripheral or cluster."""

    # Name of the register.
    name: str

    # Address offset of the register, relative to the enclosing peripheral or cluster.
    address_offset: int

    # Display name of the register.
    display_name: Optional[str] = None

    # Description of the register.
    description: Optional[str] = None

    # Group of registers that this register is an alternative of.
    alternate_group: Optional[str] = None

    # Name of a register occupying the same address as this register.
    alternate_register: Optional[str] = None

    # Name or path of the register this register is derived from.
    derived_from: Optional[str] = None

    # Size, access, protection and reset properties. Unset properties are inherited.
    properties: RegisterProperties = dc.field(default_factory=RegisterProperties)

    # C data type to use when accessing the register.
    data_type: Optional[DataType] = None

    # Side effect of writing the register.
    modified_write_values: Optional[WriteAction] = None

    # Constraint on the values that can be written to the register.
    write_constraint: Optional[WriteConstraint] = None

    # Side effect of reading the register.
    read_action: Optional[ReadAction] = None

    # Fields of the register. None if the register has no <fields> element.
    fields: Optional[List[Field]] = None

    # Comments preceding the element in the source document.
    comments: List[str] = dc.field(default_factory=list, compare=False)

    @property
    def dim_offset(self) -> int:
        return self.address_offset

    def with_dim(self, name: str, offset: int) -> Self:
        return dc.replace(self, name=name, address_offset=offset)

    def single(self) -> Register:
        return Single(self)

    def array(self, dim: DimElement) -> Register:
        return Array(self, dim)

    def get_field(self, name: str) -> Optional[Field]:
        """Look up a field by its declared name."""
        return next((f for f in self.fields or () if f.name == name), None)

    def validate(self, level: ValidateLevel) -> None:
        if level.is_disabled():
            return

        if level.is_strict():
            check_dimable_name(self.name, "name")
            if self.derived_from is not None:
                check_derived_name(self.derived_from, "derivedFrom")
            self.properties.validate(level)
            if self.write_constraint is not None:
                self.write_constraint.validate(level)

            if self.fields is not None:
                if not self.fields and self.derived_from is None:
                    raise EmptyCollectionError("field")
                check_unique_names((f.name for f in expand_all(self.fields)), "field")
                self._check_bit_ranges(self.properties.size)

    def _check_bit_ranges(self, size: Optional[int]) -> None:
        if size is None or self.fields is None:
            return
        for field in expand_all(self.fields):
            bit_range = field.info.bit_range
            if bit_range.msb >= size:
                raise BitRangeError(field.name, bit_range, size)

    def validate_all(
        self, level: ValidateLevel, inherited: Optional[RegisterProperties] = None
    ) -> None:
        """
        Validate the register and its fields.

        :param level: Validation level.
        :param inherited: Properties of the enclosing elements. At the strict level, field bit
            ranges are checked against the register size these resolve to.
        """
        for field in self.fields or ():
            field.validate_all(level)
        self.validate(level)
        if level.is_strict() and inherited is not None:
            self._check_bit_ranges(self.properties.inherit(inherited).size)


@builder_for(RegisterInfo)
class RegisterInfoBuilder(RegisterPropertiesBuilderMixin, Builder[RegisterInfo]):
    """Builder for RegisterInfo."""

    name: Prop[str] = Prop(required=True)
    address_offset: Prop[int] = Prop(required=True)
    display_name: Prop[Optional[str]] = Prop(empty_to_none=True)
    description: Prop[Optional[str]] = Prop(empty_to_none=True)
    alternate_group: Prop[Optional[str]] = Prop(empty_to_none=True)
    alternate_register: Prop[Optional[str]] = Prop(empty_to_none=True)
    derived_from: Prop[Optional[str]] = Prop(empty_to_none=True)
    properties: Prop[RegisterProperties] = Prop(converter=or_empty)
    data_type: Prop[Optional[DataType]] = Prop()
    modified_write_values: Prop[Optional[WriteAction]] = Prop()
    write_constraint: Prop[Optional[WriteConstraint]] = Prop()
    read_action: Prop[Optional[ReadAction]] = Prop()
    fields: Prop[Optional[List[Field]]] = Prop()
    comments: Prop[List[str]] = Prop()


# A single register or an array of registers at a fixed address stride.
Register = MaybeArray[RegisterInfo]
