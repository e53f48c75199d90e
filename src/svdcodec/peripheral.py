# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import dataclasses as dc
from dataclasses import dataclass
from typing import List, Optional

from typing_extensions import Self

from ._builder import Buildable, Builder, Prop, builder_for
from .array import Array, DimElement, MaybeArray, Single
from .cluster import RegisterCluster, check_children_names
from .enums import AddressBlockUsage, Protection
from .errors import EmptyCollectionError, OutOfRangeError
from .properties import RegisterProperties, RegisterPropertiesBuilderMixin, or_empty
from .validation import (
    ValidateLevel,
    check_derived_name,
    check_dimable_name,
    check_name,
    check_unique_names,
)


@dataclass
class AddressBlock(Buildable):
    """Address range mapped to a peripheral."""

    # Start address of the address block, relative to the peripheral base address.
    offset: int

    # Number of address units covered by the address block.
    size: int

    # Address block usage.
    usage: AddressBlockUsage

    # Protection level for the address block.
    protection: Optional[Protection] = None

    def validate(self, level: ValidateLevel) -> None:
        if level.is_strict() and self.size < 1:
            raise OutOfRangeError(self.size, range(1, 1 << 32))


@builder_for(AddressBlock)
class AddressBlockBuilder(Builder[AddressBlock]):
    """Builder for AddressBlock."""

    offset: Prop[int] = Prop(required=True)
    size: Prop[int] = Prop(required=True)
    usage: Prop[AddressBlockUsage] = Prop(required=True)
    protection: Prop[Optional[Protection]] = Prop()


@dataclass
class Interrupt(Buildable):
    """Peripheral interrupt description."""

    # Name of the interrupt.
    name: str

    # Interrupt number.
    value: int

    # Description of the interrupt.
    description: Optional[str] = None

    def validate(self, level: ValidateLevel) -> None:
        if level.is_strict():
            check_name(self.name, "name")
            if self.value < 0:
                raise OutOfRangeError(self.value, range(0, 1 << 32))


@builder_for(Interrupt)
class InterruptBuilder(Builder[Interrupt]):
    """Builder for Interrupt."""

    name: Prop[str] = Prop(required=True)
    value: Prop[int] = Prop(required=True)
    description: Prop[Optional[str]] = Prop(empty_to_none=True)


@dataclass
class PeripheralInfo(Buildable):
    """A peripheral of the device, mapped at a base address."""

    # Name of the peripheral.
    name: str

    # Base address of the peripheral.
    base_address: int

    # Display name of the peripheral.
    display_name: Optional[str] = None

    # Version of the peripheral.
    version: Optional[str] = None

    # Description of the peripheral.
    description: Optional[str] = None

    # Name of a peripheral occupying the same address range as this peripheral.
    alternate_peripheral: Optional[str] = None

    # Name of the group that the peripheral belongs to.
    group_name: Optional[str] = None

    # Prefix to add to the names of the peripheral registers in generated headers.
    prepend_to_name: Optional[str] = None

    # Suffix to add to the names of the peripheral registers in generated headers.
    append_to_name: Optional[str] = None

    # Name of the C struct used to represent the peripheral.
    header_struct_name: Optional[str] = None

    # C expression that disables the peripheral when true.
    disable_condition: Optional[str] = None

    # Register properties inherited by the registers in the peripheral.
    properties: RegisterProperties = dc.field(default_factory=RegisterProperties)

    # Address ranges mapped to the peripheral. None if there is no <addressBlock>.
    address_blocks: Optional[List[AddressBlock]] = None

    # Interrupts of the peripheral.
    interrupts: List[Interrupt] = dc.field(default_factory=list)

    # Registers and clusters. None if the peripheral has no <registers> element.
    registers: Optional[List[RegisterCluster]] = None

    # Name of the peripheral this peripheral is derived from.
    derived_from: Optional[str] = None

    # Comments preceding the element in the source document.
    comments: List[str] = dc.field(default_factory=list, compare=False)

    @property
    def dim_offset(self) -> int:
        return self.base_address

    def with_dim(self, name: str, offset: int) -> Self:
        return dc.replace(self, name=name, base_address=offset)

    def single(self) -> Peripheral:
        return Single(self)

    def array(self, dim: DimElement) -> Peripheral:
        return Array(self, dim)

    def get_register(self, name: str) -> Optional[RegisterCluster]:
        """Look up a register or cluster by its declared name."""
        return next((r for r in self.registers or () if r.name == name), None)

    def validate(self, level: ValidateLevel) -> None:
        if level.is_disabled():
            return

        if level.is_strict():
            check_dimable_name(self.name, "name")
            if self.derived_from is not None:
                check_derived_name(self.derived_from, "derivedFrom")
            self.properties.validate(level)
            check_unique_names((i.name for i in self.interrupts), "interrupt")

            if self.registers is not None:
                if not self.registers and self.derived_from is None:
                    raise EmptyCollectionError("register")
                check_children_names(self.registers)

    def validate_all(
        self, level: ValidateLevel, inherited: Optional[RegisterProperties] = None
    ) -> None:
        properties = self.properties.inherit(inherited or RegisterProperties())
        for block in self.address_blocks or ():
            block.validate(level)
        for interrupt in self.interrupts:
            interrupt.validate(level)
        for child in self.registers or ():
            child.validate_all(level, properties)
        self.validate(level)


@builder_for(PeripheralInfo)
class PeripheralInfoBuilder(RegisterPropertiesBuilderMixin, Builder[PeripheralInfo]):
    """Builder for PeripheralInfo."""

    name: Prop[str] = Prop(required=True)
    base_address: Prop[int] = Prop(required=True)
    display_name: Prop[Optional[str]] = Prop(empty_to_none=True)
    version: Prop[Optional[str]] = Prop(empty_to_none=True)
    description: Prop[Optional[str]] = Prop(empty_to_none=True)
    alternate_peripheral: Prop[Optional[str]] = Prop(empty_to_none=True)
    group_name: Prop[Optional[str]] = Prop(empty_to_none=True)
    prepend_to_name: Prop[Optional[str]] = Prop(empty_to_none=True)
    append_to_name: Prop[Optional[str]] = Prop(empty_to_none=True)
    header_struct_name: Prop[Optional[str]] = Prop(empty_to_none=True)
    disable_condition: Prop[Optional[str]] = Prop(empty_to_none=True)
    properties: Prop[RegisterProperties] = Prop(converter=or_empty)
    address_blocks: Prop[Optional[List[AddressBlock]]] = Prop()
    interrupts: Prop[List[Interrupt]] = Prop()
    registers: Prop[Optional[List[RegisterCluster]]] = Prop()
    derived_from: Prop[Optional[str]] = Prop(empty_to_none=True)
    comments: Prop[List[str]] = Prop()


# A single peripheral or an array of peripherals at a fixed address stride.
Peripheral = MaybeArray[PeripheralInfo]
