# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
The Device root entity and the operations that apply to a whole device tree.
"""

from __future__ import annotations

import dataclasses as dc
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ._builder import Buildable, Builder, Prop, builder_for
from .array import compact, expand, expand_all
from .cluster import ClusterInfo, RegisterCluster
from .enums import CpuName, Endian
from .errors import EmptyCollectionError, OutOfRangeError
from .field import Field
from .peripheral import Peripheral
from .properties import RegisterProperties, RegisterPropertiesBuilderMixin, or_empty
from .register import RegisterInfo
from .validation import ValidateLevel, check_name, check_unique_names

# Default value of the schemaVersion attribute.
SCHEMA_VERSION = "1.1"


@dataclass
class Cpu(Buildable):
    """Description of the device processor."""

    # CPU name.
    name: CpuName

    # CPU hardware revision with the format "rNpM".
    revision: str

    # Default endianness of the CPU.
    endian: Endian

    # True if the CPU has a memory protection unit (MPU).
    mpu_present: bool

    # True if the CPU has a floating point unit (FPU).
    fpu_present: bool

    # Bit width of interrupt priority levels in the NVIC.
    nvic_priority_bits: int

    # True if the CPU has a vendor-specific SysTick Timer.
    has_vendor_systick: bool

    # True if the FPU is double precision.
    fpu_double_precision: Optional[bool] = None

    # True if the CPU implements the SIMD DSP extensions.
    dsp_present: Optional[bool] = None

    # True if the CPU has an instruction cache.
    icache_present: Optional[bool] = None

    # True if the CPU has a data cache.
    dcache_present: Optional[bool] = None

    # True if the CPU has an instruction tightly coupled memory (ITCM).
    itcm_present: Optional[bool] = None

    # True if the CPU has a data tightly coupled memory (DTCM).
    dtcm_present: Optional[bool] = None

    # True if the CPU has a Vector Table Offset Register (VTOR).
    vtor_present: Optional[bool] = None

    # Maximum interrupt number in the CPU plus one.
    device_num_interrupts: Optional[int] = None

    # Number of supported Secure Attribution Unit (SAU) regions.
    sau_num_regions: Optional[int] = None

    def validate(self, level: ValidateLevel) -> None:
        if level.is_strict() and self.nvic_priority_bits not in range(0, 9):
            raise OutOfRangeError(self.nvic_priority_bits, range(0, 9))


@builder_for(Cpu)
class CpuBuilder(Builder[Cpu]):
    """Builder for Cpu."""

    name: Prop[CpuName] = Prop(required=True)
    revision: Prop[str] = Prop(required=True)
    endian: Prop[Endian] = Prop(required=True)
    mpu_present: Prop[bool] = Prop(required=True)
    fpu_present: Prop[bool] = Prop(required=True)
    nvic_priority_bits: Prop[int] = Prop(required=True)
    has_vendor_systick: Prop[bool] = Prop(required=True)
    fpu_double_precision: Prop[Optional[bool]] = Prop()
    dsp_present: Prop[Optional[bool]] = Prop()
    icache_present: Prop[Optional[bool]] = Prop()
    dcache_present: Prop[Optional[bool]] = Prop()
    itcm_present: Prop[Optional[bool]] = Prop()
    dtcm_present: Prop[Optional[bool]] = Prop()
    vtor_present: Prop[Optional[bool]] = Prop()
    device_num_interrupts: Prop[Optional[int]] = Prop()
    sau_num_regions: Prop[Optional[int]] = Prop()


@dataclass
class Device(Buildable):
    """Root of a device description."""

    # Name of the device.
    name: str

    # Version of the SVD schema the description conforms to.
    schema_version: str = SCHEMA_VERSION

    # Value of the xs:noNamespaceSchemaLocation attribute, if any.
    schema_location: Optional[str] = None

    # Device vendor name.
    vendor: Optional[str] = None

    # Device vendor name abbreviation.
    vendor_id: Optional[str] = None

    # Device series name.
    series: Optional[str] = None

    # Version of the device description.
    version: Optional[str] = None

    # Description of the device.
    description: Optional[str] = None

    # License text of the device description.
    license_text: Optional[str] = None

    # Description of the device processor.
    cpu: Optional[Cpu] = None

    # File name of the device specific system header, without extension.
    header_system_filename: Optional[str] = None

    # Prefix added to all type names in generated headers.
    header_definitions_prefix: Optional[str] = None

    # Number of data bits selected by each address.
    address_unit_bits: Optional[int] = None

    # Bit width of the maximum single data transfer supported by the bus.
    width: Optional[int] = None

    # Default register properties of the device.
    properties: RegisterProperties = dc.field(default_factory=RegisterProperties)

    # Peripherals of the device, in document order.
    peripherals: List[Peripheral] = dc.field(default_factory=list)

    # Comments preceding the element in the source document.
    comments: List[str] = dc.field(default_factory=list, compare=False)

    def get_peripheral(self, name: str) -> Optional[Peripheral]:
        """Look up a peripheral by its declared name."""
        return next((p for p in self.peripherals if p.name == name), None)

    def validate(self, level: ValidateLevel) -> None:
        if level.is_disabled():
            return

        if level.is_strict():
            check_name(self.name, "name")
            self.properties.validate(level)
            if not self.peripherals:
                raise EmptyCollectionError("peripheral")
            check_unique_names((p.name for p in expand_all(self.peripherals)), "peripheral")

    def validate_all(self, level: ValidateLevel) -> None:
        """Validate the device and every entity in it."""
        if self.cpu is not None:
            self.cpu.validate(level)
        for peripheral in self.peripherals:
            peripheral.validate_all(level, self.properties)
        self.validate(level)

    def expanded(self) -> Device:
        """
        Copy of the device where every array at every level is replaced by the single elements
        it describes. The device itself is not modified.
        """
        peripherals: List[Peripheral] = []
        for peripheral in self.peripherals:
            for single in expand(peripheral):
                info = single.info
                if info.registers is not None:
                    info = dc.replace(info, registers=_expand_children(info.registers))
                peripherals.append(dc.replace(single, info=info))
        return dc.replace(self, peripherals=peripherals)

    def compacted(self) -> Device:
        """
        Copy of the device where runs of uniformly spaced sibling elements at every level are
        replaced by array elements where possible. The device itself is not modified.
        """
        peripherals: List[Peripheral] = []
        for peripheral in self.peripherals:
            info = peripheral.info
            if info.registers is not None:
                info = dc.replace(info, registers=_compact_children(info.registers))
            peripherals.append(dc.replace(peripheral, info=info))
        return dc.replace(self, peripherals=compact(peripherals))


@builder_for(Device)
class DeviceBuilder(RegisterPropertiesBuilderMixin, Builder[Device]):
    """Builder for Device."""

    name: Prop[str] = Prop(required=True)
    schema_version: Prop[str] = Prop()
    schema_location: Prop[Optional[str]] = Prop(empty_to_none=True)
    vendor: Prop[Optional[str]] = Prop(empty_to_none=True)
    vendor_id: Prop[Optional[str]] = Prop(empty_to_none=True)
    series: Prop[Optional[str]] = Prop(empty_to_none=True)
    version: Prop[Optional[str]] = Prop(empty_to_none=True)
    description: Prop[Optional[str]] = Prop(empty_to_none=True)
    license_text: Prop[Optional[str]] = Prop(empty_to_none=True)
    cpu: Prop[Optional[Cpu]] = Prop()
    header_system_filename: Prop[Optional[str]] = Prop(empty_to_none=True)
    header_definitions_prefix: Prop[Optional[str]] = Prop(empty_to_none=True)
    address_unit_bits: Prop[Optional[int]] = Prop()
    width: Prop[Optional[int]] = Prop()
    properties: Prop[RegisterProperties] = Prop(converter=or_empty)
    peripherals: Prop[List[Peripheral]] = Prop()
    comments: Prop[List[str]] = Prop()


def _expand_children(children: Sequence[RegisterCluster]) -> List[RegisterCluster]:
    result: List[RegisterCluster] = []
    for child in children:
        for single in expand(child):
            result.append(dc.replace(single, info=_expand_contents(single.info)))
    return result


def _expand_contents(info: RegisterInfo | ClusterInfo) -> RegisterInfo | ClusterInfo:
    match info:
        case ClusterInfo():
            return dc.replace(info, children=_expand_children(info.children))
        case RegisterInfo(fields=fields) if fields is not None:
            return dc.replace(info, fields=_expand_fields(fields))
        case _:
            return info


def _expand_fields(fields: Sequence[Field]) -> List[Field]:
    return list(expand_all(fields))


def _compact_children(children: Sequence[RegisterCluster]) -> List[RegisterCluster]:
    # Contents are compacted first so that elements with compacted contents compare equal
    compacted_contents: List[RegisterCluster] = [
        dc.replace(child, info=_compact_contents(child.info)) for child in children
    ]
    return compact(compacted_contents)


def _compact_contents(info: RegisterInfo | ClusterInfo) -> RegisterInfo | ClusterInfo:
    match info:
        case ClusterInfo():
            return dc.replace(info, children=_compact_children(info.children))
        case RegisterInfo(fields=fields) if fields is not None:
            return dc.replace(info, fields=compact(fields))
        case _:
            return info

