# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Encoding of the entity model back into SVD XML.

This is the inverse of the parsing module. Numbers are written in a normalized form (hexadecimal
for addresses, offsets and masks, decimal for sizes and counts) so the encoded text may differ from
the document the entities were parsed from, but parsing the encoded output yields equal entities.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

import lxml.etree as ET

from .array import Array, DimArrayIndex, DimElement, Single, format_dim_index
from .cluster import ClusterInfo
from .device import Cpu, Device
from .enumerated_value import EnumeratedValue
from .enumerated_values import EnumeratedValues
from .field import BitRange, BitRangeType, FieldInfo
from .peripheral import AddressBlock, Interrupt, PeripheralInfo
from .primitives import format_bool, format_dec, format_hex, format_pattern
from .properties import RegisterProperties, WriteConstraint, WriteConstraintRange
from .register import RegisterInfo

XS_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"


@dataclass(frozen=True)
class EncodeOptions:
    """Options to configure the SVD encoding behavior."""

    # Replace runs of uniformly spaced sibling elements by array elements where possible.
    compact_arrays: bool = False


def encode(device: Device, options: EncodeOptions = EncodeOptions()) -> ET._Element:
    """
    Encode a device as a <device> element.

    :param device: Device to encode.
    :param options: Encoding options.
    :return: The root element of the encoded document.
    """
    if options.compact_arrays:
        device = device.compacted()
    return encode_element(device)


def to_string(device: Device, options: EncodeOptions = EncodeOptions()) -> str:
    """Encode a device as a pretty printed SVD document, including the XML declaration."""
    root = encode(device, options)
    return ET.tostring(
        root.getroottree(), encoding="utf-8", xml_declaration=True, pretty_print=True
    ).decode("utf-8")


def merge_element(target: ET._Element, source: ET._Element) -> ET._Element:
    """
    Merge the attributes and children of source into target.
    Attributes already present in target are overwritten. Children are appended after the existing
    children of target. The tag of source is ignored.
    """
    for name, value in source.attrib.items():
        target.set(name, value)
    for child in list(source):
        target.append(child)
    return target


@functools.singledispatch
def encode_element(entity: Any) -> ET._Element:
    """
    Encode any entity as the corresponding SVD element.

    :param entity: Entity to encode.
    :raises TypeError: If the entity type can not be encoded.
    :return: The encoded element.
    """
    raise TypeError(f"Can not encode {type(entity).__name__}")


@encode_element.register
def _(element: Single) -> ET._Element:
    return encode_element(element.info)


@encode_element.register
def _(element: Array) -> ET._Element:
    info = encode_element(element.info)
    base = ET.Element(info.tag)
    merge_element(base, _encode_dim(element.dim))
    merge_element(base, info)
    return base


def _encode_dim(dim: DimElement) -> ET._Element:
    element = ET.Element("dimElement")
    _sub(element, "dim", dim.dim, format_dec)
    _sub(element, "dimIncrement", dim.dim_increment, format_hex)
    _sub(element, "dimIndex", dim.dim_index, format_dim_index)
    _sub(element, "dimName", dim.dim_name)
    if dim.dim_array_index is not None:
        element.append(_encode_dim_array_index(dim.dim_array_index))
    return element


def _encode_dim_array_index(index: DimArrayIndex) -> ET._Element:
    element = ET.Element("dimArrayIndex")
    _sub(element, "headerEnumName", index.header_enum_name)
    _append_all(element, index.values)
    return element


def _sub(
    parent: ET._Element,
    tag: str,
    value: Optional[Any],
    fmt: Callable[[Any], str] = str,
) -> None:
    """Add a child element holding the formatted value, unless the value is None."""
    if value is None:
        return
    ET.SubElement(parent, tag).text = fmt(value)


def _set(element: ET._Element, name: str, value: Optional[str]) -> None:
    if value is not None:
        element.set(name, value)


def _append_comments(parent: ET._Element, comments: Iterable[str]) -> None:
    for comment in comments:
        parent.append(ET.Comment(f" {comment} "))


def _append_all(parent: ET._Element, entities: Iterable[Any]) -> None:
    """Encode and append each entity, preceded by its comments."""
    for entity in entities:
        _append_comments(parent, getattr(entity, "comments", ()))
        parent.append(encode_element(entity))


def _encode_properties(element: ET._Element, properties: RegisterProperties) -> None:
    _sub(element, "size", properties.size, format_dec)
    _sub(element, "access", properties.access)
    _sub(element, "protection", properties.protection)
    _sub(element, "resetValue", properties.reset_value, format_hex)
    _sub(element, "resetMask", properties.reset_mask, format_hex)


def _encode_write_constraint(element: ET._Element, constraint: Optional[WriteConstraint]) -> None:
    if constraint is None:
        return

    constraint_element = ET.SubElement(element, "writeConstraint")
    match constraint.value:
        case WriteConstraintRange(minimum=minimum, maximum=maximum):
            range_element = ET.SubElement(constraint_element, "range")
            _sub(range_element, "minimum", minimum, format_dec)
            _sub(range_element, "maximum", maximum, format_dec)
        case value:
            _sub(constraint_element, constraint.kind.value, value, format_bool)


def _encode_bit_range(element: ET._Element, bit_range: BitRange) -> None:
    match bit_range.range_type:
        case BitRangeType.BIT_RANGE:
            _sub(element, "bitRange", bit_range.to_pattern())
        case BitRangeType.MSB_LSB:
            _sub(element, "lsb", bit_range.lsb, format_dec)
            _sub(element, "msb", bit_range.msb, format_dec)
        case _:
            _sub(element, "bitOffset", bit_range.offset, format_dec)
            _sub(element, "bitWidth", bit_range.width, format_dec)


@encode_element.register
def _(value: EnumeratedValue) -> ET._Element:
    element = ET.Element("enumeratedValue")
    _sub(element, "name", value.name)
    _sub(element, "description", value.description)
    if value.value is not None:
        _sub(element, "value", format_pattern(value.value, value.dont_care_mask))
    _sub(element, "isDefault", value.is_default, format_bool)
    return element


@encode_element.register
def _(enums: EnumeratedValues) -> ET._Element:
    element = ET.Element("enumeratedValues")
    _set(element, "derivedFrom", enums.derived_from)
    _sub(element, "name", enums.name)
    _sub(element, "headerEnumName", enums.header_enum_name)
    _sub(element, "usage", enums.usage)
    _append_all(element, enums.values)
    return element


@encode_element.register
def _(field: FieldInfo) -> ET._Element:
    element = ET.Element("field")
    _set(element, "derivedFrom", field.derived_from)
    _sub(element, "name", field.name)
    _sub(element, "description", field.description)
    _encode_bit_range(element, field.bit_range)
    _sub(element, "access", field.access)
    _sub(element, "modifiedWriteValues", field.modified_write_values)
    _encode_write_constraint(element, field.write_constraint)
    _sub(element, "readAction", field.read_action)
    _append_all(element, field.enumerated_values)
    return element


@encode_element.register
def _(register: RegisterInfo) -> ET._Element:
    element = ET.Element("register")
    _set(element, "derivedFrom", register.derived_from)
    _sub(element, "name", register.name)
    _sub(element, "displayName", register.display_name)
    _sub(element, "description", register.description)
    _sub(element, "alternateGroup", register.alternate_group)
    _sub(element, "alternateRegister", register.alternate_register)
    _sub(element, "addressOffset", register.address_offset, format_hex)
    _encode_properties(element, register.properties)
    _sub(element, "dataType", register.data_type)
    _sub(element, "modifiedWriteValues", register.modified_write_values)
    _encode_write_constraint(element, register.write_constraint)
    _sub(element, "readAction", register.read_action)
    if register.fields is not None:
        _append_all(ET.SubElement(element, "fields"), register.fields)
    return element


@encode_element.register
def _(cluster: ClusterInfo) -> ET._Element:
    element = ET.Element("cluster")
    _set(element, "derivedFrom", cluster.derived_from)
    _sub(element, "name", cluster.name)
    _sub(element, "description", cluster.description)
    _sub(element, "alternateCluster", cluster.alternate_cluster)
    _sub(element, "headerStructName", cluster.header_struct_name)
    _sub(element, "addressOffset", cluster.address_offset, format_hex)
    _encode_properties(element, cluster.properties)
    _append_all(element, cluster.children)
    return element


@encode_element.register
def _(block: AddressBlock) -> ET._Element:
    element = ET.Element("addressBlock")
    _sub(element, "offset", block.offset, format_hex)
    _sub(element, "size", block.size, format_hex)
    _sub(element, "usage", block.usage)
    _sub(element, "protection", block.protection)
    return element


@encode_element.register
def _(interrupt: Interrupt) -> ET._Element:
    element = ET.Element("interrupt")
    _sub(element, "name", interrupt.name)
    _sub(element, "description", interrupt.description)
    _sub(element, "value", interrupt.value, format_dec)
    return element


@encode_element.register
def _(peripheral: PeripheralInfo) -> ET._Element:
    element = ET.Element("peripheral")
    _set(element, "derivedFrom", peripheral.derived_from)
    _sub(element, "name", peripheral.name)
    _sub(element, "displayName", peripheral.display_name)
    _sub(element, "version", peripheral.version)
    _sub(element, "description", peripheral.description)
    _sub(element, "alternatePeripheral", peripheral.alternate_peripheral)
    _sub(element, "groupName", peripheral.group_name)
    _sub(element, "prependToName", peripheral.prepend_to_name)
    _sub(element, "appendToName", peripheral.append_to_name)
    _sub(element, "headerStructName", peripheral.header_struct_name)
    _sub(element, "disableCondition", peripheral.disable_condition)
    _sub(element, "baseAddress", peripheral.base_address, format_hex)
    _encode_properties(element, peripheral.properties)
    _append_all(element, peripheral.address_blocks or ())
    _append_all(element, peripheral.interrupts)
    if peripheral.registers is not None:
        _append_all(ET.SubElement(element, "registers"), peripheral.registers)
    return element


@encode_element.register
def _(cpu: Cpu) -> ET._Element:
    element = ET.Element("cpu")
    _sub(element, "name", cpu.name)
    _sub(element, "revision", cpu.revision)
    _sub(element, "endian", cpu.endian)
    _sub(element, "mpuPresent", cpu.mpu_present, format_bool)
    _sub(element, "fpuPresent", cpu.fpu_present, format_bool)
    _sub(element, "fpuDP", cpu.fpu_double_precision, format_bool)
    _sub(element, "dspPresent", cpu.dsp_present, format_bool)
    _sub(element, "icachePresent", cpu.icache_present, format_bool)
    _sub(element, "dcachePresent", cpu.dcache_present, format_bool)
    _sub(element, "itcmPresent", cpu.itcm_present, format_bool)
    _sub(element, "dtcmPresent", cpu.dtcm_present, format_bool)
    _sub(element, "vtorPresent", cpu.vtor_present, format_bool)
    _sub(element, "nvicPrioBits", cpu.nvic_priority_bits, format_dec)
    _sub(element, "vendorSystickConfig", cpu.has_vendor_systick, format_bool)
    _sub(element, "deviceNumInterrupts", cpu.device_num_interrupts, format_dec)
    _sub(element, "sauNumRegions", cpu.sau_num_regions, format_dec)
    return element


@encode_element.register
def _(device: Device) -> ET._Element:
    nsmap = {"xs": XS_NAMESPACE} if device.schema_location is not None else None
    element = ET.Element("device", nsmap=nsmap)
    element.set("schemaVersion", device.schema_version)
    _set(element, f"{{{XS_NAMESPACE}}}noNamespaceSchemaLocation", device.schema_location)

    _sub(element, "vendor", device.vendor)
    _sub(element, "vendorID", device.vendor_id)
    _sub(element, "name", device.name)
    _sub(element, "series", device.series)
    _sub(element, "version", device.version)
    _sub(element, "description", device.description)
    _sub(element, "licenseText", device.license_text)
    if device.cpu is not None:
        element.append(encode_element(device.cpu))
    _sub(element, "headerSystemFilename", device.header_system_filename)
    _sub(element, "headerDefinitionsPrefix", device.header_definitions_prefix)
    _sub(element, "addressUnitBits", device.address_unit_bits, format_dec)
    _sub(element, "width", device.width, format_dec)
    _encode_properties(element, device.properties)
    _append_all(ET.SubElement(element, "peripherals"), device.peripherals)

    for comment in device.comments:
        element.addprevious(ET.Comment(f" {comment} "))

    return element
