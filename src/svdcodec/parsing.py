# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Parsing of SVD documents into the entity model.

Each entity is parsed by reading its required values, then its optional values, then its
children, before it is built and validated through its builder. Errors are tagged with the
location of the XML node they originated from. A list of sibling entities is always parsed in
full, so that every failing sibling is reported rather than only the first one.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Type, TypeVar, Union

import lxml.etree as ET

import svdcodec

from .array import Array, DimArrayIndex, DimElement, MaybeArray, Single, parse_dim_index
from .cluster import ClusterInfo, RegisterCluster
from .derive import resolve_derivations
from .device import SCHEMA_VERSION, Cpu, Device
from .enumerated_value import EnumeratedValue
from .enumerated_values import EnumeratedValues
from .enums import (
    Access,
    AddressBlockUsage,
    CpuName,
    DataType,
    Endian,
    EnumUsage,
    Protection,
    ReadAction,
    WriteAction,
)
from .errors import (
    EmptyTagError,
    MissingTagError,
    NodeLocation,
    SvdError,
    SvdParseError,
    SvdParseErrors,
)
from .field import BitRange, BitRangeType, Field, FieldInfo
from .peripheral import AddressBlock, Interrupt, Peripheral, PeripheralInfo
from .primitives import CaseInsensitiveStrEnum, to_bool, to_enum, to_int, to_int_pattern
from .properties import RegisterProperties, WriteConstraint
from .register import Register, RegisterInfo
from .validation import ValidateLevel

# Attribute holding the location of the SVD schema document.
SCHEMA_LOCATION_ATTR = "{http://www.w3.org/2001/XMLSchema-instance}noNamespaceSchemaLocation"

T = TypeVar("T")
E = TypeVar("E", bound=CaseInsensitiveStrEnum)


@dataclass(frozen=True)
class Options:
    """Options to configure the SVD parsing behavior."""

    # Level used when building and validating each parsed entity.
    validate_level: ValidateLevel = ValidateLevel.WEAK

    # Resolve derivedFrom references once the device is parsed.
    resolve_derivations: bool = False

    # Expand every array element into the single elements it describes, after resolving
    # derivedFrom references.
    expand: bool = False

    # Skip <enumeratedValues> elements entirely.
    ignore_enums: bool = False


def parse(svd_path: Union[str, Path], options: Options = Options()) -> Device:
    """
    Parse a device described by a SVD file.

    :param svd_path: Path to the SVD file.
    :param options: Parsing options.

    :raises FileNotFoundError: If the SVD file does not exist.
    :raises SvdParseError: If an error occurred while parsing the SVD file.

    :return: Parsed `Device` representation of the SVD file.
    """
    svd_file = Path(svd_path)

    if not svd_file.is_file():
        raise FileNotFoundError(f"No such file: {svd_file.absolute()}")

    try:
        # Comments are kept as they are attached to the parsed entities
        xml_parser = ET.XMLParser(remove_comments=False, remove_blank_text=True)
        with open(svd_file, "rb") as f:
            xml_device = ET.parse(f, parser=xml_parser)
    except ET.XMLSyntaxError as e:
        raise SvdParseError(f"Error parsing SVD file {svd_file}") from e

    return parse_device(xml_device.getroot(), options)


def parse_string(content: Union[str, bytes], options: Options = Options()) -> Device:
    """
    Parse a device from a string containing an SVD document.

    :param content: The SVD document.
    :param options: Parsing options.
    :raises SvdParseError: If an error occurred while parsing the document.
    :return: Parsed `Device`.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    try:
        xml_parser = ET.XMLParser(remove_comments=False, remove_blank_text=True)
        root = ET.fromstring(content, parser=xml_parser)
    except ET.XMLSyntaxError as e:
        raise SvdParseError("Error parsing SVD document") from e

    return parse_device(root, options)


def parse_element(node: ET._Element, options: Options = Options()) -> Any:
    """
    Parse any SVD element into the corresponding entity.

    :param node: The element. Its tag determines the type of entity returned.
    :param options: Parsing options.
    :raises SvdParseError: If the element has an unknown tag or fails to parse.
    :return: The parsed entity. Peripherals, clusters, registers and fields are returned as
        Single or Array elements.
    """
    parse_fn = _PARSERS.get(node.tag)
    if parse_fn is None:
        raise SvdParseError(f"Unsupported element <{node.tag}>", location_of(node))
    return parse_fn(node, options)


def location_of(node: ET._Element) -> NodeLocation:
    """Identify an XML node for error reporting."""
    return NodeLocation(
        tag=str(node.tag),
        line=node.sourceline,
        xpath=node.getroottree().getpath(node),
    )


@contextmanager
def _located(node: ET._Element) -> Iterator[None]:
    """Tag errors raised inside the block with the location of the node, if not already tagged."""
    try:
        yield
    except SvdParseError:
        raise
    except (SvdError, ValueError) as e:
        raise SvdParseError(e, location_of(node)) from e


def _collect(
    nodes: Iterable[ET._Element],
    parse_fn: Callable[[ET._Element, Options], T],
    options: Options,
) -> List[T]:
    """
    Parse every node in a list of siblings.
    :raises SvdParseErrors: If one or more of the nodes failed to parse.
    """
    results: List[T] = []
    errors: List[SvdParseError] = []

    for node in nodes:
        try:
            results.append(parse_fn(node, options))
        except SvdParseError as e:
            errors.append(e)

    if errors:
        svdcodec.log.debug(
            f"{len(errors)} of {len(results) + len(errors)} elements failed to parse"
        )
        raise SvdParseErrors(errors)

    return results


def _comments(node: ET._Element) -> List[str]:
    """Comments immediately preceding the node, in document order."""
    comments = []
    for sibling in node.itersiblings(preceding=True):
        if not isinstance(sibling, ET._Comment):
            break
        comments.append((sibling.text or "").strip())
    comments.reverse()
    return comments


def _text(node: ET._Element, required: bool) -> Optional[str]:
    text = (node.text or "").strip()
    if not text:
        if required:
            raise EmptyTagError(str(node.tag))
        return None
    return text


def _child_value(
    node: ET._Element,
    tag: str,
    convert: Callable[[str], T],
    required: bool = False,
) -> Optional[T]:
    """
    Read and convert the text of a child element.
    An optional child that is missing or empty yields None.

    :raises MissingTagError: If a required child is missing.
    :raises EmptyTagError: If a required child is empty.
    """
    child = node.find(tag)
    if child is None:
        if required:
            raise MissingTagError(tag)
        return None

    with _located(child):
        text = _text(child, required)
        return convert(text) if text is not None else None


def _child_text(node: ET._Element, tag: str, required: bool = False) -> Any:
    return _child_value(node, tag, str, required)


def _child_int(node: ET._Element, tag: str, required: bool = False) -> Any:
    return _child_value(node, tag, to_int, required)


def _child_bool(node: ET._Element, tag: str, required: bool = False) -> Any:
    return _child_value(node, tag, to_bool, required)


def _child_enum(node: ET._Element, tag: str, enum_cls: Type[E], required: bool = False) -> Any:
    return _child_value(node, tag, lambda text: to_enum(enum_cls, text), required)


def _dim_element(node: ET._Element, options: Options) -> Optional[DimElement]:
    """Dimension information of the element, if it is an array."""
    if node.find("dim") is None:
        return None

    dim_array_index = None
    if (index_node := node.find("dimArrayIndex")) is not None:
        with _located(index_node):
            dim_array_index = DimArrayIndex(
                header_enum_name=_child_text(index_node, "headerEnumName"),
                values=_collect(
                    index_node.iterchildren("enumeratedValue"),
                    parse_enumerated_value,
                    options,
                ),
            )

    return (
        DimElement.builder()
        .dim(_child_int(node, "dim", required=True))
        .dim_increment(_child_int(node, "dimIncrement", required=True))
        .dim_index(_child_value(node, "dimIndex", parse_dim_index))
        .dim_name(_child_text(node, "dimName"))
        .dim_array_index(dim_array_index)
        .build(options.validate_level)
    )


def _maybe_array(info: Any, dim: Optional[DimElement], options: Options) -> MaybeArray:
    if dim is None:
        return Single(info)

    array = Array(info, dim)
    array.validate(options.validate_level)
    return array


def _register_properties(node: ET._Element) -> RegisterProperties:
    return RegisterProperties(
        size=_child_int(node, "size"),
        access=_child_enum(node, "access", Access),
        protection=_child_enum(node, "protection", Protection),
        reset_value=_child_int(node, "resetValue"),
        reset_mask=_child_int(node, "resetMask"),
    )


def _write_constraint(node: ET._Element) -> Optional[WriteConstraint]:
    constraint_node = node.find("writeConstraint")
    if constraint_node is None:
        return None

    with _located(constraint_node):
        if (write_as_read := _child_bool(constraint_node, "writeAsRead")) is not None:
            return WriteConstraint.write_as_read(write_as_read)

        use_enums = _child_bool(constraint_node, "useEnumeratedValues")
        if use_enums is not None:
            return WriteConstraint.use_enumerated_values(use_enums)

        range_node = constraint_node.find("range")
        if range_node is None:
            raise MissingTagError("range")
        with _located(range_node):
            return WriteConstraint.range(
                _child_int(range_node, "minimum", required=True),
                _child_int(range_node, "maximum", required=True),
            )


def _enumerated_value_number(text: str) -> tuple[int, int]:
    """Value and don't care mask of an enumerated value."""
    low, high = to_int_pattern(text)
    return low, low ^ high


def parse_enumerated_value(node: ET._Element, options: Options) -> EnumeratedValue:
    with _located(node):
        number = _child_value(node, "value", _enumerated_value_number)
        value, dont_care_mask = number if number is not None else (None, 0)
        return (
            EnumeratedValue.builder()
            .name(_child_text(node, "name", required=True))
            .description(_child_text(node, "description"))
            .value(value)
            .is_default(_child_bool(node, "isDefault"))
            .dont_care_mask(dont_care_mask)
            .comments(_comments(node))
            .build(options.validate_level)
        )


def parse_enumerated_values(node: ET._Element, options: Options) -> EnumeratedValues:
    with _located(node):
        return (
            EnumeratedValues.builder()
            .name(_child_text(node, "name"))
            .header_enum_name(_child_text(node, "headerEnumName"))
            .usage(_child_enum(node, "usage", EnumUsage))
            .derived_from(node.get("derivedFrom"))
            .values(
                _collect(node.iterchildren("enumeratedValue"), parse_enumerated_value, options)
            )
            .comments(_comments(node))
            .build(options.validate_level)
        )


def _bit_range(node: ET._Element) -> BitRange:
    if (pattern := _child_text(node, "bitRange")) is not None:
        with _located(node.find("bitRange")):
            return BitRange.from_pattern(pattern)

    if (lsb := _child_int(node, "lsb")) is not None:
        return BitRange.from_lsb_msb(lsb, _child_int(node, "msb", required=True))

    if (offset := _child_int(node, "bitOffset")) is not None:
        return BitRange(
            offset=offset,
            width=_child_int(node, "bitWidth", required=True),
            range_type=BitRangeType.OFFSET_WIDTH,
        )

    raise MissingTagError("bitRange")


def parse_field(node: ET._Element, options: Options) -> Field:
    with _located(node):
        enumerated_values: List[EnumeratedValues] = []
        if not options.ignore_enums:
            enumerated_values = _collect(
                node.iterchildren("enumeratedValues"), parse_enumerated_values, options
            )

        info = (
            FieldInfo.builder()
            .name(_child_text(node, "name", required=True))
            .bit_range(_bit_range(node))
            .description(_child_text(node, "description"))
            .derived_from(node.get("derivedFrom"))
            .access(_child_enum(node, "access", Access))
            .modified_write_values(_child_enum(node, "modifiedWriteValues", WriteAction))
            .write_constraint(_write_constraint(node))
            .read_action(_child_enum(node, "readAction", ReadAction))
            .enumerated_values(enumerated_values)
            .comments(_comments(node))
            .build(options.validate_level)
        )
        return _maybe_array(info, _dim_element(node, options), options)


def parse_register(node: ET._Element, options: Options) -> Register:
    with _located(node):
        fields = None
        if (fields_node := node.find("fields")) is not None:
            with _located(fields_node):
                fields = _collect(fields_node.iterchildren("field"), parse_field, options)

        info = (
            RegisterInfo.builder()
            .name(_child_text(node, "name", required=True))
            .address_offset(_child_int(node, "addressOffset", required=True))
            .display_name(_child_text(node, "displayName"))
            .description(_child_text(node, "description"))
            .alternate_group(_child_text(node, "alternateGroup"))
            .alternate_register(_child_text(node, "alternateRegister"))
            .derived_from(node.get("derivedFrom"))
            .properties(_register_properties(node))
            .data_type(_child_enum(node, "dataType", DataType))
            .modified_write_values(_child_enum(node, "modifiedWriteValues", WriteAction))
            .write_constraint(_write_constraint(node))
            .read_action(_child_enum(node, "readAction", ReadAction))
            .fields(fields)
            .comments(_comments(node))
            .build(options.validate_level)
        )
        return _maybe_array(info, _dim_element(node, options), options)


def parse_cluster(node: ET._Element, options: Options) -> MaybeArray[ClusterInfo]:
    with _located(node):
        info = (
            ClusterInfo.builder()
            .name(_child_text(node, "name", required=True))
            .address_offset(_child_int(node, "addressOffset", required=True))
            .description(_child_text(node, "description"))
            .alternate_cluster(_child_text(node, "alternateCluster"))
            .header_struct_name(_child_text(node, "headerStructName"))
            .derived_from(node.get("derivedFrom"))
            .properties(_register_properties(node))
            .children(_register_tree(node, options))
            .comments(_comments(node))
            .build(options.validate_level)
        )
        return _maybe_array(info, _dim_element(node, options), options)


def _register_tree(node: ET._Element, options: Options) -> List[RegisterCluster]:
    return _collect(node.iterchildren("register", "cluster"), parse_element, options)


def parse_address_block(node: ET._Element, options: Options) -> AddressBlock:
    with _located(node):
        return (
            AddressBlock.builder()
            .offset(_child_int(node, "offset", required=True))
            .size(_child_int(node, "size", required=True))
            .usage(_child_enum(node, "usage", AddressBlockUsage, required=True))
            .protection(_child_enum(node, "protection", Protection))
            .build(options.validate_level)
        )


def parse_interrupt(node: ET._Element, options: Options) -> Interrupt:
    with _located(node):
        return (
            Interrupt.builder()
            .name(_child_text(node, "name", required=True))
            .value(_child_int(node, "value", required=True))
            .description(_child_text(node, "description"))
            .build(options.validate_level)
        )


def parse_peripheral(node: ET._Element, options: Options) -> Peripheral:
    with _located(node):
        address_blocks = None
        if node.find("addressBlock") is not None:
            address_blocks = _collect(
                node.iterchildren("addressBlock"), parse_address_block, options
            )

        registers = None
        if (registers_node := node.find("registers")) is not None:
            with _located(registers_node):
                registers = _register_tree(registers_node, options)

        info = (
            PeripheralInfo.builder()
            .name(_child_text(node, "name", required=True))
            .base_address(_child_int(node, "baseAddress", required=True))
            .display_name(_child_text(node, "displayName"))
            .version(_child_text(node, "version"))
            .description(_child_text(node, "description"))
            .alternate_peripheral(_child_text(node, "alternatePeripheral"))
            .group_name(_child_text(node, "groupName"))
            .prepend_to_name(_child_text(node, "prependToName"))
            .append_to_name(_child_text(node, "appendToName"))
            .header_struct_name(_child_text(node, "headerStructName"))
            .disable_condition(_child_text(node, "disableCondition"))
            .properties(_register_properties(node))
            .address_blocks(address_blocks)
            .interrupts(_collect(node.iterchildren("interrupt"), parse_interrupt, options))
            .registers(registers)
            .derived_from(node.get("derivedFrom"))
            .comments(_comments(node))
            .build(options.validate_level)
        )
        return _maybe_array(info, _dim_element(node, options), options)


def parse_cpu(node: ET._Element, options: Options) -> Cpu:
    with _located(node):
        return (
            Cpu.builder()
            .name(_child_enum(node, "name", CpuName, required=True))
            .revision(_child_text(node, "revision", required=True))
            .endian(_child_enum(node, "endian", Endian, required=True))
            .mpu_present(_child_bool(node, "mpuPresent", required=True))
            .fpu_present(_child_bool(node, "fpuPresent", required=True))
            .fpu_double_precision(_child_bool(node, "fpuDP"))
            .dsp_present(_child_bool(node, "dspPresent"))
            .icache_present(_child_bool(node, "icachePresent"))
            .dcache_present(_child_bool(node, "dcachePresent"))
            .itcm_present(_child_bool(node, "itcmPresent"))
            .dtcm_present(_child_bool(node, "dtcmPresent"))
            .vtor_present(_child_bool(node, "vtorPresent"))
            .nvic_priority_bits(_child_int(node, "nvicPrioBits", required=True))
            .has_vendor_systick(_child_bool(node, "vendorSystickConfig", required=True))
            .device_num_interrupts(_child_int(node, "deviceNumInterrupts"))
            .sau_num_regions(_child_int(node, "sauNumRegions"))
            .build(options.validate_level)
        )


def parse_device(node: ET._Element, options: Options = Options()) -> Device:
    """
    Parse a <device> element, then resolve and expand it as configured by the options.

    :raises SvdParseError: If the device or any element in it failed to parse.
    """
    with _located(node):
        cpu_node = node.find("cpu")
        peripherals_node = node.find("peripherals")
        if peripherals_node is None:
            raise MissingTagError("peripherals")

        with _located(peripherals_node):
            peripherals = _collect(
                peripherals_node.iterchildren("peripheral"), parse_peripheral, options
            )

        device = (
            Device.builder()
            .name(_child_text(node, "name", required=True))
            .schema_version(node.get("schemaVersion", SCHEMA_VERSION))
            .schema_location(node.get(SCHEMA_LOCATION_ATTR))
            .vendor(_child_text(node, "vendor"))
            .vendor_id(_child_text(node, "vendorID"))
            .series(_child_text(node, "series"))
            .version(_child_text(node, "version"))
            .description(_child_text(node, "description"))
            .license_text(_child_text(node, "licenseText"))
            .cpu(parse_cpu(cpu_node, options) if cpu_node is not None else None)
            .header_system_filename(_child_text(node, "headerSystemFilename"))
            .header_definitions_prefix(_child_text(node, "headerDefinitionsPrefix"))
            .address_unit_bits(_child_int(node, "addressUnitBits"))
            .width(_child_int(node, "width"))
            .properties(_register_properties(node))
            .peripherals(peripherals)
            .comments(_comments(node))
            .build(options.validate_level)
        )

        if options.resolve_derivations:
            device = resolve_derivations(device, options.validate_level)
        if options.validate_level.is_strict():
            # Registers can inherit their size from any enclosing element
            device.validate_all(options.validate_level)
        if options.expand:
            device = device.expanded()

        return device


_PARSERS: Dict[str, Callable[[ET._Element, Options], Any]] = {
    "device": parse_device,
    "cpu": parse_cpu,
    "peripheral": parse_peripheral,
    "addressBlock": parse_address_block,
    "interrupt": parse_interrupt,
    "cluster": parse_cluster,
    "register": parse_register,
    "field": parse_field,
    "enumeratedValues": parse_enumerated_values,
    "enumeratedValue": parse_enumerated_value,
}
