# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

import pytest

import svdcodec
from svdcodec import (
    Access,
    Array,
    BitRangeType,
    CpuName,
    EnumUsage,
    Options,
    RegisterProperties,
    ValidateLevel,
    parse,
    parse_element,
    parse_string,
)
from svdcodec.errors import (
    AbsentValueError,
    BitRangeError,
    EmptyTagError,
    InvalidBooleanValueError,
    InvalidNumberError,
    MissingTagError,
    SvdParseError,
    SvdParseErrors,
)

STRICT = Options(validate_level=ValidateLevel.STRICT)


def test_parse_device(example_svd):
    device = parse_string(example_svd)

    assert device.name == "EXAMPLE"
    assert device.vendor == "Nordic Semiconductor"
    assert device.schema_version == "1.1"
    assert device.schema_location == "CMSIS-SVD.xsd"
    assert device.cpu.name is CpuName.CM33
    assert device.cpu.mpu_present is True
    assert device.cpu.has_vendor_systick is False
    assert device.properties == RegisterProperties(
        size=32, access=Access.READ_WRITE, reset_value=0, reset_mask=0xFFFFFFFF
    )
    assert [p.name for p in device.peripherals] == ["TIMER0", "TIMER1"]


def test_parse_file(example_svd_file):
    device = parse(example_svd_file, STRICT)
    assert device.name == "EXAMPLE"


def test_parse_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse(tmp_path / "missing.svd")


def test_parse_malformed_xml():
    with pytest.raises(SvdParseError):
        parse_string("<device><name>X</device>")


def test_parse_registers(example_svd):
    timer = parse_string(example_svd).get_peripheral("TIMER0").info

    assert timer.base_address == 0x4000_8000
    assert timer.address_blocks[0].size == 0x1000
    assert [i.value for i in timer.interrupts] == [8]
    assert [r.name for r in timer.registers] == [
        "TASKS_CAPTURE[%s]",
        "MODE",
        "MODE_ALT",
        "PSEL",
    ]

    tasks = timer.registers[0]
    assert isinstance(tasks, Array)
    assert tasks.dim.dim == 4
    assert tasks.dim.dim_increment == 4
    assert tasks.info.address_offset == 0x40
    assert tasks.info.properties.access is Access.WRITE_ONLY

    psel = timer.get_register("PSEL").info
    assert [r.name for r in psel.registers()] == ["OUT"]
    assert list(psel.clusters()) == []
    pin = psel.children[0].info.fields[0].info
    assert pin.bit_range.offset == 0
    assert pin.bit_range.width == 5
    assert pin.bit_range.range_type is BitRangeType.MSB_LSB


def test_parse_enumerated_values(example_svd):
    mode = parse_string(example_svd).get_peripheral("TIMER0").info.get_register("MODE").info
    field = mode.get_field("MODE").info

    assert field.bit_range.range_type is BitRangeType.BIT_RANGE
    assert field.bit_range.width == 2

    enums = field.enumerated_values[0]
    assert enums.usage is EnumUsage.READ_WRITE
    counter = enums.values[1]
    assert counter.value == 0b10
    assert counter.dont_care_mask == 0b01
    assert enums.get(3) is counter


def test_parse_comments(example_svd):
    device = parse_string(example_svd)
    timer = device.get_peripheral("TIMER0").info
    mode_enums = timer.get_register("MODE").info.get_field("MODE").info.enumerated_values[0]

    assert device.comments == ["Example device"]
    assert timer.registers[0].comments == ["Task registers"]
    assert mode_enums.values[1].comments == ["Both counter modes"]
    assert mode_enums.values[0].comments == []


def test_parse_with_resolve_and_expand(example_svd):
    options = Options(resolve_derivations=True, expand=True)
    device = parse_string(example_svd, options)

    timer0 = device.get_peripheral("TIMER0").info
    timer1 = device.get_peripheral("TIMER1").info

    assert [r.name for r in timer0.registers[:4]] == [f"TASKS_CAPTURE{i}" for i in range(4)]
    assert [r.info.address_offset for r in timer0.registers[:4]] == [0x40, 0x44, 0x48, 0x4C]
    assert timer0.registers[1].info.description == "Capture Timer value to CC1 register"

    mode_alt = timer0.get_register("MODE_ALT").info
    assert mode_alt.properties.access is Access.READ_ONLY
    assert [f.name for f in mode_alt.fields] == ["MODE"]

    assert [r.name for r in timer1.registers] == [r.name for r in timer0.registers]
    assert [i.name for i in timer1.interrupts] == ["TIMER1"]


def test_parse_ignore_enums(example_svd):
    device = parse_string(example_svd, Options(ignore_enums=True))
    mode = device.get_peripheral("TIMER0").info.get_register("MODE").info
    assert mode.get_field("MODE").info.enumerated_values == []


def test_enumerated_value_without_value(xml):
    node = xml("<enumeratedValue><name>A</name></enumeratedValue>")

    value = parse_element(node)
    assert value.name == "A"
    assert value.value is None

    with pytest.raises(SvdParseError) as exc_info:
        parse_element(node, STRICT)
    assert isinstance(exc_info.value.__cause__, AbsentValueError)


def test_empty_optional_tag_is_none(xml):
    node = xml("<enumeratedValue><name>A</name><description> </description></enumeratedValue>")
    assert parse_element(node).description is None


def test_empty_required_tag(xml):
    node = xml("<enumeratedValue><name></name><value>1</value></enumeratedValue>")
    with pytest.raises(SvdParseError) as exc_info:
        parse_element(node)
    assert isinstance(exc_info.value.__cause__, EmptyTagError)
    assert exc_info.value.location.xpath == "/enumeratedValue/name"


def test_invalid_boolean(xml):
    node = xml("<enumeratedValue><name>A</name><isDefault>maybe</isDefault></enumeratedValue>")
    with pytest.raises(SvdParseError) as exc_info:
        parse_element(node)
    assert isinstance(exc_info.value.__cause__, InvalidBooleanValueError)


def test_unsupported_element(xml):
    with pytest.raises(SvdParseError):
        parse_element(xml("<something/>"))


REGISTERS_WITH_ERRORS = """\
<peripheral>
  <name>P</name>
  <baseAddress>0x1000</baseAddress>
  <registers>
    <register>
      <name>NO_OFFSET</name>
    </register>
    <register>
      <name>GOOD</name>
      <addressOffset>0x4</addressOffset>
    </register>
    <register>
      <name>BAD_OFFSET</name>
      <addressOffset>0xZZ</addressOffset>
    </register>
  </registers>
</peripheral>
"""


def test_sibling_errors_are_collected(xml):
    with pytest.raises(SvdParseErrors) as exc_info:
        parse_element(xml(REGISTERS_WITH_ERRORS))

    errors = exc_info.value.errors
    assert len(errors) == 2

    assert isinstance(errors[0].__cause__, MissingTagError)
    assert errors[0].location.xpath == "/peripheral/registers/register[1]"
    assert errors[0].location.line == 5

    assert isinstance(errors[1].__cause__, InvalidNumberError)
    assert errors[1].location.xpath == "/peripheral/registers/register[3]/addressOffset"
    assert errors[1].location.line == 14


def test_nested_errors_are_flattened(example_svd):
    broken = example_svd.replace("<bitWidth>1</bitWidth>", "<bitWidth>x</bitWidth>").replace(
        "<msb>4</msb>", "<msb></msb>"
    )

    with pytest.raises(SvdParseErrors) as exc_info:
        parse_string(broken)

    errors = exc_info.value.errors
    assert len(errors) == 2
    assert all(isinstance(e, SvdParseError) for e in errors)
    assert errors[0].location.tag == "bitWidth"
    assert errors[1].location.tag == "msb"


def test_strict_parse_reports_bit_range_overflow(xml):
    node = xml(
        """\
        <register>
          <name>R</name>
          <addressOffset>0</addressOffset>
          <size>8</size>
          <fields>
            <field><name>F</name><bitRange>[8:4]</bitRange></field>
          </fields>
        </register>
        """
    )
    parse_element(node)
    with pytest.raises(SvdParseError, match="BitRange"):
        parse_element(node, STRICT)


DEVICE_WITH_INHERITED_SIZE = """\
<device>
  <name>D</name>
  <size>32</size>
  <peripherals>
    <peripheral>
      <name>P</name>
      <baseAddress>0x1000</baseAddress>
      <registers>
        <cluster>
          <name>C</name>
          <addressOffset>0</addressOffset>
          <register>
            <name>R</name>
            <addressOffset>0</addressOffset>
            <fields>
              <field><name>F</name><bitRange>[40:0]</bitRange></field>
            </fields>
          </register>
        </cluster>
      </registers>
    </peripheral>
  </peripherals>
</device>
"""


def test_strict_parse_reports_bit_range_overflow_of_inherited_size(xml):
    node = xml(DEVICE_WITH_INHERITED_SIZE)

    device = parse_element(node)
    with pytest.raises(BitRangeError):
        device.validate_all(ValidateLevel.STRICT)
    device.validate_all(ValidateLevel.WEAK)

    with pytest.raises(SvdParseError, match="BitRange"):
        parse_element(node, STRICT)


def test_own_size_overrides_inherited_size_in_bit_range_check(xml):
    node = xml(
        DEVICE_WITH_INHERITED_SIZE.replace(
            "<name>R</name>", "<name>R</name><size>64</size>"
        )
    )
    parse_element(node, STRICT).validate_all(ValidateLevel.STRICT)


def test_parse_dimensioned_field(xml):
    node = xml(
        """\
        <field>
          <dim>4</dim>
          <dimIncrement>2</dimIncrement>
          <dimIndex>A-D</dimIndex>
          <name>PIN%s</name>
          <bitOffset>0</bitOffset>
          <bitWidth>2</bitWidth>
        </field>
        """
    )
    field = parse_element(node, STRICT)
    assert field.names() == ["PINA", "PINB", "PINC", "PIND"]
    assert list(svdcodec.expand(field))[3].info.bit_range.offset == 6


def test_write_constraint(xml):
    node = xml(
        """\
        <field>
          <name>F</name>
          <bitRange>[7:0]</bitRange>
          <writeConstraint><range><minimum>1</minimum><maximum>9</maximum></range></writeConstraint>
        </field>
        """
    )
    constraint = parse_element(node, STRICT).info.write_constraint
    assert constraint.value.minimum == 1
    assert constraint.value.maximum == 9
