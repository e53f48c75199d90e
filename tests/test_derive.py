# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

import logging

import pytest

from svdcodec import (
    Access,
    BitRange,
    ClusterInfo,
    Device,
    EnumeratedValue,
    EnumeratedValues,
    FieldInfo,
    Interrupt,
    PeripheralInfo,
    RegisterInfo,
    RegisterProperties,
    ValidateLevel,
    resolve_derivations,
)
from svdcodec.errors import DerivationError

STRICT = ValidateLevel.STRICT
WEAK = ValidateLevel.WEAK


def make_device(*peripherals):
    return Device.builder().name("DEV").peripherals([p.single() for p in peripherals]).build()


def make_peripheral(name, *registers, **kwargs):
    builder = PeripheralInfo.builder().name(name).base_address(0x4000_0000)
    for key, value in kwargs.items():
        getattr(builder, key)(value)
    return builder.registers([r.single() for r in registers]).build()


def register(name, offset, **kwargs):
    builder = RegisterInfo.builder().name(name).address_offset(offset)
    for key, value in kwargs.items():
        getattr(builder, key)(value)
    return builder.build()


def get_register(device, *path):
    peripheral = device.get_peripheral(path[0])
    element = peripheral.info.get_register(path[1])
    for name in path[2:]:
        element = next(c for c in element.info.children if c.name == name)
    return element.info


def test_register_inherits_unset_properties_from_sibling():
    base = register("B", 0, size=32, access=Access.READ_WRITE)
    derived = register("D", 4, access=Access.READ_ONLY, derived_from="B")
    device = make_device(make_peripheral("P", base, derived))

    resolved = resolve_derivations(device, STRICT)

    assert get_register(resolved, "P", "D").properties == RegisterProperties(
        size=32, access=Access.READ_ONLY
    )


def test_resolution_does_not_modify_input():
    base = register("B", 0, size=32)
    derived = register("D", 4, derived_from="B")
    device = make_device(make_peripheral("P", base, derived))

    resolve_derivations(device)

    assert get_register(device, "P", "D").properties.size is None


def test_resolution_is_idempotent():
    base = register("B", 0, size=32, description="Base register")
    derived = register("D", 4, derived_from="B")
    device = make_device(make_peripheral("P", base, derived))

    resolved = resolve_derivations(device, STRICT)

    assert resolve_derivations(resolved, STRICT) == resolved


def test_field_list_is_inherited_wholesale():
    fields = [
        FieldInfo(name="EN", bit_range=BitRange(0, 1)).single(),
        FieldInfo(name="MODE", bit_range=BitRange(1, 2)).single(),
    ]
    base = register("B", 0, fields=fields)
    derived = register("D", 4, derived_from="B")
    overriding = register(
        "O",
        8,
        derived_from="B",
        fields=[FieldInfo(name="OTHER", bit_range=BitRange(0, 8)).single()],
    )
    device = make_device(make_peripheral("P", base, derived, overriding))

    resolved = resolve_derivations(device, STRICT)

    assert get_register(resolved, "P", "D").fields == fields
    assert [f.name for f in get_register(resolved, "P", "O").fields] == ["OTHER"]


def test_derived_entity_keeps_own_identity():
    base = register("B", 0, description="Base")
    derived = register("D", 4, derived_from="B")
    device = make_device(make_peripheral("P", base, derived))

    info = get_register(resolve_derivations(device), "P", "D")

    assert info.name == "D"
    assert info.address_offset == 4
    assert info.derived_from == "B"
    assert info.description == "Base"


def test_qualified_reference_is_resolved_from_root():
    base = register("B", 0, size=16)
    other = register("D", 0, derived_from="P0.B")
    device = make_device(make_peripheral("P0", base), make_peripheral("P1", other))

    resolved = resolve_derivations(device, STRICT)

    assert get_register(resolved, "P1", "D").properties.size == 16


def test_reference_inside_cluster():
    cluster = ClusterInfo(
        name="C",
        address_offset=0x100,
        children=[
            register("B", 0, size=8).single(),
            register("D", 4, derived_from="B").single(),
        ],
    )
    device = make_device(
        PeripheralInfo(name="P", base_address=0x1000, registers=[cluster.single()])
    )

    resolved = resolve_derivations(device, STRICT)

    assert get_register(resolved, "P", "C", "D").properties.size == 8


def test_peripheral_inherits_registers_but_not_interrupts():
    base = make_peripheral(
        "TIMER0",
        register("CTRL", 0),
        description="Timer",
        interrupts=[Interrupt(name="TIMER0", value=8)],
    )
    derived = (
        PeripheralInfo.builder()
        .name("TIMER1")
        .base_address(0x4000_1000)
        .derived_from("TIMER0")
        .build()
    )
    device = make_device(base, derived)

    resolved = resolve_derivations(device, STRICT).get_peripheral("TIMER1").info

    assert resolved.description == "Timer"
    assert [r.name for r in resolved.registers] == ["CTRL"]
    assert resolved.interrupts == []
    assert resolved.base_address == 0x4000_1000


def test_chained_derivation_resolves_base_first():
    a = register("A", 0, size=8, access=Access.READ_ONLY)
    b = register("B", 4, derived_from="A", size=16)
    c = register("C", 8, derived_from="B")
    device = make_device(make_peripheral("P", c, b, a))

    resolved = resolve_derivations(device, STRICT)

    assert get_register(resolved, "P", "C").properties == RegisterProperties(
        size=16, access=Access.READ_ONLY
    )


def test_enumerated_values_derivation():
    enums = EnumeratedValues(
        name="STATE", values=[EnumeratedValue(name="IDLE", value=0)]
    )
    fields = [
        FieldInfo(name="A", bit_range=BitRange(0, 1), enumerated_values=[enums]).single(),
        FieldInfo(
            name="B",
            bit_range=BitRange(1, 1),
            enumerated_values=[EnumeratedValues(derived_from="A.STATE")],
        ).single(),
    ]
    device = make_device(make_peripheral("P", register("R", 0, fields=fields)))

    resolved = resolve_derivations(device, WEAK)

    field_b = get_register(resolved, "P", "R").get_field("B").info
    assert field_b.enumerated_values[0].values == enums.values


def test_unresolved_reference_fails_strict():
    derived = register("D", 4, derived_from="MISSING")
    device = make_device(make_peripheral("P", derived))

    with pytest.raises(DerivationError) as exc_info:
        resolve_derivations(device, STRICT)
    assert exc_info.value.reference == "MISSING"


def test_unresolved_reference_is_ignored_below_strict(caplog):
    derived = register("D", 4, derived_from="MISSING")
    device = make_device(make_peripheral("P", derived))

    with caplog.at_level(logging.WARNING, logger="svdcodec"):
        resolved = resolve_derivations(device, WEAK)

    assert resolved == device
    assert "MISSING" in caplog.text


def test_reference_to_other_kind_is_unresolved():
    derived = register("D", 4, derived_from="P")
    device = make_device(make_peripheral("P", derived))

    with pytest.raises(DerivationError):
        resolve_derivations(device, STRICT)


def test_derivation_cycle_fails_strict():
    a = register("A", 0, derived_from="B")
    b = register("B", 4, derived_from="A")
    device = make_device(make_peripheral("P", a, b))

    with pytest.raises(DerivationError):
        resolve_derivations(device, STRICT)

    resolve_derivations(device, WEAK)
