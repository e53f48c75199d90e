# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

import pytest

from svdcodec import (
    Access,
    Array,
    BitRange,
    DimElement,
    FieldInfo,
    RegisterInfo,
    RegisterProperties,
    Single,
    SvdValidationError,
    UninitializedError,
    ValidateLevel,
)


def test_unset_and_explicit_none_differ():
    builder = RegisterInfo.builder().name("R").address_offset(0).description(None)

    assert builder.is_set("description")
    assert not builder.is_set("display_name")
    assert builder.explicit_values() == {
        "name": "R",
        "address_offset": 0,
        "description": None,
    }


def test_empty_text_is_stored_as_none():
    register = RegisterInfo.builder().name("R").address_offset(0).description("").build()

    assert register.description is None


def test_unknown_value():
    with pytest.raises(TypeError):
        RegisterInfo.BUILDER(bogus=1)


def test_missing_required_value():
    with pytest.raises(UninitializedError):
        RegisterInfo.builder().name("R").build(ValidateLevel.DISABLED)


def test_explicit_none_for_required_value():
    with pytest.raises(UninitializedError):
        RegisterInfo.builder().name("R").address_offset(None).build()


def test_register_properties_setters():
    register = (
        RegisterInfo.builder()
        .name("R")
        .address_offset(4)
        .size(16)
        .access(Access.READ_ONLY)
        .reset_value(0x12)
        .build(ValidateLevel.STRICT)
    )

    assert register.properties == RegisterProperties(
        size=16, access=Access.READ_ONLY, reset_value=0x12
    )


def test_to_builder_round_trip():
    register = RegisterInfo(name="R", address_offset=8, description="Register")

    assert register.to_builder().build() == register


def test_modify_single():
    register = Single(RegisterInfo(name="R", address_offset=0))

    register.modify_from(RegisterInfo.builder().address_offset(0x10))

    assert register.info.address_offset == 0x10
    assert register.name == "R"


def test_modify_array_is_revalidated():
    register = Array(
        RegisterInfo(name="R%s", address_offset=0),
        DimElement(dim=2, dim_increment=4),
    )

    # The new name loses the placeholder, which is still a valid array name
    register.modify_from(RegisterInfo.builder().name("R_"), ValidateLevel.STRICT)
    assert register.names() == ["R_0", "R_1"]

    with pytest.raises(SvdValidationError):
        register.modify_from(RegisterInfo.builder().name("1R%s"), ValidateLevel.STRICT)
    assert register.info.name == "R_"


def test_modify_is_atomic():
    register = RegisterInfo(
        name="R",
        address_offset=0,
        properties=RegisterProperties(size=8),
        fields=[Single(FieldInfo(name="F", bit_range=BitRange(offset=0, width=4)))],
    )

    with pytest.raises(SvdValidationError):
        register.modify_from(
            RegisterInfo.builder().address_offset(4).size(2), ValidateLevel.STRICT
        )

    assert register.address_offset == 0
    assert register.properties.size == 8


def test_modify_single_register_property_keeps_the_others():
    register = RegisterInfo(
        name="R",
        address_offset=0,
        properties=RegisterProperties(size=32, reset_value=5),
    )

    register.modify_from(RegisterInfo.builder().access(Access.READ_ONLY), ValidateLevel.STRICT)

    assert register.properties == RegisterProperties(
        size=32, access=Access.READ_ONLY, reset_value=5
    )


def test_modify_whole_register_properties_replaces_them():
    register = RegisterInfo(
        name="R",
        address_offset=0,
        properties=RegisterProperties(size=32, reset_value=5),
    )

    register.modify_from(
        RegisterInfo.builder().properties(RegisterProperties(access=Access.READ_ONLY))
    )

    assert register.properties == RegisterProperties(access=Access.READ_ONLY)


def test_register_property_setters_overlay_explicit_properties():
    builder = (
        RegisterInfo.builder()
        .name("R")
        .address_offset(0)
        .size(16)
        .properties(RegisterProperties(size=8, reset_value=1))
    )

    assert builder.build().properties == RegisterProperties(size=16, reset_value=1)
