# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

import pytest

from svdcodec.array import format_dim_index, parse_dim_index
from svdcodec.enums import Access, EnumUsage
from svdcodec.errors import InvalidBooleanValueError, InvalidNumberError, UnknownEnumValueError
from svdcodec.primitives import (
    format_pattern,
    to_bool,
    to_enum,
    to_int,
    to_int_pattern,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("42", 42),
        (" 42\n", 42),
        ("0x2A", 42),
        ("0X2a", 42),
        ("#101010", 42),
        ("0b101010", 42),
        ("0B101010", 42),
        ("0", 0),
    ],
)
def test_to_int(text, expected):
    assert to_int(text) == expected


@pytest.mark.parametrize("text", ["", "0x", "0xZZ", "#102", "-1", "4 2", "#1x0"])
def test_to_int_invalid(text):
    with pytest.raises(InvalidNumberError) as exc_info:
        to_int(text)
    assert str(exc_info.value).startswith("InvalidNumber:")


def test_to_int_pattern():
    assert to_int_pattern("#1x0") == (0b100, 0b110)
    assert to_int_pattern("#xX") == (0, 3)
    assert to_int_pattern("0b1x") == (2, 3)
    assert to_int_pattern("0x10") == (16, 16)


@pytest.mark.parametrize("text", ["true", "TRUE", "1", "Enabled", " true "])
def test_to_bool_true(text):
    assert to_bool(text) is True


@pytest.mark.parametrize("text", ["false", "False", "0", "DISABLED"])
def test_to_bool_false(text):
    assert to_bool(text) is False


def test_to_bool_invalid():
    with pytest.raises(InvalidBooleanValueError) as exc_info:
        to_bool("yes")
    assert "yes" in str(exc_info.value)
    assert str(exc_info.value).startswith("InvalidBooleanValue:")


def test_to_enum_is_case_insensitive():
    assert to_enum(Access, "Read-Write") is Access.READ_WRITE
    assert to_enum(EnumUsage, "read-write") is EnumUsage.READ_WRITE


def test_to_enum_invalid():
    with pytest.raises(UnknownEnumValueError):
        to_enum(Access, "read-sometimes")


def test_format_pattern():
    assert format_pattern(0b100, 0b010) == "#1x0"
    assert format_pattern(5, 0) == "5"
    assert to_int_pattern(format_pattern(0b1000, 0b0011)) == (0b1000, 0b1011)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("0-3", ["0", "1", "2", "3"]),
        ("A-C", ["A", "B", "C"]),
        ("A,B,C", ["A", "B", "C"]),
        ("RX, TX", ["RX", "TX"]),
        ("3-5", ["3", "4", "5"]),
    ],
)
def test_parse_dim_index(text, expected):
    assert parse_dim_index(text) == expected


def test_format_dim_index():
    assert format_dim_index(["0", "1", "2"]) == "0-2"
    assert format_dim_index(["A", "B"]) == "A,B"
    assert format_dim_index(["1", "3"]) == "1,3"
