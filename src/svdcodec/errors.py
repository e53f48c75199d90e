# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Any, Iterable, List, NamedTuple, Optional, Sequence


class NodeLocation(NamedTuple):
    """Identifies the XML node an error originated from."""

    # Tag of the node.
    tag: str

    # Line in the source document, if known.
    line: Optional[int]

    # XPath of the node within its document.
    xpath: str

    def __str__(self) -> str:
        line_str = f" (line {self.line})" if self.line is not None else ""
        return f"{self.xpath}{line_str}"


class SvdError(Exception):
    """Base class for errors raised by the library."""

    ...


class SvdParseError(SvdError):
    """Raised when an error occurs during SVD parsing."""

    def __init__(self, message: Any, location: Optional[NodeLocation] = None) -> None:
        location_str = f" at {location}" if location is not None else ""
        super().__init__(f"{message}{location_str}")
        self.location: Optional[NodeLocation] = location


class SvdParseErrors(SvdParseError):
    """Raised when one or more entities in a list of siblings failed to parse."""

    def __init__(self, errors: Iterable[SvdParseError]) -> None:
        flat_errors: List[SvdParseError] = []
        for error in errors:
            if isinstance(error, SvdParseErrors):
                flat_errors.extend(error.errors)
            else:
                flat_errors.append(error)

        errors_str = "\n".join(f"  * {e}" for e in flat_errors)
        super().__init__(f"{len(flat_errors)} element(s) failed to parse:\n{errors_str}")
        self.location = flat_errors[0].location if flat_errors else None
        self.errors: Sequence[SvdParseError] = tuple(flat_errors)


class SvdValueError(SvdError, ValueError):
    """Raised when text in the document cannot be converted to the expected type."""

    KIND: str = "InvalidValue"

    def __init__(self, reason: str) -> None:
        super().__init__(f"{self.KIND}: {reason}")


class InvalidNumberError(SvdValueError):
    KIND = "InvalidNumber"

    def __init__(self, text: str) -> None:
        super().__init__(f"'{text}' is not a valid SVD integer")
        self.text = text


class InvalidBooleanValueError(SvdValueError):
    KIND = "InvalidBooleanValue"

    def __init__(self, text: str) -> None:
        super().__init__(f"'{text}' is not a valid SVD boolean")
        self.text = text


class UnknownEnumValueError(SvdValueError):
    KIND = "UnknownEnumValue"

    def __init__(self, kind: str, text: str) -> None:
        super().__init__(f"'{text}' is not a valid {kind}")
        self.text = text


class EmptyTagError(SvdValueError):
    KIND = "EmptyTag"

    def __init__(self, tag: str) -> None:
        super().__init__(f"<{tag}> has no text content")
        self.tag = tag


class MissingTagError(SvdValueError):
    KIND = "MissingTag"

    def __init__(self, tag: str) -> None:
        super().__init__(f"required element <{tag}> is missing")
        self.tag = tag


class UninitializedError(SvdError):
    """Raised when a builder is missing a value for a required field."""

    def __init__(self, field_name: str) -> None:
        super().__init__(f"Uninitialized: field '{field_name}' must be set")
        self.field_name = field_name


class SvdValidationError(SvdError, ValueError):
    """Raised when an entity violates an invariant at the requested validation level."""

    ...


class InvalidNameError(SvdValidationError):
    def __init__(self, name: str, tag: str) -> None:
        super().__init__(f"InvalidName: '{name}' is not a valid {tag}")
        self.name = name
        self.tag = tag


class AbsentValueError(SvdValidationError):
    def __init__(self) -> None:
        super().__init__("AbsentValue: EnumeratedValue has no 'value' or 'is_default'")


class ValueAndDefaultError(SvdValidationError):
    def __init__(self, value: Optional[int]) -> None:
        super().__init__(
            f"ValueAndDefault: EnumeratedValue with 'value' (passed {value}) "
            "should not have 'is_default' set"
        )
        self.value = value


class OutOfRangeError(SvdValidationError):
    def __init__(self, value: int, valid_range: range) -> None:
        super().__init__(
            f"OutOfRange: value {value} out of range "
            f"[{valid_range.start} - {valid_range.stop - 1}]"
        )
        self.value = value
        self.range = valid_range


class BitRangeError(SvdValidationError):
    def __init__(self, name: str, bit_range: Any, size: Optional[int] = None) -> None:
        if size is not None:
            reason = f"does not fit in a {size} bit register"
        else:
            reason = "is empty"
        super().__init__(f"BitRange: bit range {bit_range} of '{name}' {reason}")
        self.name = name
        self.bit_range = bit_range
        self.size = size


class DuplicateNameError(SvdValidationError):
    def __init__(self, name: str, tag: str) -> None:
        super().__init__(f"DuplicateName: more than one {tag} is named '{name}'")
        self.name = name
        self.tag = tag


class DuplicateDefaultError(SvdValidationError):
    def __init__(self, names: Sequence[str]) -> None:
        super().__init__(
            f"DuplicateDefault: enumerated values {', '.join(names)} are all marked as default"
        )
        self.names = names


class DuplicateValueError(SvdValidationError):
    def __init__(self, value: int) -> None:
        super().__init__(f"DuplicateValue: value {value} is enumerated more than once")
        self.value = value


class EmptyCollectionError(SvdValidationError):
    def __init__(self, tag: str) -> None:
        super().__init__(f"EmptyCollection: at least one <{tag}> is required")
        self.tag = tag


class DimensionError(SvdValidationError):
    def __init__(self, explanation: str) -> None:
        super().__init__(f"Dimension: {explanation}")


class EnumerationUsageError(SvdValidationError):
    def __init__(self, explanation: str) -> None:
        super().__init__(f"EnumerationUsage: {explanation}")


class DerivationError(SvdValidationError):
    def __init__(self, reference: str, path: Any, explanation: str = "") -> None:
        formatted_explanation = "" if not explanation else f" ({explanation})"
        super().__init__(
            f"Derivation: '{reference}' referenced by {path} could not be "
            f"resolved{formatted_explanation}"
        )
        self.reference = reference
        self.path = path
