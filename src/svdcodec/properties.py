# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Property groups shared by several entity types.
"""

from __future__ import annotations

import dataclasses as dc
import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from .enums import Access, Protection
from .errors import BitRangeError, OutOfRangeError, SvdValidationError
from .validation import ValidateLevel


@dataclass
class RegisterProperties:
    """
    Common SVD device/peripheral/cluster/register level properties.
    Properties that are not set are inherited from the enclosing element.
    """

    # Size of the register in bits.
    size: Optional[int] = None

    # Access rights of the register.
    access: Optional[Access] = None

    # Protection level of the register.
    protection: Optional[Protection] = None

    # Reset value of the register.
    reset_value: Optional[int] = None

    # Bits of the register that have a defined reset value.
    reset_mask: Optional[int] = None

    def inherit(self, base: RegisterProperties) -> RegisterProperties:
        """
        :param base: Properties to inherit from.
        :return: Properties with every value not set here taken from the base.
        """
        return RegisterProperties(
            size=self.size if self.size is not None else base.size,
            access=self.access if self.access is not None else base.access,
            protection=(
                self.protection if self.protection is not None else base.protection
            ),
            reset_value=(
                self.reset_value if self.reset_value is not None else base.reset_value
            ),
            reset_mask=(
                self.reset_mask if self.reset_mask is not None else base.reset_mask
            ),
        )

    def validate(self, level: ValidateLevel) -> None:
        if not level.is_strict():
            return

        if self.size is None:
            return
        if self.size < 1:
            raise BitRangeError("register", f"<{self.size}>")

        valid_range = range(0, 1 << self.size)
        for value in (self.reset_value, self.reset_mask):
            if value is not None and value not in valid_range:
                raise OutOfRangeError(value, valid_range)


class RegisterPropertiesBuilderMixin:
    """
    Fluent setters for the individual register properties of a builder.
    Individually set properties are overlaid on the property group when the entity is built or
    modified, so that properties which were not set keep their current values.
    """

    def __init__(self, **values: Any) -> None:
        self._property_changes: Dict[str, Any] = {}
        super().__init__(**values)  # type: ignore

    def _set_property(self, **changes: Any) -> Any:
        self._property_changes.update(changes)
        return self

    def size(self, value: Optional[int]) -> Any:
        return self._set_property(size=value)

    def access(self, value: Optional[Access]) -> Any:
        return self._set_property(access=value)

    def protection(self, value: Optional[Protection]) -> Any:
        return self._set_property(protection=value)

    def reset_value(self, value: Optional[int]) -> Any:
        return self._set_property(reset_value=value)

    def reset_mask(self, value: Optional[int]) -> Any:
        return self._set_property(reset_mask=value)

    def explicit_values(self) -> Dict[str, Any]:
        values = super().explicit_values()  # type: ignore
        if self._property_changes:
            base = values.get("properties") or RegisterProperties()
            values["properties"] = dc.replace(base, **self._property_changes)
        return values

    def updates_for(self, entity: Any) -> Dict[str, Any]:
        updates = super().updates_for(entity)  # type: ignore
        if self._property_changes and not self.is_set("properties"):  # type: ignore
            updates["properties"] = dc.replace(entity.properties, **self._property_changes)
        return updates

    def __eq__(self, other: Any) -> bool:
        return (
            super().__eq__(other)  # type: ignore
            and self._property_changes == other._property_changes
        )


@enum.unique
class WriteConstraintType(enum.Enum):
    """Type of write constraint for a register or field."""

    # Only the last read value can be written.
    WRITE_AS_READ = "writeAsRead"
    # Only enumerated values can be written.
    USE_ENUMERATED_VALUES = "useEnumeratedValues"
    # Only values within a given range can be written.
    RANGE = "range"


@dataclass(frozen=True)
class WriteConstraintRange:
    """Value range constraint for a register or field."""

    minimum: int
    maximum: int


@dataclass(frozen=True)
class WriteConstraint:
    """Constraint on the values permitted to be written to a register or field."""

    kind: WriteConstraintType

    # Flag value for WRITE_AS_READ and USE_ENUMERATED_VALUES, range for RANGE.
    value: Union[bool, WriteConstraintRange]

    @classmethod
    def write_as_read(cls, value: bool = True) -> WriteConstraint:
        return cls(WriteConstraintType.WRITE_AS_READ, value)

    @classmethod
    def use_enumerated_values(cls, value: bool = True) -> WriteConstraint:
        return cls(WriteConstraintType.USE_ENUMERATED_VALUES, value)

    @classmethod
    def range(cls, minimum: int, maximum: int) -> WriteConstraint:
        return cls(WriteConstraintType.RANGE, WriteConstraintRange(minimum, maximum))

    def validate(self, level: ValidateLevel) -> None:
        if not level.is_strict():
            return

        is_range = isinstance(self.value, WriteConstraintRange)
        if is_range != (self.kind is WriteConstraintType.RANGE):
            raise SvdValidationError(
                f"WriteConstraint: value {self.value!r} does not match kind {self.kind.name}"
            )
        if isinstance(self.value, WriteConstraintRange):
            if self.value.minimum > self.value.maximum:
                raise OutOfRangeError(
                    self.value.minimum, range(self.value.minimum, self.value.maximum + 1)
                )


def or_empty(properties: Optional[RegisterProperties]) -> RegisterProperties:
    """Replace a missing property group with one where nothing is set."""
    return properties if properties is not None else RegisterProperties()
