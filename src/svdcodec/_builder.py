# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Builder functionality shared by all the entity classes.

Every entity is created through a builder that records which values were explicitly set.
A value that was never set is distinguishable from one explicitly set to None, which is what
allows modify_from() to overlay only the values given to the builder.
"""

from __future__ import annotations

import dataclasses as dc
import inspect
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    Generic,
    Literal,
    Mapping,
    Optional,
    Type,
    TypeVar,
    overload,
)

from typing_extensions import Self

from .errors import UninitializedError
from .validation import ValidateLevel


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


# Sentinel value used to indicate that a builder value was never set.
MISSING = _Missing()

T = TypeVar("T")
B = TypeVar("B", bound="Builder")
E = TypeVar("E", bound="Buildable")


class Prop(Generic[T]):
    """Data descriptor that exposes a fluent setter for one builder value."""

    def __init__(
        self,
        *,
        required: bool = False,
        empty_to_none: bool = False,
        converter: Optional[Callable[[Any], T]] = None,
    ) -> None:
        """
        :param required: If True, building fails when the value is unset or None.
        :param empty_to_none: If True, an empty string is stored as None.
        :param converter: Optional callable applied to the value when it is read out.
        """
        self.name: str = ""
        self.required: bool = required
        self.empty_to_none: bool = empty_to_none
        self.converter: Optional[Callable[[Any], T]] = converter

    def __set_name__(self, owner: Type, name: str) -> None:
        self.name = name

    @overload
    def __get__(self, builder: Literal[None], owner: Optional[Type] = None) -> Self:
        ...

    @overload
    def __get__(self, builder: B, owner: Optional[Type] = None) -> Callable[[T], B]:
        ...

    def __get__(self, builder: Any, owner: Any = None) -> Any:
        if builder is None:
            # Accessed through the class object
            return self

        def setter(value: T) -> Any:
            builder._values[self.name] = value
            return builder

        setter.__name__ = self.name
        return setter

    def normalize(self, value: Any) -> Any:
        if self.empty_to_none and value == "":
            return None
        if self.converter is not None:
            return self.converter(value)
        return value


class Builder(Generic[E]):
    """
    Base class for entity builders.
    Subclasses declare their settable values as Prop class attributes and are bound to the entity
    class they build with the builder_for() decorator.
    """

    ENTITY: ClassVar[Type[Any]]
    _props: ClassVar[Dict[str, Prop]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._props = {
            name: prop
            for name, prop in inspect.getmembers(cls)
            if isinstance(prop, Prop)
        }

    def __init__(self, **values: Any) -> None:
        self._values: Dict[str, Any] = {}
        for name, value in values.items():
            if name not in self._props:
                raise TypeError(f"{self.__class__.__name__} has no value named '{name}'")
            self._values[name] = value

    @classmethod
    def props(cls) -> Mapping[str, Prop]:
        """Settable values of the builder, indexed by name."""
        return cls._props

    def is_set(self, name: str) -> bool:
        """Return True if the value with the given name was explicitly set."""
        return name in self._values

    def get(self, name: str, default: Any = MISSING) -> Any:
        return self._values.get(name, default)

    def explicit_values(self) -> Dict[str, Any]:
        """Values that were explicitly set on the builder, normalized."""
        return {
            name: self._props[name].normalize(value)
            for name, value in self._values.items()
        }

    def updates_for(self, entity: Any) -> Dict[str, Any]:
        """Values to overlay onto an existing entity when modifying it from the builder."""
        return self.explicit_values()

    def check_required(self, values: Mapping[str, Any], partial: bool = False) -> None:
        """
        :param values: Values to check.
        :param partial: If True, values that are absent from the mapping are allowed.
        :raises UninitializedError: If a required value is missing or None.
        """
        for name, prop in self._props.items():
            if not prop.required:
                continue
            if partial and name not in values:
                continue
            if values.get(name) is None:
                raise UninitializedError(name)

    def build(self, level: ValidateLevel = ValidateLevel.WEAK) -> E:
        """
        Validate and build the entity.

        :param level: Validation level.
        :raises UninitializedError: If a required value was not set.
        :raises SvdValidationError: If the entity is invalid at the given level.
        :return: The new entity.
        """
        values = self.explicit_values()
        self.check_required(values)
        entity = self.ENTITY(**values)
        entity.validate(level)
        return entity

    def __eq__(self, other: Any) -> bool:
        return type(self) is type(other) and self._values == other._values

    def __repr__(self) -> str:
        values_str = ", ".join(f"{k}={v!r}" for k, v in self._values.items())
        return f"{self.__class__.__name__}({values_str})"


class Buildable:
    """Common functionality for entities created through a builder."""

    BUILDER: ClassVar[Type[Builder]]

    @classmethod
    def builder(cls) -> Any:
        """:return: An empty builder for this entity type."""
        return cls.BUILDER()

    def to_builder(self) -> Any:
        """:return: A builder with every value of this entity set, for round-trip editing."""
        return self.BUILDER(
            **{name: getattr(self, name) for name in self.BUILDER.props()}
        )

    def modify_from(self, builder: Builder, level: ValidateLevel = ValidateLevel.WEAK) -> None:
        """
        Overlay the values explicitly set in the builder onto this entity and revalidate it.
        The entity is left untouched if the result is invalid.

        :param builder: Builder holding the values to change.
        :param level: Validation level.
        """
        updates = builder.updates_for(self)
        builder.check_required(updates, partial=True)

        candidate = dc.replace(self, **updates)  # type: ignore
        candidate.validate(level)

        for name, value in updates.items():
            setattr(self, name, value)

    def validate(self, level: ValidateLevel) -> None:
        raise NotImplementedError

    def validate_all(self, level: ValidateLevel) -> None:
        """Validate the entity and everything it contains."""
        self.validate(level)


def builder_for(
    entity_class: Type[Buildable],
) -> Callable[[Type[B]], Type[B]]:
    """Class decorator that binds a builder class to the entity class it builds."""

    def bind(builder_class: Type[B]) -> Type[B]:
        builder_class.ENTITY = entity_class
        entity_class.BUILDER = builder_class
        return builder_class

    return bind
