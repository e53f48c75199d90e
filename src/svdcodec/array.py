# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Dimensioned (array) elements.

A peripheral, cluster, register or field is either a Single element or an Array element that
describes several otherwise identical elements placed at a fixed stride.
Arrays can be expanded into the elements they describe, and families of uniformly spaced single
elements can be compacted back into an array.
"""

from __future__ import annotations

import copy
import dataclasses as dc
import os
import re
import string
from dataclasses import dataclass
from typing import (
    Any,
    Generic,
    Iterator,
    List,
    Optional,
    Protocol,
    Sequence,
    TypeVar,
)

from typing_extensions import Self

import svdcodec

from ._builder import Buildable, Builder, Prop, builder_for
from .enumerated_value import EnumeratedValue
from .errors import DimensionError
from .validation import ValidateLevel, check_dimable_name, check_unique_names

# Placeholder replaced by the array index in the names of array elements.
PLACEHOLDER = "%s"

# Placeholder used by array elements that map to C arrays.
ARRAY_PLACEHOLDER = "[%s]"

_RANGE_NUMERIC = re.compile(r"(?P<start>[0-9]+)\s*-\s*(?P<end>[0-9]+)")
_RANGE_LETTERS = re.compile(r"(?P<start>[A-Z])\s*-\s*(?P<end>[A-Z])")
_INDEX_TOKEN = re.compile(r"[_A-Za-z0-9]+")

# Descriptive texts that may contain the placeholder.
_INDEXED_TEXTS = ("display_name", "description")


def parse_dim_index(text: str) -> List[str]:
    """
    Convert the text of a dimIndex element to the list of indices it denotes.
    Accepts comma separated lists ("A,B,C") and ranges ("0-3", "A-D").
    """
    text = text.strip()

    if "," in text:
        return [part.strip() for part in text.split(",")]

    if (match := _RANGE_NUMERIC.fullmatch(text)) is not None:
        start, end = int(match["start"]), int(match["end"])
        return [str(i) for i in range(start, end + 1)]

    if (match := _RANGE_LETTERS.fullmatch(text)) is not None:
        letters = string.ascii_uppercase
        start, end = letters.index(match["start"]), letters.index(match["end"])
        return list(letters[start : end + 1])

    return [text]


def format_dim_index(indices: Sequence[str]) -> str:
    """Inverse of parse_dim_index(). Contiguous numeric indices are written as a range."""
    if len(indices) > 1 and all(i.isdigit() for i in indices):
        start = int(indices[0])
        if [str(start + n) for n in range(len(indices))] == list(indices):
            return f"{start}-{start + len(indices) - 1}"
    return ",".join(indices)


def format_array_name(name: str, index: str) -> str:
    """Name of the element at the given index of an array with the given declared name."""
    if PLACEHOLDER not in name:
        return f"{name}{index}"
    return name.replace(ARRAY_PLACEHOLDER, index).replace(PLACEHOLDER, index)


@dataclass
class DimArrayIndex:
    """Enumeration describing the indices of an array."""

    # Name of the enumeration in a generated header file.
    header_enum_name: Optional[str] = None

    # Names and values of the indices.
    values: List[EnumeratedValue] = dc.field(default_factory=list)


@dataclass
class DimElement(Buildable):
    """Dimension information of an array element."""

    # Number of elements in the array.
    dim: int

    # Address (or bit) increment between consecutive elements.
    dim_increment: int

    # Index strings substituted into the element names. None means 0..dim-1.
    dim_index: Optional[List[str]] = None

    # Name of the C type generated for the array element.
    dim_name: Optional[str] = None

    # Enumeration of the array indices.
    dim_array_index: Optional[DimArrayIndex] = None

    def indexes(self) -> List[str]:
        """Index strings of the elements in the array."""
        if self.dim_index is not None:
            return list(self.dim_index)
        return [str(i) for i in range(self.dim)]

    def offsets(self) -> List[int]:
        """Offsets of the elements relative to the first element."""
        return [i * self.dim_increment for i in range(self.dim)]

    def validate(self, level: ValidateLevel) -> None:
        if level.is_disabled():
            return

        if level.is_strict():
            if self.dim < 1:
                raise DimensionError(f"dim must be at least 1, got {self.dim}")
            if self.dim_increment < 0:
                raise DimensionError(f"negative dimIncrement {self.dim_increment}")
            if self.dim_index is not None:
                if len(self.dim_index) != self.dim:
                    raise DimensionError(
                        f"dimIndex has {len(self.dim_index)} entries but dim is {self.dim}"
                    )
                check_unique_names(self.dim_index, "dimIndex")


@builder_for(DimElement)
class DimElementBuilder(Builder[DimElement]):
    """Builder for DimElement."""

    dim: Prop[int] = Prop(required=True)
    dim_increment: Prop[int] = Prop(required=True)
    dim_index: Prop[Optional[List[str]]] = Prop()
    dim_name: Prop[Optional[str]] = Prop(empty_to_none=True)
    dim_array_index: Prop[Optional[DimArrayIndex]] = Prop()


class DimableInfo(Protocol):
    """Properties of an entity that can be dimensioned."""

    name: str

    @property
    def dim_offset(self) -> int:
        """Offset that the array stride is applied to."""
        ...

    def with_dim(self, name: str, offset: int) -> Self:
        """Copy of the entity with a different name and offset."""
        ...

    def validate(self, level: ValidateLevel) -> None:
        ...

    def validate_all(self, level: ValidateLevel, *context: Any) -> None:
        ...


InfoT = TypeVar("InfoT", bound=DimableInfo)


class MaybeArray(Generic[InfoT]):
    """Common functionality of the Single and Array variants."""

    info: InfoT

    @property
    def name(self) -> str:
        return self.info.name

    @property
    def derived_from(self) -> Optional[str]:
        return getattr(self.info, "derived_from", None)

    @property
    def comments(self) -> List[str]:
        return getattr(self.info, "comments", [])

    def names(self) -> List[str]:
        """Names of the elements described, after array expansion."""
        match self:
            case Array(info=info, dim=dim):
                return [format_array_name(info.name, i) for i in dim.indexes()]
            case _:
                return [self.info.name]

    def to_builder(self) -> Any:
        """:return: A builder for the element properties."""
        return self.info.to_builder()  # type: ignore

    def modify_from(self, builder: Builder, level: ValidateLevel = ValidateLevel.WEAK) -> None:
        """
        Overlay the values explicitly set in the builder onto the element properties and
        revalidate the whole element.
        """
        info = copy.copy(self.info)
        info.modify_from(builder, level)  # type: ignore
        dc.replace(self, info=info).validate(level)  # type: ignore
        self.info = info

    def validate(self, level: ValidateLevel) -> None:
        self.info.validate(level)

        match self:
            case Array(info=info, dim=dim):
                dim.validate(level)
                if level.is_strict():
                    check_dimable_name(info.name, "name")
                    check_unique_names(self.names(), "array element")

    def validate_all(self, level: ValidateLevel, *context: Any) -> None:
        """
        Validate the element and everything it contains.
        Any context is passed on to the validation of the element properties.
        """
        self.info.validate_all(level, *context)
        self.validate(level)


@dataclass
class Single(MaybeArray[InfoT]):
    """A single, non-repeated element."""

    info: InfoT


@dataclass
class Array(MaybeArray[InfoT]):
    """An element repeated dim times at a fixed stride."""

    info: InfoT
    dim: DimElement


def expand(element: MaybeArray[InfoT]) -> Iterator[Single[InfoT]]:
    """
    Expand an element into the single elements it describes.
    The element itself is not modified.
    """
    match element:
        case Single():
            yield element
        case Array(info=info, dim=dim):
            for index, offset in zip(dim.indexes(), dim.offsets()):
                expanded = info.with_dim(
                    format_array_name(info.name, index), info.dim_offset + offset
                )
                yield Single(_substitute_index(expanded, index))


def expand_all(elements: Sequence[MaybeArray[InfoT]]) -> List[Single[InfoT]]:
    return [single for element in elements for single in expand(element)]


def _substitute_index(info: InfoT, index: str) -> InfoT:
    """Replace the placeholder in the descriptive texts of an expanded element."""
    changes = {}
    for name in _INDEXED_TEXTS:
        text = getattr(info, name, None)
        if isinstance(text, str) and PLACEHOLDER in text:
            changes[name] = text.replace(ARRAY_PLACEHOLDER, index).replace(PLACEHOLDER, index)
    if not changes:
        return info
    return dc.replace(info, **changes)  # type: ignore


def compact(elements: Sequence[MaybeArray[InfoT]]) -> List[MaybeArray[InfoT]]:
    """
    Compact runs of single elements that form a uniform array into Array elements.
    Elements that do not form part of such a run are returned unchanged. Compaction is best
    effort, failing to find an array is not an error.
    """
    result: List[MaybeArray[InfoT]] = []
    start = 0

    while start < len(elements):
        end = _uniform_run_end(elements, start)
        array = None
        while end - start >= 2:
            array = _compact_run(elements[start:end])
            if array is not None:
                break
            end -= 1

        if array is None:
            result.append(elements[start])
            start += 1
        else:
            svdcodec.log.debug(
                f"Compacted {end - start} elements into array {array.info.name}"
            )
            result.append(array)
            start = end

    return result


def _uniform_run_end(elements: Sequence[MaybeArray[Any]], start: int) -> int:
    """Index one past the last element of the uniformly spaced run beginning at start."""
    first = elements[start]
    if not isinstance(first, Single) or start + 1 >= len(elements):
        return start + 1

    second = elements[start + 1]
    if not isinstance(second, Single) or type(second.info) is not type(first.info):
        return start + 1

    stride = second.info.dim_offset - first.info.dim_offset
    if stride <= 0:
        return start + 1

    template = _shape(first.info)
    end = start + 1
    while end < len(elements):
        candidate = elements[end]
        if (
            not isinstance(candidate, Single)
            or type(candidate.info) is not type(first.info)
            or candidate.info.dim_offset != first.info.dim_offset + (end - start) * stride
            or _shape(candidate.info) != template
        ):
            break
        end += 1

    return end


def _shape(info: Any) -> Any:
    """The element with everything that may vary across an array zeroed out."""
    shape = info.with_dim("", 0)
    texts = {name: None for name in _INDEXED_TEXTS if hasattr(shape, name)}
    return dc.replace(shape, **texts) if texts else shape


def _compact_run(run: Sequence[MaybeArray[InfoT]]) -> Optional[Array[InfoT]]:
    """Try to build an array element describing all elements of a uniform run."""
    names = [element.info.name for element in run]
    pattern = _name_pattern(names)
    if pattern is None:
        return None

    name, indices = pattern
    first = run[0].info
    stride = run[1].info.dim_offset - first.dim_offset
    dim_index = None if indices == [str(i) for i in range(len(run))] else indices

    info = first.with_dim(name, first.dim_offset)
    texts = {}
    for text_name in _INDEXED_TEXTS:
        if not hasattr(first, text_name):
            continue
        template = _text_template([getattr(e.info, text_name) for e in run], indices)
        if template is None:
            return None
        texts[text_name] = template
    if texts:
        info = dc.replace(info, **texts)  # type: ignore

    array = Array(
        info=info,
        dim=DimElement(dim=len(run), dim_increment=stride, dim_index=dim_index),
    )
    if [single.info for single in expand(array)] != [element.info for element in run]:
        return None
    return array


def _name_pattern(names: Sequence[str]) -> Optional[tuple[str, List[str]]]:
    """
    Find the declared array name and index list that produce the given names.
    Index boundaries are placed where a name does not continue a word or number across them,
    so "DMA_RX" and "DMA_TX" give "DMA_%s" rather than "DMA_%sX".

    :return: Tuple of the name (containing the placeholder) and the indices, or None.
    """
    prefix = os.path.commonprefix(list(names))
    suffix = os.path.commonprefix([n[len(prefix) :][::-1] for n in names])[::-1]
    indices = [n[len(prefix) : len(n) - len(suffix)] for n in names]

    if not all(_is_boundary(prefix, i + suffix) for i in indices):
        run = _same_class_run(prefix[::-1])[::-1]
        rest = prefix[: -len(run)]
        # Letters shared by every name only start the index after a separator or a number
        if run.isdigit() or (rest and not rest[-1].isalpha()):
            indices = [run + i for i in indices]
            prefix = rest

    if not all(_is_boundary(prefix + i, suffix) for i in indices):
        run = _same_class_run(suffix)
        indices = [i + run for i in indices]
        suffix = suffix[len(run) :]

    if not (prefix or suffix):
        return None
    if any(_INDEX_TOKEN.fullmatch(i) is None for i in indices):
        return None
    if len(set(indices)) != len(indices):
        return None
    if len({len(i) for i in indices}) != 1 and not all(i.isdigit() for i in indices):
        if not all(_is_boundary(prefix, i) and _is_boundary(i, suffix) for i in indices):
            return None

    return f"{prefix}{PLACEHOLDER}{suffix}", indices


def _is_boundary(left: str, right: str) -> bool:
    """True if splitting between the two strings does not split a word or a number."""
    if not left or not right:
        return True
    a, b = left[-1], right[0]
    return not (a.isalnum() and b.isalnum() and a.isdigit() == b.isdigit())


def _same_class_run(text: str) -> str:
    """The leading letters or leading digits of the text."""
    if not text or not text[0].isalnum():
        return ""
    digits = text[0].isdigit()
    end = 1
    while end < len(text) and text[end].isalnum() and text[end].isdigit() == digits:
        end += 1
    return text[:end]


def _text_template(texts: Sequence[Optional[str]], indices: Sequence[str]) -> Optional[str]:
    """
    Find the descriptive text that gives each of the texts when the placeholder in it is
    replaced by the corresponding index.
    """
    first = texts[0]
    if all(text == first for text in texts):
        return first
    if any(text is None for text in texts) or first is None:
        return None

    index = indices[0]
    candidates = [first.replace(index, PLACEHOLDER)]
    start = first.find(index)
    while start != -1:
        candidates.append(first[:start] + PLACEHOLDER + first[start + len(index) :])
        start = first.find(index, start + 1)

    for candidate in candidates:
        if all(candidate.replace(PLACEHOLDER, i) == t for i, t in zip(indices, texts)):
            return candidate
    return None
