# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Dotted paths used to refer to SVD elements by name.
"""

from __future__ import annotations

from itertools import chain
from typing import Any, List, Optional, Sequence, Tuple, Union, overload

from typing_extensions import Self


class SvdPath(Sequence[str]):
    """
    Path to a named SVD element.
    An SvdPath like "PERIPH.CLUSTER.REG" refers to the element with name "REG" with a parent named
    "CLUSTER" inside the peripheral named "PERIPH".

    Paths refer to elements by their declared names, without considering array dimensions,
    corresponding directly to how the elements are structured in the SVD file.
    """

    __slots__ = "_parts"

    def __init__(self, *parts: Union[str, Sequence[str]]) -> None:
        split_parts: List[str] = []

        for part in parts:
            if isinstance(part, str):
                split_parts.extend(part.split("."))
            elif isinstance(part, SvdPath):
                split_parts.extend(part)
            else:
                sub_parts = (p.split(".") for p in part)
                split_parts.extend(chain.from_iterable(sub_parts))

        if not split_parts:
            raise ValueError(f"Empty {self.__class__.__name__} not allowed")

        if any(not p for p in split_parts):
            raise ValueError(f"Invalid {self.__class__.__name__} parts: {parts}")

        self._parts: Tuple[str, ...] = tuple(split_parts)

    @property
    def parts(self) -> Tuple[str, ...]:
        """:return: Path components."""
        return self._parts

    @property
    def name(self) -> str:
        """:return: Name of the element pointed to by the path."""
        return self._parts[-1]

    @property
    def parent(self) -> Optional[SvdPath]:
        """:return: Path to the parent element of this path, if it exists."""
        if len(self._parts) <= 1:
            return None
        return SvdPath(*self._parts[:-1])

    @property
    def is_qualified(self) -> bool:
        """True if the path has more than one component."""
        return len(self._parts) > 1

    def join(self, *other: Union[str, Sequence[str]]) -> Self:
        """:return: The path resulting from appending other to the end of this path."""
        return self.__class__(*self._parts, *other)

    @overload
    def __getitem__(self, item: int, /) -> str:
        ...

    @overload
    def __getitem__(self, item: slice, /) -> Self:
        ...

    def __getitem__(self, item: Union[int, slice], /) -> Union[str, Self]:
        if isinstance(item, slice):
            return self.__class__(*self._parts[item])
        return self._parts[item]

    def __len__(self) -> int:
        return len(self._parts)

    def __hash__(self) -> int:
        return hash(self._parts)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, SvdPath):
            return self._parts == other._parts
        if isinstance(other, str):
            return self._parts == tuple(other.split("."))
        return NotImplemented

    def __str__(self) -> str:
        return ".".join(self._parts)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({str(self)!r})"
