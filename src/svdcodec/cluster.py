# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import dataclasses as dc
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Union

from typing_extensions import Self

from ._builder import Buildable, Builder, Prop, builder_for
from .array import Array, DimElement, MaybeArray, Single, expand_all
from .errors import EmptyCollectionError
from .properties import RegisterProperties, RegisterPropertiesBuilderMixin, or_empty
from .register import Register, RegisterInfo
from .validation import (
    ValidateLevel,
    check_derived_name,
    check_dimable_name,
    check_unique_names,
)


@dataclass
class ClusterInfo(Buildable):
    """A named group of registers (and nested clusters) at an address offset."""

    # Name of the cluster.
    name: str

    # Address offset of the cluster, relative to the enclosing peripheral or cluster.
    address_offset: int

    # Description of the cluster.
    description: Optional[str] = None

    # Name of a cluster occupying the same addresses as this cluster.
    alternate_cluster: Optional[str] = None

    # Name of the C struct used to represent the cluster.
    header_struct_name: Optional[str] = None

    # Name or path of the cluster this cluster is derived from.
    derived_from: Optional[str] = None

    # Register properties inherited by the registers in the cluster.
    properties: RegisterProperties = dc.field(default_factory=RegisterProperties)

    # Registers and clusters in the cluster, in document order.
    children: List[RegisterCluster] = dc.field(default_factory=list)

    # Comments preceding the element in the source document.
    comments: List[str] = dc.field(default_factory=list, compare=False)

    @property
    def dim_offset(self) -> int:
        return self.address_offset

    def with_dim(self, name: str, offset: int) -> Self:
        return dc.replace(self, name=name, address_offset=offset)

    def single(self) -> Cluster:
        return Single(self)

    def array(self, dim: DimElement) -> Cluster:
        return Array(self, dim)

    def registers(self) -> Iterator[Register]:
        """Registers that are direct children of the cluster."""
        return (c for c in self.children if is_register(c))  # type: ignore

    def clusters(self) -> Iterator[Cluster]:
        """Clusters that are direct children of the cluster."""
        return (c for c in self.children if is_cluster(c))  # type: ignore

    def validate(self, level: ValidateLevel) -> None:
        if level.is_disabled():
            return

        if level.is_strict():
            check_dimable_name(self.name, "name")
            if self.derived_from is not None:
                check_derived_name(self.derived_from, "derivedFrom")
            self.properties.validate(level)
            if not self.children and self.derived_from is None:
                raise EmptyCollectionError("register")
            check_children_names(self.children)

    def validate_all(
        self, level: ValidateLevel, inherited: Optional[RegisterProperties] = None
    ) -> None:
        properties = self.properties.inherit(inherited or RegisterProperties())
        for child in self.children:
            child.validate_all(level, properties)
        self.validate(level)


@builder_for(ClusterInfo)
class ClusterInfoBuilder(RegisterPropertiesBuilderMixin, Builder[ClusterInfo]):
    """Builder for ClusterInfo."""

    name: Prop[str] = Prop(required=True)
    address_offset: Prop[int] = Prop(required=True)
    description: Prop[Optional[str]] = Prop(empty_to_none=True)
    alternate_cluster: Prop[Optional[str]] = Prop(empty_to_none=True)
    header_struct_name: Prop[Optional[str]] = Prop(empty_to_none=True)
    derived_from: Prop[Optional[str]] = Prop(empty_to_none=True)
    properties: Prop[RegisterProperties] = Prop(converter=or_empty)
    children: Prop[List[RegisterCluster]] = Prop()
    comments: Prop[List[str]] = Prop()


# A single cluster or an array of clusters at a fixed address stride.
Cluster = MaybeArray[ClusterInfo]

# Element of a register tree.
RegisterCluster = Union[Register, Cluster]


def is_register(element: RegisterCluster) -> bool:
    return isinstance(element.info, RegisterInfo)


def is_cluster(element: RegisterCluster) -> bool:
    return isinstance(element.info, ClusterInfo)


def check_children_names(children: Sequence[RegisterCluster]) -> None:
    """:raises DuplicateNameError: If two registers/clusters share a name after expansion."""
    check_unique_names((c.name for c in expand_all(children)), "register or cluster")
