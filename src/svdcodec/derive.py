# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Resolution of derivedFrom references.

Resolution runs as a separate pass over an already built device tree. Every named element is
first indexed by its path, and each derived element then inherits the values it does not set
itself from the element its derivedFrom reference points to.
"""

from __future__ import annotations

import copy
import dataclasses as dc
import enum
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

import svdcodec

from .cluster import ClusterInfo, RegisterCluster
from .device import Device
from .enumerated_values import EnumeratedValues
from .errors import DerivationError
from .field import FieldInfo
from .path import SvdPath
from .peripheral import PeripheralInfo
from .properties import RegisterProperties
from .register import RegisterInfo
from .validation import ValidateLevel

Derivable = Union[PeripheralInfo, ClusterInfo, RegisterInfo, FieldInfo, EnumeratedValues]

# Values that are never inherited from the base element.
_NOT_INHERITED = frozenset({"name", "derived_from", "comments"})

# Additional per-type values that are never inherited.
_NOT_INHERITED_BY_TYPE: Dict[type, frozenset] = {
    PeripheralInfo: frozenset({"interrupts"}),
}


def resolve_derivations(device: Device, level: ValidateLevel = ValidateLevel.WEAK) -> Device:
    """
    Resolve every derivedFrom reference in the device.

    An unqualified reference ("NAME") is looked up among the siblings of the derived element and
    then among the peripherals of the device. A qualified reference ("PERIPH.REG") is looked up
    from the device root, and then relative to each enclosing element from the innermost
    outwards. The element found must be of the same kind as the derived element.

    :param device: Device to resolve. Not modified.
    :param level: Validation level. At the strict level, a reference that cannot be resolved or
        that is part of a derivation cycle is an error. At other levels such references are
        logged and the derived element is left as it is.
    :raises DerivationError: If a reference cannot be resolved at the strict level.
    :return: Copy of the device with inherited values filled in.
    """
    resolved = copy.deepcopy(device)
    resolver = _Resolver(level)
    resolver.index(resolved)
    resolver.resolve_all()
    return resolved


class _State(enum.Enum):
    VISITING = enum.auto()
    DONE = enum.auto()


@dataclass
class _Node:
    path: SvdPath
    parent: Optional[SvdPath]
    entity: Derivable
    children: List[_Node] = dc.field(default_factory=list)


class _Resolver:
    def __init__(self, level: ValidateLevel) -> None:
        self._level = level
        self._by_path: Dict[SvdPath, _Node] = {}
        self._roots: List[_Node] = []
        self._state: Dict[int, _State] = {}

    def index(self, device: Device) -> None:
        for peripheral in device.peripherals:
            node = self._add(SvdPath(peripheral.name), None, peripheral.info)
            self._roots.append(node)
            node.children = self._index_registers(node.path, peripheral.info.registers or ())

    def _index_registers(
        self, parent: SvdPath, children: Iterable[RegisterCluster]
    ) -> List[_Node]:
        nodes = []
        for child in children:
            node = self._add(parent.join(child.name), parent, child.info)
            match child.info:
                case ClusterInfo(children=grandchildren):
                    node.children = self._index_registers(node.path, grandchildren)
                case RegisterInfo(fields=fields):
                    node.children = [self._index_field(node.path, f.info) for f in fields or ()]
            nodes.append(node)
        return nodes

    def _index_field(self, parent: SvdPath, field: FieldInfo) -> _Node:
        node = self._add(parent.join(field.name), parent, field)
        for i, enums in enumerate(field.enumerated_values):
            # Unnamed sets can not be referenced, but can themselves be derived
            key = enums.name if enums.name else f"#{i}"
            node.children.append(self._add(node.path.join(key), node.path, enums))
        return node

    def _add(self, path: SvdPath, parent: Optional[SvdPath], entity: Derivable) -> _Node:
        node = _Node(path, parent, entity)
        self._by_path.setdefault(path, node)
        return node

    def resolve_all(self) -> None:
        for node in self._roots:
            self._resolve(node)

    def _resolve(self, node: _Node) -> None:
        """Resolve the node and everything below it."""
        key = id(node.entity)
        if key in self._state:
            return

        self._state[key] = _State.VISITING

        reference = node.entity.derived_from
        if reference is not None:
            base = self._lookup(node, reference)
            if base is None:
                self._fail(node, "no element of the same kind found")
            elif self._state.get(id(base.entity)) is _State.VISITING:
                self._fail(node, "derivation cycle")
            else:
                self._resolve(base)
                _inherit(node.entity, base.entity)

        for child in node.children:
            self._resolve(child)

        self._state[key] = _State.DONE

    def _lookup(self, node: _Node, reference: str) -> Optional[_Node]:
        try:
            path = SvdPath(reference)
        except ValueError:
            return None

        candidates = []
        if path.is_qualified:
            candidates.append(path)
            scope = node.parent
            while scope is not None:
                candidates.append(scope.join(path))
                scope = scope.parent
        else:
            if node.parent is not None:
                candidates.append(node.parent.join(path))
            candidates.append(path)

        for candidate in candidates:
            base = self._by_path.get(candidate)
            if (
                base is not None
                and base.entity is not node.entity
                and type(base.entity) is type(node.entity)
            ):
                return base

        return None

    def _fail(self, node: _Node, explanation: str) -> None:
        reference = node.entity.derived_from
        assert reference is not None

        if self._level.is_strict():
            raise DerivationError(reference, str(node.path), explanation)

        svdcodec.log.warning(
            f"Ignoring derivedFrom='{reference}' of {node.path}: {explanation}"
        )


def _inherit(derived: Any, base: Any) -> None:
    """
    Set every value of the derived element that is not set from the base element.
    Collections are inherited wholesale, and only if the derived element has none of its own.
    """
    skip = _NOT_INHERITED | _NOT_INHERITED_BY_TYPE.get(type(derived), frozenset())

    for field in dc.fields(derived):
        if field.name in skip:
            continue

        value = getattr(derived, field.name)
        base_value = getattr(base, field.name)

        if isinstance(value, RegisterProperties):
            setattr(derived, field.name, value.inherit(base_value))
        elif value is None or (isinstance(value, list) and not value):
            setattr(derived, field.name, copy.deepcopy(base_value))
