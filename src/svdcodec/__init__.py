# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from .enums import (
    Access,
    ReadAction,
    WriteAction,
    EnumUsage,
    AddressBlockUsage,
    Protection,
    Endian,
    DataType,
    CpuName,
)
from .errors import (
    NodeLocation,
    SvdError,
    SvdParseError,
    SvdParseErrors,
    SvdValueError,
    SvdValidationError,
    UninitializedError,
)
from .validation import ValidateLevel
from .array import (
    Array,
    DimArrayIndex,
    DimElement,
    MaybeArray,
    Single,
    compact,
    expand,
)
from .properties import RegisterProperties, WriteConstraint
from .enumerated_value import EnumeratedValue
from .enumerated_values import EnumeratedValues
from .field import BitRange, BitRangeType, Field, FieldInfo
from .register import Register, RegisterInfo
from .cluster import Cluster, ClusterInfo, RegisterCluster
from .peripheral import AddressBlock, Interrupt, Peripheral, PeripheralInfo
from .device import Cpu, Device
from .path import SvdPath
from .derive import resolve_derivations
from .parsing import Options, parse, parse_element, parse_string
from .encoding import EncodeOptions, encode, encode_element, merge_element, to_string

import importlib.metadata
import logging

__version__ = importlib.metadata.version("svdcodec")


def _init_logger() -> logging.Logger:
    formatter = logging.Formatter("{message}", style="{")
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    logger = logging.getLogger("svdcodec")
    logger.setLevel(logging.ERROR)
    logger.addHandler(handler)

    return logger


# logging.Logger instance used for log output from svdcodec
log = _init_logger()

__all__ = [
    # from enums
    "Access",
    "ReadAction",
    "WriteAction",
    "EnumUsage",
    "AddressBlockUsage",
    "Protection",
    "Endian",
    "DataType",
    "CpuName",
    # from errors
    "NodeLocation",
    "SvdError",
    "SvdParseError",
    "SvdParseErrors",
    "SvdValueError",
    "SvdValidationError",
    "UninitializedError",
    # from validation
    "ValidateLevel",
    # from array
    "Array",
    "DimArrayIndex",
    "DimElement",
    "MaybeArray",
    "Single",
    "compact",
    "expand",
    # from properties
    "RegisterProperties",
    "WriteConstraint",
    # entities
    "EnumeratedValue",
    "EnumeratedValues",
    "BitRange",
    "BitRangeType",
    "Field",
    "FieldInfo",
    "Register",
    "RegisterInfo",
    "Cluster",
    "ClusterInfo",
    "RegisterCluster",
    "AddressBlock",
    "Interrupt",
    "Peripheral",
    "PeripheralInfo",
    "Cpu",
    "Device",
    # from path
    "SvdPath",
    # from derive
    "resolve_derivations",
    # from parsing
    "Options",
    "parse",
    "parse_element",
    "parse_string",
    # from encoding
    "EncodeOptions",
    "encode",
    "encode_element",
    "merge_element",
    "to_string",
    # other
    "log",
    "__version__",
]
