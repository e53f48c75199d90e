# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Token types of the SVD format. Member values are the exact spelling used in SVD documents.
"""

from __future__ import annotations

import enum

from .primitives import CaseInsensitiveStrEnum


@enum.unique
class Access(CaseInsensitiveStrEnum):
    """
    Access rights of a register or field.
    See "accessType" in the SVD schema.
    """

    READ_ONLY = "read-only"
    WRITE_ONLY = "write-only"
    READ_WRITE = "read-write"
    # Only the first write after reset has an effect, reads are undefined.
    WRITE_ONCE = "writeOnce"
    # Only the first write after reset has an effect, reads are permitted.
    READ_WRITE_ONCE = "read-writeOnce"


@enum.unique
class ReadAction(CaseInsensitiveStrEnum):
    """
    Side effect of reading a register or field.
    See "readActionType" in the SVD schema.
    """

    CLEAR = "clear"
    SET = "set"
    MODIFY = "modify"
    # A resource other than the register itself is affected.
    MODIFY_EXTERNAL = "modifyExternal"


@enum.unique
class WriteAction(CaseInsensitiveStrEnum):
    """
    Side effect of writing a register or field.
    See "modifiedWriteValuesType" in the SVD schema.
    """

    ONE_TO_CLEAR = "oneToClear"
    ONE_TO_SET = "oneToSet"
    ONE_TO_TOGGLE = "oneToToggle"
    ZERO_TO_CLEAR = "zeroToClear"
    ZERO_TO_SET = "zeroToSet"
    ZERO_TO_TOGGLE = "zeroToToggle"
    CLEAR = "clear"
    SET = "set"
    MODIFY = "modify"


@enum.unique
class EnumUsage(CaseInsensitiveStrEnum):
    """
    Which accesses an enumeration applies to.
    See "enumUsageType" in the SVD schema.
    """

    READ = "read"
    WRITE = "write"
    READ_WRITE = "read-write"


@enum.unique
class AddressBlockUsage(CaseInsensitiveStrEnum):
    """
    What a peripheral address block is used for.
    See "addressBlockType" in the SVD schema.
    """

    REGISTERS = "registers"
    BUFFER = "buffer"
    RESERVED = "reserved"


@enum.unique
class Protection(CaseInsensitiveStrEnum):
    """
    Privilege required to access an address region.
    See "protectionStringType" in the SVD schema.
    """

    SECURE = "s"
    NON_SECURE = "n"
    PRIVILEGED = "p"


@enum.unique
class Endian(CaseInsensitiveStrEnum):
    """
    Processor endianness.
    See "endianType" in the SVD schema.
    """

    LITTLE = "little"
    BIG = "big"
    # Configurable, taking effect on the next reset.
    SELECTABLE = "selectable"
    OTHER = "other"


@enum.unique
class DataType(CaseInsensitiveStrEnum):
    """
    C data types a register can be accessed as.
    See "dataTypeType" in the SVD schema.
    """

    UINT8_T = "uint8_t"
    UINT16_T = "uint16_t"
    UINT32_T = "uint32_t"
    UINT64_T = "uint64_t"
    INT8_T = "int8_t"
    INT16_T = "int16_t"
    INT32_T = "int32_t"
    INT64_T = "int64_t"
    UINT8_PTR_T = "uint8_t *"
    UINT16_PTR_T = "uint16_t *"
    UINT32_PTR_T = "uint32_t *"
    UINT64_PTR_T = "uint64_t *"
    INT8_PTR_T = "int8_t *"
    INT16_PTR_T = "int16_t *"
    INT32_PTR_T = "int32_t *"
    INT64_PTR_T = "int64_t *"


@enum.unique
class CpuName(CaseInsensitiveStrEnum):
    """
    Processor names.
    See "cpuNameType" in the SVD schema.
    """

    CM0 = "CM0"
    CM0_PLUS_ = "CM0PLUS"
    CM0_PLUS = "CM0+"
    CM1 = "CM1"
    CM3 = "CM3"
    CM4 = "CM4"
    CM7 = "CM7"
    CM23 = "CM23"
    CM33 = "CM33"
    CM35P = "CM35P"
    CM55 = "CM55"
    CM85 = "CM85"
    SC000 = "SC000"
    SC300 = "SC300"
    ARMV8MML = "ARMV8MML"
    ARMV8MBL = "ARMV8MBL"
    ARMV81MML = "ARMV81MML"
    CA5 = "CA5"
    CA7 = "CA7"
    CA8 = "CA8"
    CA9 = "CA9"
    CA15 = "CA15"
    CA17 = "CA17"
    CA53 = "CA53"
    CA57 = "CA57"
    CA72 = "CA72"
    SMC1 = "SMC1"
    OTHER = "other"
