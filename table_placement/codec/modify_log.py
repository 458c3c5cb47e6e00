# ==============================================
# Modification Log Codec
# ==============================================
#
# PURPOSE:
#   Encode / decode the value half of a write to the test engine's
#   "write" column family. The key half is a TableKey.
#
# WHY THIS MODULE EXISTS:
#   The engine under test folds these entries into per-column sums.
#   It only sees bytes, so the tag byte alone must say whether a
#   record is reset (DELETE) or a delta is added to a column (ADD).
#
# WIRE FORMAT:
# ------------
#   DELETE : [0x01]                                   → 1 byte
#   ADD    : [0x02][column_id: i64 LE][amount: i64 LE] → 17 bytes
#
#   Anything else (unknown tag, wrong total length) is rejected
#   with MalformedEntry. Never decoded as a default value.
#
# CLASSES:
# --------
# - ModifyType(IntEnum): DELETE = 1, ADD = 2
# - DeleteEntry (frozen dataclass)
# - AddDeltaEntry (frozen dataclass): column_id, amount
#
# FUNCTIONS:
# ----------
# - encode_delete() -> bytes
# - encode_add_delta(column_id, amount) -> bytes
# - decode(data) -> DeleteEntry | AddDeltaEntry
#
# ==============================================

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Union

from table_placement.codec.table_key import INT64_MAX, INT64_MIN, TableKey, _check_bytes
from table_placement.errors import EncodingViolation, MalformedEntry


class ModifyType(IntEnum):
    """Discriminant byte of a modification log entry."""
    DELETE = 1
    ADD = 2


_ADD_PAYLOAD = struct.Struct("<qq")

DELETE_ENTRY_SIZE = 1
ADD_ENTRY_SIZE = 1 + _ADD_PAYLOAD.size


@dataclass(frozen=True)
class DeleteEntry:
    """Remove / reset the record at the associated key."""
    key: Optional[TableKey] = field(default=None, compare=False, repr=False)

    @property
    def modify_type(self) -> ModifyType:
        return ModifyType.DELETE

    def encode(self) -> bytes:
        return bytes([ModifyType.DELETE])

    def __str__(self) -> str:
        return "Del"


@dataclass(frozen=True)
class AddDeltaEntry:
    """Add `amount` to column `column_id` of the record at the associated key."""
    column_id: int
    amount: int
    key: Optional[TableKey] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        for name in ("column_id", "amount"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise EncodingViolation(f"{name} must be an int, got {type(value).__name__}")
            if value < INT64_MIN or value > INT64_MAX:
                raise EncodingViolation(f"{name} {value} is outside the signed 64-bit range")

    @property
    def modify_type(self) -> ModifyType:
        return ModifyType.ADD

    def encode(self) -> bytes:
        return bytes([ModifyType.ADD]) + _ADD_PAYLOAD.pack(self.column_id, self.amount)

    def __str__(self) -> str:
        return f"Add col_{self.column_id} {self.amount}"


ModificationLogEntry = Union[DeleteEntry, AddDeltaEntry]


def encode_delete() -> bytes:
    return DeleteEntry().encode()


def encode_add_delta(column_id: int, amount: int) -> bytes:
    return AddDeltaEntry(column_id, amount).encode()


def decode(data: bytes) -> ModificationLogEntry:
    """
    Rebuild an entry from its wire form.

    Raises:
        EncodingViolation: `data` is not bytes, bytearray or memoryview.
        MalformedEntry: empty input, unknown tag, or a length that does
            not match the tag.
    """
    data = _check_bytes("data", data)
    if not data:
        raise MalformedEntry("empty modification log entry")

    tag = data[0]
    if tag == ModifyType.DELETE:
        if len(data) != DELETE_ENTRY_SIZE:
            raise MalformedEntry(
                f"delete entry must be {DELETE_ENTRY_SIZE} byte, got {len(data)}"
            )
        return DeleteEntry()

    if tag == ModifyType.ADD:
        if len(data) != ADD_ENTRY_SIZE:
            raise MalformedEntry(
                f"add entry must be {ADD_ENTRY_SIZE} bytes, got {len(data)}"
            )
        column_id, amount = _ADD_PAYLOAD.unpack(data[1:])
        return AddDeltaEntry(column_id, amount)

    raise MalformedEntry(f"unknown modification log tag {tag:#04x}")
