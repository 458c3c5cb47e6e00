# ==============================================
# Table Key Codec
# ==============================================
#
# PURPOSE:
#   Turn a logical (table_id, row key) pair into the byte key that
#   is written to the raw key-value engine, and compute the byte
#   range that covers every row of one table.
#
# WHY THIS MODULE EXISTS:
#   The raw engine only understands bytes ordered lexicographically.
#   A range scan over [start, end) must return exactly one table's
#   rows, and the placement rule for a table is expressed as the
#   same [start, end) interval. Both only work if the encoding
#   keeps ordering and never lets two tables interleave.
#
# LAYOUT:
# -------
#   encoded = encode_bytes(b"t" + encode_int(table_id) + b"_r" + raw_key)
#
#   - encode_int(v)   → 8 bytes big-endian of v with the sign bit
#                       flipped, so byte order == signed int order.
#   - encode_bytes(d) → memcomparable form: 8-byte groups, each
#                       followed by a marker byte (0xFF - pad count).
#                       Order-preserving and prefix-free.
#
# FUNCTIONS:
# ----------
# - encode_table_key(table_id, raw_key) -> bytes
# - encode_handle_key(table_id, handle_id) -> bytes
# - table_range(table_id) -> (start, end)
# - table_range_hex(table_id) -> (start_hex, end_hex)
# - decode_table_key(encoded) -> TableKey
# - decode_handle_key(encoded) -> TableKeyHandle
#
# CLASSES:
# --------
# - TableKey (frozen dataclass)
# - TableKeyHandle (frozen dataclass, TableKey + handle_id)
#
# ==============================================

import struct
from dataclasses import dataclass, field
from typing import Tuple

from table_placement.errors import DecodeError, EncodingViolation


INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
SIGN_MASK = 1 << 63

TABLE_PREFIX = b"t"
RECORD_PREFIX_SEP = b"_r"

ENC_GROUP_SIZE = 8
ENC_MARKER = 0xFF
ENC_PAD = 0x00

INT_SIZE = 8
RECORD_PREFIX_LEN = len(TABLE_PREFIX) + INT_SIZE + len(RECORD_PREFIX_SEP)


def _check_int64(name: str, value) -> int:
    # bool is an int subclass but never a valid id
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingViolation(f"{name} must be an int, got {type(value).__name__}")
    if value < INT64_MIN or value > INT64_MAX:
        raise EncodingViolation(f"{name} {value} is outside the signed 64-bit range")
    return value


def _check_bytes(name: str, value) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise EncodingViolation(f"{name} must be bytes, got {type(value).__name__}")
    return bytes(value)


# ==============================================
# Integer / bytes primitives
# ==============================================

def encode_int(value: int) -> bytes:
    """Fixed-width comparable encoding of a signed 64-bit integer."""
    value = _check_int64("value", value)
    return struct.pack(">Q", (value & 0xFFFFFFFFFFFFFFFF) ^ SIGN_MASK)


def decode_int(data: bytes) -> int:
    """Inverse of encode_int. Reads exactly 8 bytes."""
    if len(data) != INT_SIZE:
        raise DecodeError(f"comparable int needs {INT_SIZE} bytes, got {len(data)}")
    unsigned = struct.unpack(">Q", data)[0] ^ SIGN_MASK
    return unsigned - (1 << 64) if unsigned >= SIGN_MASK else unsigned


def encode_bytes(data: bytes) -> bytes:
    """
    Memcomparable encoding of an arbitrary byte string.

    Every 8-byte group is followed by a marker. A short (or empty)
    final group is zero padded and its marker is 0xFF minus the
    number of pad bytes, so a length multiple of 8 always ends with
    an all-padding group marked 0xF7.
    """
    data = _check_bytes("data", data)
    result = bytearray()
    for idx in range(0, len(data) + 1, ENC_GROUP_SIZE):
        group = data[idx:idx + ENC_GROUP_SIZE]
        pad_count = ENC_GROUP_SIZE - len(group)
        result += group
        result += bytes([ENC_PAD]) * pad_count
        result.append(ENC_MARKER - pad_count)
    return bytes(result)


def decode_bytes(data: bytes) -> Tuple[bytes, bytes]:
    """
    Decode one memcomparable byte string from the front of `data`.

    Returns:
        (decoded, remaining bytes after the encoded value)
    """
    decoded = bytearray()
    offset = 0
    while True:
        group = data[offset:offset + ENC_GROUP_SIZE + 1]
        if len(group) < ENC_GROUP_SIZE + 1:
            raise DecodeError("insufficient bytes to decode value")
        offset += ENC_GROUP_SIZE + 1

        pad_count = ENC_MARKER - group[ENC_GROUP_SIZE]
        if pad_count > ENC_GROUP_SIZE:
            raise DecodeError(f"invalid marker byte {group[ENC_GROUP_SIZE]:#04x}")

        real_size = ENC_GROUP_SIZE - pad_count
        decoded += group[:real_size]
        if pad_count:
            if any(b != ENC_PAD for b in group[real_size:ENC_GROUP_SIZE]):
                raise DecodeError("invalid padding bytes")
            return bytes(decoded), bytes(data[offset:])


# ==============================================
# Table prefixes and ranges
# ==============================================

def record_prefix(table_id: int) -> bytes:
    """b"t" + encode_int(table_id) + b"_r" (raw, not memcomparable)."""
    return TABLE_PREFIX + encode_int(_check_int64("table_id", table_id)) + RECORD_PREFIX_SEP


def next_table_prefix(table_id: int) -> bytes:
    """
    Smallest raw prefix strictly greater than every key of `table_id`.

    That is the bare prefix of the next table id. The largest id has
    no successor, so its bound is b"u", the first prefix past all of b"t...".
    """
    table_id = _check_int64("table_id", table_id)
    if table_id == INT64_MAX:
        return bytes([TABLE_PREFIX[0] + 1])
    return TABLE_PREFIX + encode_int(table_id + 1)


def encode_table_key(table_id: int, raw_key: bytes) -> bytes:
    return encode_bytes(record_prefix(table_id) + _check_bytes("raw_key", raw_key))


def encode_handle_key(table_id: int, handle_id: int) -> bytes:
    return encode_table_key(table_id, encode_int(_check_int64("handle_id", handle_id)))


def table_range(table_id: int) -> Tuple[bytes, bytes]:
    """Half-open [start, end) covering every encoded key of the table."""
    return encode_table_key(table_id, b""), encode_bytes(next_table_prefix(table_id))


def table_range_hex(table_id: int) -> Tuple[str, str]:
    """table_range() as lowercase hex strings, the form placement rules use."""
    start, end = table_range(table_id)
    return start.hex(), end.hex()


# ==============================================
# TableKey
# ==============================================

@dataclass(frozen=True)
class TableKey:
    """
    One addressable row (or row-range boundary) inside a logical table.

    `encoded` is derived from (table_id, raw_key) on construction and
    is the exact byte key placed into the raw engine.
    """
    table_id: int
    raw_key: bytes
    encoded: bytes = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "table_id", _check_int64("table_id", self.table_id))
        object.__setattr__(self, "raw_key", _check_bytes("raw_key", self.raw_key))
        object.__setattr__(self, "encoded", encode_table_key(self.table_id, self.raw_key))

    @classmethod
    def new(cls, table_id: int, raw_key: bytes) -> "TableKey":
        return cls(table_id=table_id, raw_key=raw_key)

    def encode_bytes(self) -> bytes:
        return self.encoded

    def __str__(self) -> str:
        return f"table_id: {self.table_id}, key: {self.raw_key!r}"


@dataclass(frozen=True)
class TableKeyHandle(TableKey):
    """TableKey whose raw key is the comparable encoding of an int64 handle."""
    handle_id: int = 0

    def __post_init__(self):
        handle_id = _check_int64("handle_id", self.handle_id)
        if _check_bytes("raw_key", self.raw_key) != encode_int(handle_id):
            raise EncodingViolation(
                f"raw_key does not encode handle {handle_id}; use TableKeyHandle.new()"
            )
        super().__post_init__()

    @classmethod
    def new(cls, table_id: int, handle_id: int) -> "TableKeyHandle":
        return cls(table_id=table_id, raw_key=encode_int(handle_id), handle_id=handle_id)

    def __str__(self) -> str:
        return f"table_id: {self.table_id}, handle: {self.handle_id}"


def decode_table_key(encoded: bytes) -> TableKey:
    """Parse an encoded row key back into its TableKey."""
    raw, rest = decode_bytes(_check_bytes("encoded", encoded))
    if rest:
        raise DecodeError(f"{len(rest)} trailing bytes after table key")
    if len(raw) < RECORD_PREFIX_LEN or not raw.startswith(TABLE_PREFIX):
        raise DecodeError("missing table prefix")
    if raw[1 + INT_SIZE:RECORD_PREFIX_LEN] != RECORD_PREFIX_SEP:
        raise DecodeError("missing record separator")
    table_id = decode_int(raw[1:1 + INT_SIZE])
    return TableKey(table_id=table_id, raw_key=raw[RECORD_PREFIX_LEN:])


def decode_handle_key(encoded: bytes) -> TableKeyHandle:
    """Parse an encoded handle key; the raw key must be exactly one int."""
    key = decode_table_key(encoded)
    handle_id = decode_int(key.raw_key)
    return TableKeyHandle.new(key.table_id, handle_id)
