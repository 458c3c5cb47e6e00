# ==============================================
# CODEC: table keys + modification log entries
# ==============================================
#
# Pure, stateless byte encodings. No I/O.
#
# Modules:
# --------
# - table_key.py   → (table_id, row key) → ordered raw-engine key
# - modify_log.py  → DELETE / ADD value entries for the write CF
#
# ==============================================

from .table_key import (
    TableKey,
    TableKeyHandle,
    encode_table_key,
    encode_handle_key,
    table_range,
    table_range_hex,
    decode_table_key,
    decode_handle_key,
)
from .modify_log import (
    ModifyType,
    DeleteEntry,
    AddDeltaEntry,
    encode_delete,
    encode_add_delta,
    decode,
)

__all__ = [
    "TableKey",
    "TableKeyHandle",
    "encode_table_key",
    "encode_handle_key",
    "table_range",
    "table_range_hex",
    "decode_table_key",
    "decode_handle_key",
    "ModifyType",
    "DeleteEntry",
    "AddDeltaEntry",
    "encode_delete",
    "encode_add_delta",
    "decode",
]
