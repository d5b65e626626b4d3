"""Row references between franchise tables.

A reference is a 32-character binary string: the first 15 bits carry the
target table id and the remaining 17 bits the row number.
"""

from __future__ import annotations

TABLE_ID_BITS = 15
ROW_BITS = 17
REFERENCE_LENGTH = TABLE_ID_BITS + ROW_BITS
ZERO_REF = "0" * REFERENCE_LENGTH

MAX_TABLE_ID = (1 << TABLE_ID_BITS) - 1
MAX_ROW = (1 << ROW_BITS) - 1


def is_reference(value: object) -> bool:
    return isinstance(value, str) and len(value) == REFERENCE_LENGTH and set(value) <= {"0", "1"}


def _require_reference(ref: str) -> str:
    if not is_reference(ref):
        raise ValueError(f"invalid-reference: {ref!r}")
    return ref


def encode_reference(table_id: int, row: int) -> str:
    if not 0 <= table_id <= MAX_TABLE_ID:
        raise ValueError(f"table id out of range: {table_id}")
    if not 0 <= row <= MAX_ROW:
        raise ValueError(f"row out of range: {row}")
    return format(table_id, f"0{TABLE_ID_BITS}b") + format(row, f"0{ROW_BITS}b")


def reference_row(ref: str) -> int:
    return int(_require_reference(ref)[TABLE_ID_BITS:], 2)


def reference_table_id(ref: str) -> int:
    return int(_require_reference(ref)[:TABLE_ID_BITS], 2)


def is_zero_reference(ref: str) -> bool:
    return _require_reference(ref) == ZERO_REF
