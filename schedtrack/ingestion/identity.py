"""Deterministic project identity.

The business key (PMO ID, order number) is hashed with a 32-bit rolling
polynomial hash (h = h*31 + code unit, wrapped to signed 32-bit) so that the
same project re-imported in a later session gets the same integer id without a
database round-trip. Rows without a business key fall back to their 1-based
position in the batch, which is not stable across reorderings.

Hash collisions between distinct keys are possible and are not detected.
"""

from __future__ import annotations

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def string_hash32(text: str) -> int:
    """Signed 32-bit rolling hash over the UTF-16 code units of ``text``."""
    data = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code_unit) & _INT32_MASK
    return h - 0x100000000 if h & _INT32_SIGN else h


def resolve_identity(pmo_id: str, order_number: str, position: int) -> int:
    """Derive the integer id for an imported record.

    Args:
        pmo_id: PMO ID business key (may be blank)
        order_number: Order number business key (may be blank)
        position: 0-based position of the row within the import batch

    Returns:
        abs(hash("{pmo_id}-{order_number}")), or position + 1 when both keys
        are blank or the hash is zero
    """
    if not pmo_id and not order_number:
        return position + 1

    return abs(string_hash32(f"{pmo_id}-{order_number}")) or position + 1
