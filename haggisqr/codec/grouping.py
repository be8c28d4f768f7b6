"""Two bits per table card marking where combinations and groups end.

Cards are indexed by their position among the table cards of the card
order, not by card id:

    bit 2*idx + 0  set iff the card is the last card of its combination
    bit 2*idx + 1  set iff the card is the last card of its combination group
"""

from __future__ import annotations

from haggisqr.codec.card_order import CARD_ORDER_LEN

COMBINATION_END: int = 0
GROUP_END: int = 1

GROUPING_BYTE_LEN: int = (2 * CARD_ORDER_LEN + 7) // 8  # 9


def set_grouping_bit(grouping: int, idx: int, bit: int) -> int:
    """Return grouping with the given bit of table card idx set."""
    if not 0 <= idx < CARD_ORDER_LEN:
        raise ValueError(f"Table index out of range: {idx}")
    return grouping | 1 << (2 * idx + bit)


def read_grouping_bit(grouping: int, idx: int, bit: int) -> bool:
    return (grouping >> (2 * idx + bit)) & 1 == 1


def grouping_to_bytes(grouping: int) -> bytes:
    """Big-endian, left-padded to GROUPING_BYTE_LEN."""
    return grouping.to_bytes(GROUPING_BYTE_LEN, "big")


def grouping_from_bytes(data: bytes) -> int:
    if len(data) != GROUPING_BYTE_LEN:
        raise ValueError(f"Expected {GROUPING_BYTE_LEN} bytes, got {len(data)}")
    return int.from_bytes(data, "big")
