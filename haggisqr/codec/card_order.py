"""Factorial number system for the order of the 34 cards outside the Haggis.

The order is built by a sequence of swaps on the identity permutation of
the whole deck: at step i the wanted card sits at some position j >= i and is
swapped into position i.  Recording d = j - i gives a digit with
DECK_SIZE - i possible values, and the digits are folded into one
mixed-radix integer, below DECK_SIZE! / HAGGIS_SIZE!.
"""

from __future__ import annotations

from typing import Sequence

from haggisqr.env.card import DECK_SIZE, HAGGIS_SIZE

CARD_ORDER_LEN: int = DECK_SIZE - HAGGIS_SIZE  # 34
# 42! / 8! - 1 < 2**160
CARD_ORDER_BYTE_LEN: int = 20


def compress_card_order(card_order: Sequence[int]) -> int:
    """Rank a sequence of CARD_ORDER_LEN distinct card ids."""
    if len(card_order) != CARD_ORDER_LEN:
        raise ValueError(f"Expected {CARD_ORDER_LEN} cards, got {len(card_order)}")
    if len(set(card_order)) != CARD_ORDER_LEN or not all(
        0 <= c < DECK_SIZE for c in card_order
    ):
        raise ValueError(f"Card order must hold distinct ids in [0, {DECK_SIZE})")

    curr_card_order = list(range(DECK_SIZE))
    card_value_to_index = list(range(DECK_SIZE))
    distances: list[int] = []

    for i, wanted in enumerate(card_order):
        j = card_value_to_index[wanted]
        displaced = curr_card_order[i]
        curr_card_order[i], curr_card_order[j] = wanted, displaced
        card_value_to_index[wanted] = i
        card_value_to_index[displaced] = j
        distances.append(j - i)

    compressed = 0
    for i in reversed(range(CARD_ORDER_LEN)):
        compressed = distances[i] + (DECK_SIZE - i) * compressed
    return compressed


def decompress_card_order(compressed: int) -> list[int] | None:
    """Inverse of compress_card_order.

    Returns None if compressed is larger than any valid rank.
    """
    if compressed < 0:
        return None

    curr_card_order = list(range(DECK_SIZE))
    card_possibilities = DECK_SIZE
    for i in range(CARD_ORDER_LEN):
        compressed, distance = divmod(compressed, card_possibilities)
        card_possibilities -= 1
        j = i + distance
        curr_card_order[i], curr_card_order[j] = curr_card_order[j], curr_card_order[i]

    if compressed != 0:
        return None
    return curr_card_order[:CARD_ORDER_LEN]


def card_order_to_bytes(compressed: int) -> bytes:
    """Big-endian, left-padded to CARD_ORDER_BYTE_LEN."""
    return compressed.to_bytes(CARD_ORDER_BYTE_LEN, "big")


def card_order_from_bytes(data: bytes) -> int:
    if len(data) != CARD_ORDER_BYTE_LEN:
        raise ValueError(f"Expected {CARD_ORDER_BYTE_LEN} bytes, got {len(data)}")
    return int.from_bytes(data, "big")
