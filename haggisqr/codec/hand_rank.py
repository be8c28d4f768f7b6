"""Combinatorial number system: rank a sorted hand among all hands of its size.

In Haggis each player starts with 14 number cards and 3 wildcards.  The
wildcards are always the same, so a starting hand is fixed by its 14 number
cards, drawn from the 36 in the deck.  There are C(36, 14) = 3,796,297,200
such hands, which fits in 32 bits.

Listing every sorted hand in lexicographic order:

    Rank                Sorted hand
    0                   0 1 2 3 ... 12 13
    1                   0 1 2 3 ... 12 14
    ...                 ...
    3796297199          22 23 24 25 ... 34 35

the rank of a hand H is the number of hands that come before it.  If x is
the first card of H, every hand starting with 0..x-1 comes first; there are
C(35 - c, 13) hands starting with c.  Among hands starting with x, those
whose second card lies strictly between x and the second card y of H come
first, C(35 - c, 12) for each such c.  And so on for every card of H.
"""

from __future__ import annotations

from typing import Iterable

from haggisqr.env.card import INIT_HAND_SIZE_WO_WILDCARD, NUM_NORMAL

HAND_RANK_BYTE_LEN: int = 4


def n_choose_k(n: int, k: int) -> int:
    """Binomial coefficient by incremental multiply/divide.

    Each intermediate value is itself a binomial coefficient, so the
    division is always exact.
    """
    if k < 0 or k > n:
        return 0
    result = 1
    for i in range(k):
        result = result * (n - i) // (i + 1)
    return result


def _sorted_hand(hand: Iterable[int], n: int) -> list[int]:
    cards = sorted(hand)
    if len(set(cards)) != len(cards):
        raise ValueError(f"Hand has duplicate cards: {cards}")
    if cards and (cards[0] < 0 or cards[-1] >= n):
        raise ValueError(f"Hand has cards outside [0, {n}): {cards}")
    return cards


def compress_hand(hand: Iterable[int], n: int = NUM_NORMAL) -> int:
    """Return the rank of hand among all sorted len(hand)-subsets of [0, n)."""
    cards = _sorted_hand(hand, n)
    k = len(cards)

    num_smaller_hands = 0
    smallest_possibility = 0
    for i, card in enumerate(cards):
        num_remaining_cards = k - i - 1
        for smaller_card in range(smallest_possibility, card):
            num_smaller_hands += n_choose_k(n - 1 - smaller_card, num_remaining_cards)
        smallest_possibility = card + 1

    return num_smaller_hands


def decompress_hand(rank: int, k: int, n: int = NUM_NORMAL) -> list[int]:
    """Inverse of compress_hand: the sorted k-subset of [0, n) with this rank."""
    if not 0 <= rank < n_choose_k(n, k):
        raise ValueError(f"Rank {rank} out of range for C({n}, {k})")

    cards: list[int] = []
    candidate = 0
    for i in range(k):
        num_remaining_cards = k - i - 1
        while True:
            count = n_choose_k(n - 1 - candidate, num_remaining_cards)
            if rank < count:
                break
            rank -= count
            candidate += 1
        cards.append(candidate)
        candidate += 1
    return cards


def hand_fingerprint(hand: Iterable[int]) -> bytes:
    """4-byte little-endian fingerprint of a 14-card starting hand."""
    hand = list(hand)
    if len(hand) != INIT_HAND_SIZE_WO_WILDCARD:
        raise ValueError(
            f"Fingerprint needs {INIT_HAND_SIZE_WO_WILDCARD} number cards, got {len(hand)}"
        )
    return compress_hand(hand).to_bytes(HAND_RANK_BYTE_LEN, "little")
