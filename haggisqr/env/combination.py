"""Combination logic for Haggis: bomb detection, normal classification, comparison."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations, product
from typing import Iterable, Optional, Union

from haggisqr.env.card import JACK, KING, NUM_SUITS, QUEEN, CardValue, card_value

# ---------------------------------------------------------------------------
# Combination types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Bomb:
    """A bomb, ranked 0–5.

    0: 3-5-7-9 in four different suits
    1: J-Q
    2: J-K
    3: Q-K
    4: J-Q-K
    5: 3-5-7-9 in one suit
    """

    rank: int


@dataclass(frozen=True)
class NormalType:
    """A non-bomb combination described as a rectangle plus extra wildcards.

    The rectangle spans ranks start_rank..end_rank (inclusive) in suit_count
    suits.  num_extra_wildcards > 0 means the shape is still ambiguous: the
    extra wildcards could extend either edge, and the ambiguity is resolved
    when the combination is compared against the one it beats.
    """

    start_rank: int
    end_rank: int
    suit_count: int
    num_extra_wildcards: int = 0

    @property
    def rank_count(self) -> int:
        return self.end_rank - self.start_rank + 1

    @property
    def card_count(self) -> int:
        return self.suit_count * self.rank_count + self.num_extra_wildcards

    def beats(self, other: NormalType) -> NormalType | None:
        """Return self disambiguated against other if self is a legal raise.

        Both combinations must hold the same number of cards, the rectangle
        covering both shapes must fit into that many cards, and self must
        start on a higher rank.  Only self is re-expressed; other's shape is
        already closed.

        Ambiguous shapes that can occur:

            1x1 regular, 2 wild => 3 total
            1x1 regular, 3 wild => 4 total
            2x1 regular, 2 wild => 4 total
            1x2 regular, 2 wild => 4 total
            3x1 regular, 3 wild => 6 total
            1x3 regular, 3 wild => 6 total
            2x2 regular, 2 wild => 6 total
            3x3 regular, 3 wild => 12 total

        (2x1 means 2 ranks in 1 suit.)
        """
        if self.card_count != other.card_count:
            return None

        suit_count = max(self.suit_count, other.suit_count)
        rank_count = max(self.rank_count, other.rank_count)

        if suit_count * rank_count > self.card_count or self.start_rank <= other.start_rank:
            return None

        return NormalType(
            start_rank=self.start_rank,
            end_rank=self.start_rank + rank_count - 1,
            suit_count=suit_count,
            num_extra_wildcards=self.card_count - suit_count * rank_count,
        )


CombinationType = Union[Bomb, NormalType]

# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

_ODD_RANKS: tuple[int, ...] = (3, 5, 7, 9)
_ODD_RANKS_MASK: int = sum(1 << r for r in _ODD_RANKS)
_ALL_SUITS_MASK: int = (1 << NUM_SUITS) - 1

_WILDCARD_BOMBS: dict[tuple[int, ...], int] = {
    (JACK, QUEEN): 1,
    (JACK, KING): 2,
    (QUEEN, KING): 3,
    (JACK, QUEEN, KING): 4,
}


def _values(card_ids: Iterable[int]) -> list[CardValue]:
    return [card_value(c) for c in card_ids]


def classify_bomb(card_ids: Iterable[int]) -> int | None:
    """Return the bomb rank of card_ids, or None if they are not a bomb."""
    values = _values(card_ids)

    if len(values) == 4:
        rank_mask = 0
        for v in values:
            rank_mask |= 1 << v.rank
        if rank_mask != _ODD_RANKS_MASK:
            return None
        # Four distinct odd ranks below 10 means four normal cards.
        suit_mask = 0
        for v in values:
            suit_mask |= 1 << v.suit
        if suit_mask == _ALL_SUITS_MASK:
            return 0
        if suit_mask in (1, 2, 4, 8):
            return 5
        return None

    if any(not v.is_wildcard for v in values):
        return None
    return _WILDCARD_BOMBS.get(tuple(sorted(v.rank for v in values)))


def classify_normal(card_ids: Iterable[int]) -> NormalType | None:
    """Classify card_ids as a normal (non-bomb) combination.

    Callers check classify_bomb first; a bomb's card shape may also look
    like a normal combination.
    """
    values = _values(card_ids)
    if not values:
        return None

    if len(values) == 1:
        rank = values[0].rank
        return NormalType(rank, rank, 1, 0)

    normal = [v for v in values if not v.is_wildcard]
    if not normal:
        # Wildcards alone only ever form bombs.
        return None

    smallest_rank = min(v.rank for v in normal)
    largest_rank = max(v.rank for v in normal)
    suit_count = len({v.suit for v in normal})

    number_of_ranks = largest_rank - smallest_rank + 1
    num_required_wildcards = number_of_ranks * suit_count - len(normal)
    num_wildcards = len(values) - len(normal)

    # Two cards of one suit: only a card plus one wildcard (a pair) is valid.
    # The rectangle rule below cannot tell these cases apart.
    if len(values) == 2 and suit_count == 1:
        if num_wildcards == 1:
            return NormalType(smallest_rank, largest_rank, 2, 0)
        return None

    if num_required_wildcards > num_wildcards:
        return None

    extra = num_wildcards - num_required_wildcards
    fits_ranks = extra % suit_count == 0
    fits_suits = extra % number_of_ranks == 0

    if fits_ranks and fits_suits:
        # Either edge could grow; leave it for the comparison to decide.
        return NormalType(smallest_rank, largest_rank, suit_count, extra)
    if fits_ranks:
        return NormalType(smallest_rank, largest_rank + extra // suit_count, suit_count, 0)
    if fits_suits:
        return NormalType(smallest_rank, largest_rank, suit_count + extra // number_of_ranks, 0)
    return None


def classify_combination(card_ids: Iterable[int]) -> CombinationType | None:
    """Classify a non-empty play, checking for a bomb first."""
    card_ids = list(card_ids)
    bomb_rank = classify_bomb(card_ids)
    if bomb_rank is not None:
        return Bomb(bomb_rank)
    return classify_normal(card_ids)


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


def resolve_play(
    last: Optional[CombinationType], current: Optional[CombinationType]
) -> CombinationType | None:
    """Return the (disambiguated) type current takes when played onto last.

    Returns None if current may not be played:
    - current is not a combination at all;
    - a bomb was played and current is not a higher bomb;
    - both are normal and current does not beat last.
    Any combination opens an empty group, and a bomb beats any normal
    combination.
    """
    if current is None:
        return None
    if last is None:
        return current
    if isinstance(last, Bomb):
        if isinstance(current, Bomb) and current.rank > last.rank:
            return current
        return None
    if isinstance(current, Bomb):
        return current
    return current.beats(last)


# ---------------------------------------------------------------------------
# Candidate play enumeration
# ---------------------------------------------------------------------------


def _subsets(items: list[int], min_size: int) -> list[tuple[int, ...]]:
    return [
        subset
        for size in range(min_size, len(items) + 1)
        for subset in combinations(items, size)
    ]


def candidate_plays(hand: Iterable[int]) -> list[tuple[int, ...]]:
    """Enumerate plays from hand that classify as a combination.

    Covers singles, same-rank sets (optionally padded with wildcards),
    single- and multi-suit runs (optionally padded with wildcards), and
    bombs.  A run always uses every held card of its rank window and suits,
    so a play that leaves a held card out of the middle of its own run in
    favour of a wildcard is not listed.  The result is not filtered against
    the table; see Game.legal_plays for that.
    """
    hand = sorted(hand)
    wildcards = [c for c in hand if card_value(c).is_wildcard]
    by_cell: dict[tuple[int, int], int] = {}
    by_rank: dict[int, list[int]] = {}
    for c in hand:
        v = card_value(c)
        if v.is_wildcard:
            continue
        by_cell[(v.rank, v.suit)] = c
        by_rank.setdefault(v.rank, []).append(c)

    candidates: set[tuple[int, ...]] = {(c,) for c in hand}
    wildcard_padding: list[tuple[int, ...]] = [()] + _subsets(wildcards, 1)

    # Sets of one rank.
    for cards in by_rank.values():
        for base in _subsets(cards, 1):
            for pad in wildcard_padding:
                if len(base) + len(pad) >= 2:
                    candidates.add(tuple(sorted(base + pad)))

    # Runs: every rank window in every suit subset, using all held cards of
    # the window and filling the missing ones (and possibly more) with
    # wildcards.
    ranks = sorted(by_rank)
    suit_subsets = _subsets(list(range(NUM_SUITS)), 1)
    for start in ranks:
        for end in range(start + 1, ranks[-1] + 1):
            window = range(start, end + 1)
            for suit_subset in suit_subsets:
                held = [
                    by_cell[(r, s)]
                    for r in window
                    for s in suit_subset
                    if (r, s) in by_cell
                ]
                missing = len(window) * len(suit_subset) - len(held)
                if not held or missing > len(wildcards):
                    continue
                for pad in wildcard_padding:
                    if len(pad) >= missing:
                        candidates.add(tuple(sorted(tuple(held) + pad)))

    # Bombs.
    candidates.update(_subsets(wildcards, 2))
    odd_cards = [by_rank.get(r, []) for r in _ODD_RANKS]
    candidates.update(tuple(sorted(p)) for p in product(*odd_cards))

    return sorted(
        (c for c in candidates if classify_combination(c) is not None),
        key=lambda c: (len(c), c),
    )


def play_rank_label(play: tuple[int, ...] | list[int]) -> str:
    """Short human-readable label for a combination type."""
    kind = classify_combination(play)
    if kind is None:
        return "invalid"
    if isinstance(kind, Bomb):
        return f"bomb({kind.rank})"
    label = f"{kind.suit_count}x{kind.rank_count} from {kind.start_rank}"
    if kind.num_extra_wildcards:
        label += f" +{kind.num_extra_wildcards} wild"
    return label
