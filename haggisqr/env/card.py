"""Card identifiers, values and deck constants for two-player Haggis."""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Deck layout
# ---------------------------------------------------------------------------
#
# CardIds: 0  1  2  ...   8  9  ...  35 36 37 38 39 40 41
# Ranks:   2  3  4  ...  10  2  ...  10  J  Q  K  J  Q  K
# Suits:   0  0  0  ...   0  1  ...   3
#
# Ids 36-38 are the wildcards dealt to the first player, 39-41 the second's.

NUM_SUITS: int = 4
NUM_RANKS: int = 9  # 2..10
MIN_RANK: int = 2
MAX_RANK: int = 13
NUM_NORMAL: int = NUM_SUITS * NUM_RANKS  # 36
NUM_WILDCARDS_PER_PLAYER: int = 3
DECK_SIZE: int = NUM_NORMAL + 2 * NUM_WILDCARDS_PER_PLAYER  # 42

INIT_HAND_SIZE_WO_WILDCARD: int = 14
INIT_HAND_SIZE: int = INIT_HAND_SIZE_WO_WILDCARD + NUM_WILDCARDS_PER_PLAYER  # 17
HAGGIS_SIZE: int = NUM_NORMAL - 2 * INIT_HAND_SIZE_WO_WILDCARD  # 8

JACK: int = 11
QUEEN: int = 12
KING: int = 13

SUIT_SYMBOLS: tuple[str, ...] = ("♠", "♥", "♦", "♣")
_WILDCARD_LABELS: dict[int, str] = {JACK: "J", QUEEN: "Q", KING: "K"}
_WILDCARD_POINTS: dict[int, int] = {JACK: 2, QUEEN: 3, KING: 5}


@dataclass(frozen=True)
class CardValue:
    """Rank and suit of a card.

    Normal cards have rank 2–10 and suit 0–3.  Wildcards have rank 11–13
    (J, Q, K) and no suit.
    """

    rank: int
    suit: int | None = None

    def __post_init__(self) -> None:
        if self.suit is None:
            if self.rank not in _WILDCARD_LABELS:
                raise ValueError(f"Invalid wildcard rank: {self.rank}")
        elif not (MIN_RANK <= self.rank <= 10 and 0 <= self.suit < NUM_SUITS):
            raise ValueError(f"Invalid card value: rank={self.rank}, suit={self.suit}")

    @property
    def is_wildcard(self) -> bool:
        return self.suit is None

    @property
    def point_value(self) -> int:
        """How many points this card scores at the end of a game.

        Odd normal ranks (3, 5, 7, 9) score 1; J, Q, K score 2, 3, 5.
        """
        if self.suit is None:
            return _WILDCARD_POINTS[self.rank]
        return self.rank % 2

    @classmethod
    def parse(cls, text: str) -> "CardValue":
        """Parse "10♠", "3♦", "J" etc. into a CardValue."""
        text = text.strip()
        if text in ("J", "Q", "K"):
            return cls({"J": JACK, "Q": QUEEN, "K": KING}[text])
        if len(text) < 2 or text[-1] not in SUIT_SYMBOLS:
            raise ValueError(f"Cannot parse card: {text!r}")
        rank_text = text[:-1]
        if not rank_text.isdigit():
            raise ValueError(f"Cannot parse card: {text!r}")
        return cls(int(rank_text), SUIT_SYMBOLS.index(text[-1]))

    def __str__(self) -> str:
        if self.suit is None:
            return _WILDCARD_LABELS[self.rank]
        return f"{self.rank}{SUIT_SYMBOLS[self.suit]}"


def card_value(card_id: int) -> CardValue:
    """Map a card id in [0, DECK_SIZE) to its value."""
    if not 0 <= card_id < DECK_SIZE:
        raise ValueError(f"Card id out of range: {card_id}")
    if card_id < NUM_NORMAL:
        return CardValue(MIN_RANK + card_id % NUM_RANKS, card_id // NUM_RANKS)
    return CardValue(JACK + card_id % NUM_WILDCARDS_PER_PLAYER)


def card_id(text: str, wildcard_set: int = 0) -> int:
    """Inverse of card_value for a card written as text.

    wildcard_set selects which player's J/Q/K is meant (0 → ids 36–38,
    1 → ids 39–41); it is ignored for normal cards.
    """
    value = CardValue.parse(text)
    if value.suit is None:
        if wildcard_set not in (0, 1):
            raise ValueError(f"wildcard_set must be 0 or 1, got {wildcard_set}")
        return NUM_NORMAL + wildcard_set * NUM_WILDCARDS_PER_PLAYER + (value.rank - JACK)
    return value.suit * NUM_RANKS + (value.rank - MIN_RANK)


def format_cards(card_ids: list[int] | tuple[int, ...]) -> str:
    return " ".join(str(card_value(c)) for c in card_ids)
