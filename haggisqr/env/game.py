"""Game: card locations and the turn-based rules of a two-player Haggis hand."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Union

import numpy as np

from haggisqr.env.card import (
    DECK_SIZE,
    INIT_HAND_SIZE_WO_WILDCARD,
    NUM_NORMAL,
    NUM_WILDCARDS_PER_PLAYER,
    card_value,
    format_cards,
)
from haggisqr.env.combination import (
    Bomb,
    CombinationType,
    candidate_plays,
    classify_combination,
    resolve_play,
)

logger = logging.getLogger(__name__)

# The game has three levels:
# - Combination: I play a combination, you play a combination
# - Combination group: ends when someone passes (or the hand ends)
# - Game (called a hand in the rulebook): ends when someone empties their hand


class Player(Enum):
    ME = "me"
    OPPONENT = "opponent"

    def other(self) -> "Player":
        return Player.OPPONENT if self is Player.ME else Player.ME


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HaggisLocation:
    """Set aside face down at the deal."""


@dataclass(frozen=True)
class HandLocation:
    player: Player


@dataclass(frozen=True)
class TableLocation:
    """A played card.

    order is the number of combinations played (across all groups) before
    this card's combination, so every card of a combination shares it.
    in_last_combination_before_pass marks the combination that closed a
    captured group.
    """

    order: int
    captured_by: Player | None = None
    in_last_combination_before_pass: bool = False


Location = Union[HaggisLocation, HandLocation, TableLocation]

HAGGIS = HaggisLocation()


class IllegalPlayError(ValueError):
    """Raised by Game.play_cards for a play that can_play_cards rejects."""


# ---------------------------------------------------------------------------
# Game
# ---------------------------------------------------------------------------


@dataclass
class Game:
    """Full state of one hand.

    locations[x] is the location of the card with id x.  The state only
    changes through play_cards (and switch_perspective).
    """

    locations: list[Location] = field(default_factory=lambda: [HAGGIS] * DECK_SIZE)
    current_player: Player = Player.ME
    me_went_first: bool = True
    # Type (including disambiguation) of the last combination played in the
    # open group; None at the start of a group.
    last_combination_type: CombinationType | None = None
    next_order: int = 0

    @classmethod
    def empty(cls, me_went_first: bool = True) -> "Game":
        """All cards in the Haggis, nothing played yet."""
        return cls(
            current_player=Player.ME if me_went_first else Player.OPPONENT,
            me_went_first=me_went_first,
        )

    @classmethod
    def deal(
        cls,
        rng: np.random.Generator | int | None = None,
        me_went_first: bool = True,
    ) -> "Game":
        """Deal a fresh hand.

        Parameters
        ----------
        rng : np.random.Generator | int | None
            Random source or seed for the shuffle.
        me_went_first : bool
            Whether Me opens the first combination group.
        """
        rng = np.random.default_rng(rng)
        game = cls.empty(me_went_first)

        # All 36 normal cards are shuffled so that the Haggis is random too.
        indices = rng.permutation(NUM_NORMAL)
        for i in indices[:INIT_HAND_SIZE_WO_WILDCARD]:
            game.locations[int(i)] = HandLocation(Player.ME)
        for i in indices[INIT_HAND_SIZE_WO_WILDCARD : 2 * INIT_HAND_SIZE_WO_WILDCARD]:
            game.locations[int(i)] = HandLocation(Player.OPPONENT)

        first_wildcard = NUM_NORMAL
        second_wildcard = NUM_NORMAL + NUM_WILDCARDS_PER_PLAYER
        for i in range(first_wildcard, second_wildcard):
            game.locations[i] = HandLocation(Player.ME)
        for i in range(second_wildcard, DECK_SIZE):
            game.locations[i] = HandLocation(Player.OPPONENT)
        return game

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_hand(self, player: Player) -> list[int]:
        return [
            card_id
            for card_id, loc in enumerate(self.locations)
            if isinstance(loc, HandLocation) and loc.player is player
        ]

    def hand_sizes(self) -> tuple[int, int]:
        """Return (my_hand_size, opponent_hand_size)."""
        return len(self.get_hand(Player.ME)), len(self.get_hand(Player.OPPONENT))

    def table_combinations(self) -> dict[int, list[int]]:
        """Return the table cards grouped by combination order, in play order."""
        table: dict[int, list[int]] = {}
        for card_id, loc in enumerate(self.locations):
            if isinstance(loc, TableLocation):
                table.setdefault(loc.order, []).append(card_id)
        return dict(sorted(table.items()))

    def is_game_over(self) -> bool:
        my_count, opponent_count = self.hand_sizes()
        return my_count == 0 or opponent_count == 0

    # ------------------------------------------------------------------
    # Playing
    # ------------------------------------------------------------------

    def _resolve(self, card_ids: list[int]) -> CombinationType | None:
        return resolve_play(self.last_combination_type, classify_combination(card_ids))

    def _holds_all(self, card_ids: list[int]) -> bool:
        """Whether card_ids are distinct cards in the current player's hand."""
        if len(set(card_ids)) != len(card_ids):
            return False
        in_hand = HandLocation(self.current_player)
        return all(
            0 <= card_id < DECK_SIZE and self.locations[card_id] == in_hand
            for card_id in card_ids
        )

    def can_play_cards(self, card_ids: list[int] | tuple[int, ...]) -> bool:
        """Whether card_ids may be played now.  An empty list is a pass.

        A pass is only possible once the open group has a combination.  A
        play must use distinct cards from the current player's hand.
        """
        if not card_ids:
            return self.last_combination_type is not None
        card_ids = list(card_ids)
        if not self._holds_all(card_ids):
            return False
        return self._resolve(card_ids) is not None

    def play_cards(self, card_ids: list[int] | tuple[int, ...]) -> None:
        """Play card_ids for the current player, or pass if card_ids is empty.

        Raises IllegalPlayError if can_play_cards(card_ids) is False.
        """
        card_ids = list(card_ids)
        if not card_ids:
            if self.last_combination_type is None:
                raise IllegalPlayError("Cannot pass before a combination is played")
            logger.debug("[play] %s passes", self.current_player.value)
            self._capture_table()
        else:
            new_type = self._resolve(card_ids) if self._holds_all(card_ids) else None
            if new_type is None:
                raise IllegalPlayError(
                    f"{self.current_player.value} cannot play {format_cards(card_ids)} "
                    f"after {self.last_combination_type}"
                )
            logger.debug(
                "[play] %s plays %s as %s order=%d",
                self.current_player.value,
                format_cards(card_ids),
                new_type,
                self.next_order,
            )
            self.last_combination_type = new_type
            for card_id in card_ids:
                self.locations[card_id] = TableLocation(order=self.next_order)
            self.next_order += 1

        self.current_player = self.current_player.other()

    def legal_plays(self) -> list[tuple[int, ...]]:
        """The candidate plays (see candidate_plays) that are legal now.

        The pass is included as () when it is legal.
        """
        plays = [
            play
            for play in candidate_plays(self.get_hand(self.current_player))
            if self.can_play_cards(play)
        ]
        if self.can_play_cards(()):
            plays.append(())
        return plays

    def _capture_table(self) -> None:
        """Give the open group to its winner without changing whose turn it is.

        After a bomb the trick goes to the player now on turn; otherwise to
        the player who made the last play.
        """
        if isinstance(self.last_combination_type, Bomb):
            captor = self.current_player
        else:
            captor = self.current_player.other()

        captured = 0
        for card_id, loc in enumerate(self.locations):
            if isinstance(loc, TableLocation) and loc.captured_by is None:
                self.locations[card_id] = replace(
                    loc,
                    captured_by=captor,
                    in_last_combination_before_pass=loc.order + 1 == self.next_order,
                )
                captured += 1
        logger.debug("[capture] %s captures %d card(s)", captor.value, captured)

        self.last_combination_type = None

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def calculate_score(self) -> tuple[int, int]:
        """Return (my_score, opponent_score) for the cards played so far.

        - Point cards (3, 5, 7, 9, J, Q, K) captured by a player score for
          that player.
        - The player who empties their hand scores 5 per card left in both
          hands, plus every point card still in a hand or in the Haggis.
        If the hand is over, the open group is first captured by whoever
        won it.  That capture happens on a copy; the game is not modified.
        """
        my_count, opponent_count = self.hand_sizes()

        game = self
        if my_count == 0 or opponent_count == 0:
            # The winner of the last group was the last to play, so the turn
            # has already passed to the loser, just as if the loser passed.
            game = copy.deepcopy(self)
            game._capture_table()

        my_score = 0
        opponent_score = 0
        winner_bonus = 5 * (my_count + opponent_count)

        for card_id, loc in enumerate(game.locations):
            points = card_value(card_id).point_value
            if isinstance(loc, TableLocation):
                if loc.captured_by is Player.ME:
                    my_score += points
                elif loc.captured_by is Player.OPPONENT:
                    opponent_score += points
            else:
                winner_bonus += points

        if my_count == 0:
            my_score += winner_bonus
        elif opponent_count == 0:
            opponent_score += winner_bonus

        return my_score, opponent_score

    # ------------------------------------------------------------------
    # Perspective
    # ------------------------------------------------------------------

    def switch_perspective(self) -> None:
        """Swap Me and Opponent everywhere."""
        for card_id, loc in enumerate(self.locations):
            if isinstance(loc, HandLocation):
                self.locations[card_id] = HandLocation(loc.player.other())
            elif isinstance(loc, TableLocation) and loc.captured_by is not None:
                self.locations[card_id] = replace(loc, captured_by=loc.captured_by.other())
        self.current_player = self.current_player.other()
        self.me_went_first = not self.me_went_first

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> str:
        lines = [
            f"My hand:       {format_cards(self.get_hand(Player.ME))}",
            f"Opponent hand: {format_cards(self.get_hand(Player.OPPONENT))}",
        ]
        for order, cards in self.table_combinations().items():
            captor = self.locations[cards[0]].captured_by
            status = f"captured by {captor.value}" if captor else "open"
            lines.append(f"  [{order:2d}] {format_cards(cards):<24} {status}")
        lines.append(
            f"Turn: {self.current_player.value}  "
            f"(me went first: {self.me_went_first}, next order: {self.next_order})"
        )
        return "\n".join(lines)
