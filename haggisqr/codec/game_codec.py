"""Encode a whole Game into 32 bytes for an optical code, and back.

Layout (every field fixed width):

    offset  len  field
    0       20   card order rank, big-endian (see card_order.py)
    20      1    my hand size
    21      1    opponent hand size
    22      9    grouping bitmap, big-endian (see grouping.py)
    31      1    me_went_first (0/1)

The card order is: my hand, the opponent's hand, then the table cards in
play order, combination by combination.  The cards left out are the Haggis.
Decoding replays the table cards through the game rules, which rebuilds
who captured what and also catches most corrupted input.

A blob always describes the game from its author's point of view; a peer
reading it calls import_peer_game to see it from their own.
"""

from __future__ import annotations

import logging
from typing import Literal

from haggisqr.codec.card_order import (
    CARD_ORDER_BYTE_LEN,
    CARD_ORDER_LEN,
    card_order_from_bytes,
    card_order_to_bytes,
    compress_card_order,
    decompress_card_order,
)
from haggisqr.codec.grouping import (
    COMBINATION_END,
    GROUP_END,
    GROUPING_BYTE_LEN,
    grouping_from_bytes,
    grouping_to_bytes,
    read_grouping_bit,
    set_grouping_bit,
)
from haggisqr.codec.hand_rank import hand_fingerprint
from haggisqr.env.card import INIT_HAND_SIZE, INIT_HAND_SIZE_WO_WILDCARD, NUM_NORMAL
from haggisqr.env.game import Game, HandLocation, Player, TableLocation

logger = logging.getLogger(__name__)

_HAND_SIZES_OFFSET: int = CARD_ORDER_BYTE_LEN
_GROUPING_OFFSET: int = _HAND_SIZES_OFFSET + 2
_WENT_FIRST_OFFSET: int = _GROUPING_OFFSET + GROUPING_BYTE_LEN
ENCODED_GAME_LEN: int = _WENT_FIRST_OFFSET + 1  # 32

DecodeFailure = Literal[
    "malformed_length",
    "range_violation",
    "permutation_overflow",
    "illegal_replay",
]


class DecodeError(ValueError):
    """The bytes do not describe a reachable game."""

    def __init__(self, reason: DecodeFailure, message: str) -> None:
        super().__init__(f"{reason}: {message}")
        self.reason: DecodeFailure = reason


def _reject(reason: DecodeFailure, message: str) -> DecodeError:
    logger.info("[decode] rejected reason=%s detail=%s", reason, message)
    return DecodeError(reason, message)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode_game(game: Game) -> bytes:
    """Pack game into ENCODED_GAME_LEN bytes."""
    my_hand = game.get_hand(Player.ME)
    opponent_hand = game.get_hand(Player.OPPONENT)
    card_order = my_hand + opponent_hand
    hand_count = len(card_order)

    grouping = 0
    for cards in game.table_combinations().values():
        card_order.extend(cards)
        last_idx = len(card_order) - hand_count - 1
        grouping = set_grouping_bit(grouping, last_idx, COMBINATION_END)
        loc = game.locations[cards[0]]
        if isinstance(loc, TableLocation) and loc.in_last_combination_before_pass:
            grouping = set_grouping_bit(grouping, last_idx, GROUP_END)

    if len(card_order) != CARD_ORDER_LEN:
        raise ValueError(
            f"Game has {len(card_order)} cards outside the Haggis, expected {CARD_ORDER_LEN}"
        )

    data = b"".join(
        [
            card_order_to_bytes(compress_card_order(card_order)),
            bytes([len(my_hand), len(opponent_hand)]),
            grouping_to_bytes(grouping),
            bytes([int(game.me_went_first)]),
        ]
    )
    logger.debug(
        "[encode] hands=%d/%d table=%d combinations=%d",
        len(my_hand),
        len(opponent_hand),
        CARD_ORDER_LEN - hand_count,
        game.next_order,
    )
    return data


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def decode_game(data: bytes) -> Game:
    """Rebuild a Game from encode_game output.

    Raises DecodeError if data is too short, holds out-of-range fields, or
    does not replay as a legal sequence of plays.  Bytes past
    ENCODED_GAME_LEN are ignored.
    """
    data = bytes(data)
    if len(data) < ENCODED_GAME_LEN:
        raise _reject(
            "malformed_length", f"expected {ENCODED_GAME_LEN} bytes, got {len(data)}"
        )

    my_hand_size = data[_HAND_SIZES_OFFSET]
    opponent_hand_size = data[_HAND_SIZES_OFFSET + 1]
    went_first = data[_WENT_FIRST_OFFSET]
    hand_count = my_hand_size + opponent_hand_size

    if my_hand_size > INIT_HAND_SIZE or opponent_hand_size > INIT_HAND_SIZE:
        raise _reject(
            "range_violation", f"hand sizes {my_hand_size}/{opponent_hand_size}"
        )
    if hand_count == 0:
        raise _reject("range_violation", "both hands are empty")
    if went_first > 1:
        raise _reject("range_violation", f"me_went_first byte is {went_first}")

    card_order = decompress_card_order(
        card_order_from_bytes(data[:CARD_ORDER_BYTE_LEN])
    )
    if card_order is None:
        raise _reject("permutation_overflow", "card order rank out of range")

    num_on_table = CARD_ORDER_LEN - hand_count
    grouping = grouping_from_bytes(data[_GROUPING_OFFSET:_WENT_FIRST_OFFSET])
    if grouping >> (2 * num_on_table):
        raise _reject("range_violation", "grouping bits set past the table cards")

    game = Game.empty(me_went_first=bool(went_first))
    for card_id in card_order[:my_hand_size]:
        game.locations[card_id] = HandLocation(Player.ME)
    for card_id in card_order[my_hand_size:hand_count]:
        game.locations[card_id] = HandLocation(Player.OPPONENT)

    combination: list[int] = []
    for idx, card_id in enumerate(card_order[hand_count:]):
        combination.append(card_id)
        ends_combination = read_grouping_bit(grouping, idx, COMBINATION_END)
        ends_group = read_grouping_bit(grouping, idx, GROUP_END)

        if ends_combination:
            # Table cards come back as the hand of whoever played them.
            for pending in combination:
                game.locations[pending] = HandLocation(game.current_player)
            if not game.can_play_cards(combination):
                raise _reject("illegal_replay", f"cannot play {combination} at {idx}")
            game.play_cards(combination)
            combination = []
        elif ends_group:
            raise _reject("illegal_replay", f"group ends inside a combination at {idx}")

        if ends_group:
            if not game.can_play_cards([]):
                raise _reject("illegal_replay", f"cannot pass at {idx}")
            game.play_cards([])

    if combination:
        raise _reject("illegal_replay", f"table ends inside a combination: {combination}")

    return game


def import_peer_game(data: bytes) -> Game:
    """Decode a blob written by the other player and take our own seat."""
    game = decode_game(data)
    game.switch_perspective()
    return game


# ---------------------------------------------------------------------------
# Client id
# ---------------------------------------------------------------------------


def client_id(game: Game) -> bytes:
    """8-byte id of a hand: fingerprints of my and the opponent's number cards.

    Cards already on the table count as the opponent's, so this is only
    meaningful while at most one combination (the opponent's) has been
    played.
    """
    my_hand: list[int] = []
    opponent_hand: list[int] = []
    for card_id, loc in enumerate(game.locations[:NUM_NORMAL]):
        if isinstance(loc, HandLocation) and loc.player is Player.ME:
            my_hand.append(card_id)
        elif isinstance(loc, (HandLocation, TableLocation)):
            opponent_hand.append(card_id)

    if (
        len(my_hand) != INIT_HAND_SIZE_WO_WILDCARD
        or len(opponent_hand) != INIT_HAND_SIZE_WO_WILDCARD
    ):
        raise ValueError(
            f"client id needs {INIT_HAND_SIZE_WO_WILDCARD} number cards per side, "
            f"got {len(my_hand)}/{len(opponent_hand)}"
        )
    return hand_fingerprint(my_hand) + hand_fingerprint(opponent_hand)
