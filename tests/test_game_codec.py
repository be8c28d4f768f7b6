"""Tests for haggisqr/codec/game_codec.py"""

import copy

import numpy as np
import pytest

from haggisqr.codec.game_codec import (
    ENCODED_GAME_LEN,
    DecodeError,
    client_id,
    decode_game,
    encode_game,
    import_peer_game,
)
from haggisqr.codec.hand_rank import hand_fingerprint
from haggisqr.env.card import NUM_NORMAL
from haggisqr.env.game import Game, HandLocation, Player, TableLocation

ME = Player.ME
OPP = Player.OPPONENT

# Same deal as in test_game.py: M = my hand, O = opponent's hand, H = Haggis.
LAYOUT = "OHOOHHOMMOMMMMOMHOMOHOMMOHMMOHMOOHOMOOOMMM"


def _game_from_layout(layout=LAYOUT, me_went_first=True):
    game = Game.empty(me_went_first)
    for card_id, ch in enumerate(layout):
        if ch == "M":
            game.locations[card_id] = HandLocation(ME)
        elif ch == "O":
            game.locations[card_id] = HandLocation(OPP)
    return game


def _round_trip(game):
    data = encode_game(game)
    assert len(data) == ENCODED_GAME_LEN
    assert decode_game(data) == game


def _corrupt(data, offset, value):
    buf = bytearray(data)
    buf[offset] = value
    return bytes(buf)


# ---------------------------------------------------------------------------
# Round trips
# ---------------------------------------------------------------------------


def test_round_trip_fresh_deal():
    _round_trip(Game.deal(0))
    _round_trip(Game.deal(1, me_went_first=False))


def test_round_trip_one_combination():
    game = _game_from_layout()
    game.play_cards([11, 12, 13])
    _round_trip(game)


def test_round_trip_after_pass():
    game = _game_from_layout()
    game.play_cards([11, 12, 13])
    game.play_cards([])
    _round_trip(game)
    decoded = decode_game(encode_game(game))
    assert decoded.locations[11] == TableLocation(0, ME, True)
    assert decoded.last_combination_type is None


def test_round_trip_two_combinations_open_group():
    game = _game_from_layout()
    game.play_cards([11, 12, 13])
    game.play_cards([31, 32, 36])
    _round_trip(game)


def test_round_trip_two_groups():
    game = _game_from_layout()
    game.play_cards([11, 12, 13])
    game.play_cards([31, 32, 36])
    game.play_cards([])
    game.play_cards([0])  # 2♠
    _round_trip(game)


def test_round_trip_bomb_capture():
    game = _game_from_layout()
    game.play_cards([8])  # 10♠
    game.play_cards([36, 37])  # J-Q bomb
    game.play_cards([])
    _round_trip(game)
    decoded = decode_game(encode_game(game))
    assert decoded.locations[36].captured_by is ME


def test_round_trip_opponent_first():
    game = _game_from_layout(me_went_first=False)
    game.play_cards([31, 32, 36])
    _round_trip(game)
    assert decode_game(encode_game(game)).current_player is ME


def test_round_trip_random_games():
    rng = np.random.default_rng(11)
    for seed in range(5):
        game = Game.deal(seed, me_went_first=bool(seed % 2))
        _round_trip(game)
        while not game.is_game_over():
            plays = game.legal_plays()
            game.play_cards(plays[int(rng.integers(len(plays)))])
            _round_trip(game)


def test_trailing_bytes_ignored():
    game = Game.deal(3)
    assert decode_game(encode_game(game) + b"\x00\xff") == game


def test_encode_rejects_incomplete_game():
    game = Game.empty()
    game.locations[0] = HandLocation(ME)
    with pytest.raises(ValueError):
        encode_game(game)


# ---------------------------------------------------------------------------
# Rejections
# ---------------------------------------------------------------------------


def _reason(data):
    with pytest.raises(DecodeError) as exc_info:
        decode_game(data)
    return exc_info.value.reason


def test_reject_short_input():
    data = encode_game(Game.deal(0))
    assert _reason(data[:-1]) == "malformed_length"
    assert _reason(b"") == "malformed_length"


def test_decode_error_is_value_error():
    with pytest.raises(ValueError):
        decode_game(b"\x00")


def test_reject_hand_size_too_large():
    data = encode_game(Game.deal(0))
    assert _reason(_corrupt(data, 20, 18)) == "range_violation"
    assert _reason(_corrupt(data, 21, 255)) == "range_violation"


def test_reject_both_hands_empty():
    data = _corrupt(_corrupt(encode_game(Game.deal(0)), 20, 0), 21, 0)
    assert _reason(data) == "range_violation"


def test_reject_went_first_byte():
    data = encode_game(Game.deal(0))
    assert _reason(_corrupt(data, 31, 2)) == "range_violation"


def test_reject_grouping_bits_past_table():
    # Nothing is on the table after a deal, so no bit may be set.
    data = encode_game(Game.deal(0))
    assert _reason(_corrupt(data, 30, 0b01)) == "range_violation"


def test_reject_permutation_overflow():
    data = encode_game(Game.deal(0))
    data = b"\xff" * 20 + data[20:]
    assert _reason(data) == "permutation_overflow"


def test_reject_split_combination():
    game = _game_from_layout()
    game.play_cards([11, 12, 13])
    data = encode_game(game)
    # An extra combination end after the first table card splits the run
    # into 4♥ and 5♥ 6♥, which is not a combination.
    assert _reason(_corrupt(data, 30, data[30] | 0b01)) == "illegal_replay"


def test_reject_cards_left_after_last_combination():
    # Claim one card less for the opponent: it becomes a table card that
    # ends no combination.
    data = encode_game(Game.deal(0))
    assert _reason(_corrupt(data, 21, 16)) == "illegal_replay"


def test_reject_group_end_inside_combination():
    game = _game_from_layout()
    game.play_cards([11, 12, 13])
    data = encode_game(game)
    assert _reason(_corrupt(data, 30, data[30] | 0b10)) == "illegal_replay"


def test_reject_merged_combinations():
    game = _game_from_layout()
    game.play_cards([11, 12, 13])
    game.play_cards([])
    game.play_cards([7])  # 9♠
    data = encode_game(game)
    # Dropping both end bits of the first group turns 4♥ 5♥ 6♥ 9♠ into a
    # single play.
    grouping_byte = data[30]
    assert grouping_byte & 0b1110000 == 0b1110000
    assert _reason(_corrupt(data, 30, grouping_byte & ~0b110000)) == "illegal_replay"


# ---------------------------------------------------------------------------
# Peers and client id
# ---------------------------------------------------------------------------


def test_import_peer_game_switches_perspective():
    game = _game_from_layout()
    game.play_cards([11, 12, 13])
    game.play_cards([])
    peer = import_peer_game(encode_game(game))

    expected = copy.deepcopy(game)
    expected.switch_perspective()
    assert peer == expected
    assert peer.locations[11].captured_by is OPP
    assert peer.current_player is OPP


def test_client_id_fresh_deal():
    game = Game.deal(9)
    my_normal = [c for c in game.get_hand(ME) if c < NUM_NORMAL]
    opponent_normal = [c for c in game.get_hand(OPP) if c < NUM_NORMAL]
    cid = client_id(game)
    assert len(cid) == 8
    assert cid == hand_fingerprint(my_normal) + hand_fingerprint(opponent_normal)


def test_client_id_counts_table_as_opponent():
    game = Game.deal(9, me_went_first=False)
    before = client_id(game)
    opening = next(p for p in game.legal_plays() if all(c < NUM_NORMAL for c in p))
    game.play_cards(opening)
    assert client_id(game) == before


def test_client_id_after_my_play_fails():
    game = Game.deal(9)
    single = next(c for c in game.get_hand(ME) if c < NUM_NORMAL)
    game.play_cards([single])
    with pytest.raises(ValueError):
        client_id(game)


def test_client_id_differs_per_side():
    game = Game.deal(4)
    peer = copy.deepcopy(game)
    peer.switch_perspective()
    cid, peer_cid = client_id(game), client_id(peer)
    assert cid[:4] == peer_cid[4:]
    assert cid[4:] == peer_cid[:4]
