"""Tests for haggisqr/codec/hand_rank.py"""

import numpy as np
import pytest

from haggisqr.codec.hand_rank import (
    compress_hand,
    decompress_hand,
    hand_fingerprint,
    n_choose_k,
)


# ---------------------------------------------------------------------------
# n_choose_k
# ---------------------------------------------------------------------------


def test_n_choose_k_initial_hands():
    assert n_choose_k(36, 14) == 3_796_297_200
    assert n_choose_k(36, 14) < 2**32


def test_n_choose_k_small():
    assert n_choose_k(5, 2) == 10
    assert n_choose_k(5, 0) == 1
    assert n_choose_k(5, 5) == 1
    assert n_choose_k(0, 0) == 1


def test_n_choose_k_out_of_range():
    assert n_choose_k(3, 4) == 0
    assert n_choose_k(3, -1) == 0


# ---------------------------------------------------------------------------
# compress_hand / decompress_hand
# ---------------------------------------------------------------------------


def test_smallest_hand_is_zero():
    assert compress_hand(range(14)) == 0


def test_largest_hand_is_last():
    assert compress_hand(range(22, 36)) == n_choose_k(36, 14) - 1


def test_second_hand():
    assert compress_hand(list(range(13)) + [14]) == 1


def test_order_of_input_does_not_matter():
    hand = [35, 2, 17, 9, 0, 30, 21, 4, 11, 13, 27, 6, 33, 19]
    assert compress_hand(hand) == compress_hand(sorted(hand))


def test_small_universe_enumerates_in_order():
    from itertools import combinations

    ranks = [compress_hand(h, n=6) for h in combinations(range(6), 3)]
    assert ranks == list(range(n_choose_k(6, 3)))


def test_round_trip_random_hands():
    rng = np.random.default_rng(0)
    for _ in range(500):
        hand = rng.choice(36, size=14, replace=False).tolist()
        assert decompress_hand(compress_hand(hand), 14) == sorted(hand)


def test_decompress_boundaries():
    assert decompress_hand(0, 14) == list(range(14))
    assert decompress_hand(n_choose_k(36, 14) - 1, 14) == list(range(22, 36))


def test_decompress_out_of_range():
    with pytest.raises(ValueError):
        decompress_hand(n_choose_k(36, 14), 14)
    with pytest.raises(ValueError):
        decompress_hand(-1, 14)


def test_compress_rejects_bad_hands():
    with pytest.raises(ValueError):
        compress_hand([1, 1, 2])
    with pytest.raises(ValueError):
        compress_hand([0, 36])


# ---------------------------------------------------------------------------
# hand_fingerprint
# ---------------------------------------------------------------------------


def test_fingerprint_is_four_little_endian_bytes():
    hand = list(range(13)) + [14]
    assert hand_fingerprint(hand) == b"\x01\x00\x00\x00"
    top = hand_fingerprint(range(22, 36))
    assert int.from_bytes(top, "little") == n_choose_k(36, 14) - 1


@pytest.mark.parametrize("size", [0, 13, 15, 20])
def test_fingerprint_rejects_wrong_hand_size(size):
    with pytest.raises(ValueError):
        hand_fingerprint(range(size))
