"""Tests for haggisqr/codec/grouping.py"""

import pytest

from haggisqr.codec.grouping import (
    COMBINATION_END,
    GROUP_END,
    GROUPING_BYTE_LEN,
    grouping_from_bytes,
    grouping_to_bytes,
    read_grouping_bit,
    set_grouping_bit,
)


def test_byte_width():
    assert GROUPING_BYTE_LEN == 9


def test_bit_positions():
    assert set_grouping_bit(0, 0, COMBINATION_END) == 0b01
    assert set_grouping_bit(0, 0, GROUP_END) == 0b10
    assert set_grouping_bit(0, 3, COMBINATION_END) == 1 << 6
    assert set_grouping_bit(0, 33, GROUP_END) == 1 << 67


def test_set_then_read():
    grouping = 0
    grouping = set_grouping_bit(grouping, 2, COMBINATION_END)
    grouping = set_grouping_bit(grouping, 5, COMBINATION_END)
    grouping = set_grouping_bit(grouping, 5, GROUP_END)
    assert read_grouping_bit(grouping, 2, COMBINATION_END)
    assert not read_grouping_bit(grouping, 2, GROUP_END)
    assert read_grouping_bit(grouping, 5, GROUP_END)
    assert not read_grouping_bit(grouping, 0, COMBINATION_END)
    assert not read_grouping_bit(grouping, 33, GROUP_END)


def test_set_is_idempotent():
    once = set_grouping_bit(0, 4, GROUP_END)
    assert set_grouping_bit(once, 4, GROUP_END) == once


def test_index_out_of_range():
    with pytest.raises(ValueError):
        set_grouping_bit(0, 34, COMBINATION_END)


def test_bytes_big_endian_left_padded():
    grouping = set_grouping_bit(0, 0, COMBINATION_END)
    assert grouping_to_bytes(grouping) == b"\x00" * 8 + b"\x01"
    top = set_grouping_bit(0, 33, GROUP_END)
    assert grouping_to_bytes(top)[0] == 0b1000
    assert grouping_from_bytes(grouping_to_bytes(top)) == top


def test_from_bytes_wrong_width():
    with pytest.raises(ValueError):
        grouping_from_bytes(b"\x00" * 8)
