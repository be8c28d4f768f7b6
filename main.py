"""CLI entry points for dealing, demoing and decoding Haggis game codes."""

from __future__ import annotations

import argparse
import logging
import random
import sys


def _print_state(game) -> None:
    print(game.render())
    if game.is_game_over():
        my_score, opponent_score = game.calculate_score()
        print(f"Score: me={my_score} opponent={opponent_score}")


def cmd_deal(args):
    """Deal a hand and print its state, game code and client id."""
    from haggisqr.codec.game_codec import client_id, encode_game
    from haggisqr.env.game import Game

    seed = args.seed if args.seed is not None else random.randint(0, 9999)
    game = Game.deal(seed)
    print(f"=== Haggis deal (seed={seed}) ===\n")
    _print_state(game)
    print(f"\nCode:      {encode_game(game).hex()}")
    print(f"Client id: {client_id(game).hex()}")


def cmd_demo(args):
    """Play a random game, checking the code round trip after every move."""
    import numpy as np

    from haggisqr.codec.game_codec import decode_game, encode_game
    from haggisqr.env.card import format_cards
    from haggisqr.env.combination import play_rank_label
    from haggisqr.env.game import Game

    seed = args.seed if args.seed is not None else random.randint(0, 9999)
    rng = np.random.default_rng(seed)
    game = Game.deal(rng)
    print(f"=== Haggis Demo (seed={seed}) ===\n")

    step = 0
    while not game.is_game_over() and step < args.max_steps:
        plays = game.legal_plays()
        play = plays[int(rng.integers(len(plays)))]
        player = game.current_player.value
        if play:
            print(f"[Step {step+1}] {player} plays {format_cards(play)}  "
                  f"({play_rank_label(play)})")
        else:
            print(f"[Step {step+1}] {player} passes")
        game.play_cards(play)

        if decode_game(encode_game(game)) != game:
            print("Round trip mismatch!")
            sys.exit(1)
        step += 1

    print("\n=== Game Over ===" if game.is_game_over() else "\n=== Step limit ===")
    _print_state(game)
    print(f"\nCode: {encode_game(game).hex()}")
    print(f"Completed in {step} steps.")


def cmd_decode(args):
    """Decode a hex game code and print the state."""
    from haggisqr.codec.game_codec import DecodeError, decode_game, import_peer_game

    try:
        data = bytes.fromhex(args.code)
    except ValueError:
        print(f"Not a hex string: {args.code!r}")
        sys.exit(1)

    try:
        game = import_peer_game(data) if args.peer else decode_game(data)
    except DecodeError as exc:
        print(f"Invalid game code ({exc.reason}): {exc}")
        sys.exit(1)
    _print_state(game)


def cmd_test(args):
    """Run the test suite via pytest."""
    try:
        import pytest
    except ImportError:
        print("pytest not installed. Run: pip install -e '.[test]'")
        sys.exit(1)
    sys.exit(pytest.main(["tests/", "-v"] + (args.extra or [])))


def main():
    parser = argparse.ArgumentParser(
        description="Haggis game codes: deal, demo, decode and test runner."
    )
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = parser.add_subparsers(dest="command", required=True)

    # deal
    p_deal = sub.add_parser("deal", help="Deal a hand and print its game code")
    p_deal.add_argument("--seed", type=int, default=None)
    p_deal.set_defaults(func=cmd_deal)

    # demo
    p_demo = sub.add_parser("demo", help="Play a random game and print results")
    p_demo.add_argument("--seed", type=int, default=None)
    p_demo.add_argument("--max-steps", type=int, default=500)
    p_demo.set_defaults(func=cmd_demo)

    # decode
    p_decode = sub.add_parser("decode", help="Decode a hex game code")
    p_decode.add_argument("code", help="32-byte game code as hex")
    p_decode.add_argument("--peer", action="store_true",
                          help="The code was written by the other player")
    p_decode.set_defaults(func=cmd_decode)

    # test
    p_test = sub.add_parser("test", help="Run the test suite")
    p_test.add_argument("extra", nargs="*", help="Extra args passed to pytest")
    p_test.set_defaults(func=cmd_test)

    args = parser.parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args.func(args)


if __name__ == "__main__":
    main()
