"""Fixed-width byte encoding of a game."""
