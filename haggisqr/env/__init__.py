"""Cards, combinations and the game rules."""
