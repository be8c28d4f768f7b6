"""Haggis game state and its compact optical-code encoding."""
