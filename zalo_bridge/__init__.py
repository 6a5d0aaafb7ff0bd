"""Zalo bridge: send, mirror and display Zalo chat traffic."""

__version__ = "1.0.0"
