"""Pooled-fund raffle lifecycle: ticket sales, draw and winner registration."""

__version__ = "0.1.0"
