"""Discogs 33⅓ LP shelf sorter core."""

__version__ = "0.3.0"
