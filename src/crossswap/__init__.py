"""Fusion+ cross-chain swap client and proxy."""

__version__ = "0.1.0"
