"""Franchise file utilities: character visuals and coach wardrobe tools."""

__version__ = "0.1.0"
