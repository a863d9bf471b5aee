"""Content syndication engine."""

__version__ = "0.1.0"
