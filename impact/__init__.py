"""impact - a small command-driven music catalog and player."""

__version__ = "0.1.0"
