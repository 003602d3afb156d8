"""Task filtering and reminder scheduling core for a to-do list app."""

__version__ = "0.1.0"
