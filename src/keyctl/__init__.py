"""keyctl — room key custody control."""

__version__ = "0.1.0"
