"""Shift Pay - shift timer and pay calculator."""

__version__ = "0.3.0"
