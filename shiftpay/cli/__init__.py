"""Shift Pay CLI."""
