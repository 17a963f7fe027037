"""Keeps one draft GitHub release per release stream up to date."""

__version__ = "0.1.0"
