"""Chronii - personal time tracking with a live, grouped history."""

__version__ = "0.4.0"
