"""Workout program generation, overrides and training statistics."""

__version__ = "0.1.0"
