"""Werkowt backend: workouts, body weight, food logging and AI meal plans."""

__version__ = "0.1.0"
