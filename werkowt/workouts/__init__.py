"""Workout sessions, sets, personal records and training analytics."""
