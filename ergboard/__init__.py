"""Rowing club leaderboard backed by the Concept2 Logbook API."""

__version__ = "1.0.0"
