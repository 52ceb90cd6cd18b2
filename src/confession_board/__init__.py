"""Confession board service: votes, comments, ranking and moderation."""

__version__ = "1.0.0"
