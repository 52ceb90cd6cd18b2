"""Business logic services for the confession board."""

from .pagination import Page
from .rate_limit import RateLimiter, get_rate_limiter
from .votes import VoteAction, VoteOutcome, cast_vote

__all__ = [
    "Page",
    "RateLimiter",
    "get_rate_limiter",
    "VoteAction",
    "VoteOutcome",
    "cast_vote",
]
