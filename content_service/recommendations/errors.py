"""Exceptions raised by the recommendation engine."""

from __future__ import annotations


class RecommendationError(Exception):
    """Base class for recommendation failures."""


class ContentNotFoundError(RecommendationError):
    """Seed content does not exist or is not approved."""

    def __init__(self, content_id: str):
        super().__init__(f"Content with id {content_id} not found")
        self.content_id = content_id


class UpstreamFailure(RecommendationError):
    """A repository call failed or timed out."""
