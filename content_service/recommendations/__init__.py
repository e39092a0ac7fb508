"""
Recommendation engine package for the home feed and related-content lists.

Provides an engine that can be reused by the web layer, the debug CLI, or
any future batch jobs without creating Flask dependencies.
"""

from .behavior import UserBehaviorProfile, WatchSignal, build_behavior_profile
from .diversity import apply_diversity
from .engine import (
    RecommendationEngine,
    RecommendationResponse,
    RecommendationScore,
    ScoredCandidate,
    build_default_engine,
)
from .errors import ContentNotFoundError, RecommendationError, UpstreamFailure
from .settings import (
    RecommendationSettings,
    ScoringWeights,
    build_recommendation_settings,
    build_scoring_weights,
)

__all__ = [
    "ContentNotFoundError",
    "RecommendationEngine",
    "RecommendationError",
    "RecommendationResponse",
    "RecommendationScore",
    "RecommendationSettings",
    "ScoredCandidate",
    "ScoringWeights",
    "UpstreamFailure",
    "UserBehaviorProfile",
    "WatchSignal",
    "apply_diversity",
    "build_behavior_profile",
    "build_default_engine",
    "build_recommendation_settings",
    "build_scoring_weights",
]
