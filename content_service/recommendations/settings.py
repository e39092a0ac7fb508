"""Weight table and tuning knobs for the recommendation engine."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class ScoringWeights:
    """Score contributions of each signal."""

    # behavior
    like: float = 50.0
    watch_strong: float = 30.0
    watch_medium: float = 15.0
    short_watch_penalty: float = -20.0
    rewatch: float = 60.0
    hover: float = 5.0
    comment: float = 40.0
    unfollow_penalty: float = -100.0
    # similarity
    seed_embedding: float = 50.0
    seed_category: float = 10.0
    seed_creator: float = 15.0
    seed_language: float = 5.0
    interest_embedding: float = 40.0
    # popularity
    view_log: float = 5.0
    trending: float = 0.1
    trending_cap: float = 20.0


@dataclass(frozen=True)
class RecommendationSettings:
    """Thresholds, caps and resource limits."""

    decay_lambda: float = 0.1
    strong_watch_percent: float = 70.0
    medium_watch_percent: float = 30.0
    short_watch_percent: float = 10.0
    unfollow_window_days: float = 30.0
    max_per_category: int = 3
    max_per_creator: int = 3
    candidate_pool_size: int = 500
    request_timeout_seconds: Optional[float] = 10.0
    legacy_missing_duration: bool = False
    creator_fields: tuple = ("name",)


def build_scoring_weights(overrides: Optional[Mapping[str, Any]] = None) -> ScoringWeights:
    """Default weights with the given overrides applied.

    Raises ValueError for names that are not weights, so a typo in the
    config cannot silently leave a default in place.
    """
    if not overrides:
        return ScoringWeights()
    known = {f.name for f in fields(ScoringWeights)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ValueError(f"Unknown scoring weights: {', '.join(unknown)}")
    return replace(ScoringWeights(), **{k: float(v) for k, v in overrides.items()})


def build_recommendation_settings(config: Any) -> RecommendationSettings:
    """Build engine settings from a RecommendationConfig (or anything with the same attributes)."""
    timeout = getattr(config, "request_timeout_seconds", None)
    return RecommendationSettings(
        decay_lambda=float(config.decay_lambda),
        unfollow_window_days=float(config.unfollow_window_days),
        max_per_category=int(config.max_per_category),
        max_per_creator=int(config.max_per_creator),
        candidate_pool_size=max(int(config.candidate_pool_size), 1),
        request_timeout_seconds=float(timeout) if timeout else None,
        legacy_missing_duration=bool(config.legacy_missing_duration),
        creator_fields=tuple(config.creator_fields or ("name",)),
    )


def weights_as_dict(weights: ScoringWeights) -> Dict[str, float]:
    return {f.name: getattr(weights, f.name) for f in fields(weights)}
