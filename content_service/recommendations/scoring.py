"""
Pure scoring functions.

Every function here takes the candidate, a read-only behavior profile and
the current time explicitly, so the same inputs always give the same score.
The ``*_components`` variants return the per-signal contributions used by
the ``explain`` output; the ``*_score`` variants return their sum.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Dict, Optional

from ..models import ContentItem
from .behavior import UserBehaviorProfile, watch_percentage
from .settings import RecommendationSettings, ScoringWeights
from .vectors import cosine_similarity

SECONDS_PER_DAY = 86400.0


def days_between(later: datetime, earlier: Optional[datetime]) -> Optional[float]:
    """Fractional days from ``earlier`` to ``later``, clamped at 0. None if unknown."""
    if earlier is None:
        return None
    return max((later - earlier).total_seconds() / SECONDS_PER_DAY, 0.0)


def decay(days: float, decay_lambda: float) -> float:
    """Exponential recency decay, exp(-lambda * days)."""
    return math.exp(-decay_lambda * days)


def _decayed(weight: float, now: datetime, when: Optional[datetime], decay_lambda: float) -> float:
    days = days_between(now, when)
    if days is None:
        return 0.0
    return weight * decay(days, decay_lambda)


def behavior_components(
    item: ContentItem,
    profile: Optional[UserBehaviorProfile],
    weights: ScoringWeights,
    settings: RecommendationSettings,
    now: datetime,
) -> Dict[str, float]:
    """Per-signal behavior contributions for one candidate.

    Signals the user never produced are left out of the result.
    """
    if profile is None:
        return {}

    components: Dict[str, float] = {}

    if item.id in profile.liked_content_ids:
        components["like"] = weights.like

    signal = profile.watch_progress.get(item.id)
    if signal is not None:
        percent = watch_percentage(
            signal.seconds_watched,
            item.duration,
            settings.legacy_missing_duration,
        )
        if percent is not None:
            if percent >= settings.strong_watch_percent:
                components["watch"] = _decayed(
                    weights.watch_strong, now, signal.last_watched_at, settings.decay_lambda
                )
            elif percent >= settings.medium_watch_percent:
                components["watch"] = _decayed(
                    weights.watch_medium, now, signal.last_watched_at, settings.decay_lambda
                )
            elif percent <= settings.short_watch_percent and signal.rewatch_count == 0:
                components["watch"] = _decayed(
                    weights.short_watch_penalty, now, signal.last_watched_at, settings.decay_lambda
                )
        if signal.rewatch_count > 0:
            components["rewatch"] = weights.rewatch * signal.rewatch_count

    hovered_at = profile.hover_events.get(item.id)
    if hovered_at is not None:
        components["hover"] = _decayed(weights.hover, now, hovered_at, settings.decay_lambda)

    commented_at = profile.comment_events.get(item.id)
    if commented_at is not None:
        components["comment"] = _decayed(weights.comment, now, commented_at, settings.decay_lambda)

    unfollowed_at = profile.unfollow_events.get(item.creator_id)
    days = days_between(now, unfollowed_at)
    window = settings.unfollow_window_days
    if days is not None and window > 0 and days <= window:
        components["unfollow"] = weights.unfollow_penalty * (1.0 - days / window)

    return components


def behavior_score(
    item: ContentItem,
    profile: Optional[UserBehaviorProfile],
    weights: ScoringWeights,
    settings: RecommendationSettings,
    now: datetime,
) -> float:
    return sum(behavior_components(item, profile, weights, settings, now).values())


def similarity_components(
    item: ContentItem,
    weights: ScoringWeights,
    seed: Optional[ContentItem] = None,
    profile: Optional[UserBehaviorProfile] = None,
) -> Dict[str, float]:
    """Seed similarity when a seed is given, else interest-vector similarity."""
    if seed is not None:
        components = {
            "seed_embedding": cosine_similarity(item.embedding, seed.embedding) * weights.seed_embedding,
        }
        if item.category == seed.category:
            components["seed_category"] = weights.seed_category
        if item.creator_id == seed.creator_id:
            components["seed_creator"] = weights.seed_creator
        language = item.caption_language
        if language is not None and language == seed.caption_language:
            components["seed_language"] = weights.seed_language
        return components

    if profile is not None and profile.interest_vector is not None:
        return {
            "interest": cosine_similarity(item.embedding, profile.interest_vector)
            * weights.interest_embedding,
        }
    return {}


def similarity_score(
    item: ContentItem,
    weights: ScoringWeights,
    seed: Optional[ContentItem] = None,
    profile: Optional[UserBehaviorProfile] = None,
) -> float:
    return sum(similarity_components(item, weights, seed, profile).values())


def popularity_components(item: ContentItem, weights: ScoringWeights, now: datetime) -> Dict[str, float]:
    views = max(item.views, 0)
    age_days = days_between(now, item.created_at) or 0.0
    trending = min((views / (age_days + 1.0)) * weights.trending, weights.trending_cap)
    return {
        "views": math.log10(views + 1) * weights.view_log,
        "trending": trending,
    }


def popularity_score(item: ContentItem, weights: ScoringWeights, now: datetime) -> float:
    """log10(views + 1) * 5 plus the capped views-per-day trending term."""
    return sum(popularity_components(item, weights, now).values())
