"""
Per-request behavior profile.

The profile is built once from the stored history, before scoring starts,
and is read-only afterwards: every map is exposed through a
MappingProxyType so the scoring functions cannot mutate it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

import numpy as np

from ..models import ContentItem, UserHistory
from .settings import RecommendationSettings
from .vectors import centroid


@dataclass(frozen=True)
class WatchSignal:
    """Watch progress for one content item."""

    seconds_watched: float
    last_watched_at: Optional[datetime]
    rewatch_count: int = 0


@dataclass(frozen=True)
class UserBehaviorProfile:
    """Behavior index plus interest vector for one user, one request."""

    user_id: str
    liked_content_ids: frozenset = frozenset()
    watch_progress: Mapping[str, WatchSignal] = field(default_factory=lambda: MappingProxyType({}))
    hover_events: Mapping[str, datetime] = field(default_factory=lambda: MappingProxyType({}))
    unfollow_events: Mapping[str, datetime] = field(default_factory=lambda: MappingProxyType({}))
    comment_events: Mapping[str, datetime] = field(default_factory=lambda: MappingProxyType({}))
    interest_vector: Optional[np.ndarray] = None

    def summary(self) -> Dict[str, Any]:
        """Counts used by logs and the debug CLI."""
        return {
            "user_id": self.user_id,
            "likes": len(self.liked_content_ids),
            "watched": len(self.watch_progress),
            "hovers": len(self.hover_events),
            "unfollows": len(self.unfollow_events),
            "comments": len(self.comment_events),
            "has_interest_vector": self.interest_vector is not None,
        }


def watch_percentage(
    seconds_watched: float,
    duration: Optional[float],
    legacy_missing_duration: bool = False,
) -> Optional[float]:
    """Percentage of the video watched.

    Returns None when the duration is unknown, unless the legacy mode is on,
    in which case a missing duration counts as one second.
    """
    if not duration or duration <= 0:
        if not legacy_missing_duration:
            return None
        duration = 1.0
    return (seconds_watched / duration) * 100.0


def build_behavior_profile(
    history: UserHistory,
    engaged_content: Mapping[str, ContentItem],
    settings: RecommendationSettings,
) -> UserBehaviorProfile:
    """Index the stored history and compute the interest vector.

    Later records for the same key win, matching how the history arrays are
    appended to.
    """
    liked = frozenset(content_id for content_id in history.likes if content_id)

    progress: Dict[str, WatchSignal] = {}
    for record in history.watch_progress:
        if not record.content_id:
            continue
        progress[record.content_id] = WatchSignal(
            seconds_watched=record.progress,
            last_watched_at=record.last_watched_at,
            rewatch_count=record.watch_count,
        )

    hovers = {
        record.content_id: record.hovered_at
        for record in history.hover_history
        if record.content_id and record.hovered_at is not None
    }
    unfollows = {
        record.creator_id: record.unfollowed_at
        for record in history.unfollowed_creators
        if record.creator_id and record.unfollowed_at is not None
    }
    comments = {
        record.content_id: record.commented_at
        for record in history.commented_content
        if record.content_id and record.commented_at is not None
    }

    interest_vector = _interest_vector(liked, progress, set(comments), engaged_content, settings)

    return UserBehaviorProfile(
        user_id=history.user_id,
        liked_content_ids=liked,
        watch_progress=MappingProxyType(progress),
        hover_events=MappingProxyType(hovers),
        unfollow_events=MappingProxyType(unfollows),
        comment_events=MappingProxyType(comments),
        interest_vector=interest_vector,
    )


def _interest_vector(
    liked: frozenset,
    progress: Mapping[str, WatchSignal],
    commented: set,
    engaged_content: Mapping[str, ContentItem],
    settings: RecommendationSettings,
) -> Optional[np.ndarray]:
    """Centroid of embeddings of liked, commented or mostly-watched content."""
    qualifying = []
    for content_id, item in engaged_content.items():
        if not item.embedding:
            continue
        strongly_watched = False
        signal = progress.get(content_id)
        if signal is not None:
            # an unknown duration never counts as a strong watch here
            percent = watch_percentage(signal.seconds_watched, item.duration)
            strongly_watched = percent is not None and percent >= settings.strong_watch_percent
        if strongly_watched or content_id in liked or content_id in commented:
            qualifying.append(item.embedding)
    return centroid(qualifying)
