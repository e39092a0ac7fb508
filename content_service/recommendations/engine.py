"""
Recommendation engine.

This module lives inside content_service/ so it can be shared by the web
application, the debug CLI, or any batch job without introducing Flask
dependencies. Storage is reached only through the collaborator protocols in
``repositories``.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..models import ContentItem
from .behavior import UserBehaviorProfile, build_behavior_profile
from .diversity import apply_diversity
from .errors import ContentNotFoundError, RecommendationError, UpstreamFailure
from .repositories import (
    ContentRepository,
    CreatorInfoJoiner,
    LiveScheduleRepository,
    UserRepository,
)
from .scoring import behavior_components, popularity_components, similarity_components
from .settings import (
    RecommendationSettings,
    ScoringWeights,
    build_recommendation_settings,
    build_scoring_weights,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _remaining(deadline: Optional[float]) -> Optional[float]:
    if deadline is None:
        return None
    return max(deadline - time.monotonic(), 0.0)


# ---------------------------------------------------------------------------
# Core data structures
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ScoredCandidate:
    """A candidate plus its score for one ranking pass."""

    item: ContentItem
    score: float
    breakdown: Dict[str, float] = field(default_factory=dict)


@dataclass(slots=True)
class RecommendationScore:
    """Aggregated score information returned to callers."""

    score: float
    breakdown: Dict[str, float] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class RecommendationResponse:
    """Container for engine output.

    ``items`` are public dicts (no embedding, captions or approval flag) in
    ranked order, each carrying ``recommendation_score`` and the joined
    ``creator`` object.
    """

    items: List[Dict[str, Any]]
    scores: Dict[str, RecommendationScore]
    personalized: bool = False
    profile: Optional[Dict[str, Any]] = None
    generated_at: datetime = field(default_factory=_utc_now)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class RecommendationEngine:
    """Blends behavior, similarity and popularity scores into a diversified page."""

    def __init__(
        self,
        content_repository: ContentRepository,
        user_repository: UserRepository,
        live_schedule_repository: LiveScheduleRepository,
        creator_joiner: Optional[CreatorInfoJoiner] = None,
        settings: Optional[RecommendationSettings] = None,
        weights: Optional[ScoringWeights] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.content_repository = content_repository
        self.user_repository = user_repository
        self.live_schedule_repository = live_schedule_repository
        self.creator_joiner = creator_joiner
        self.settings = settings or RecommendationSettings()
        self.weights = weights or ScoringWeights()
        self.clock = clock

    def resolve_seed(self, content_id: str) -> ContentItem:
        """Look up a seed item; unknown or unapproved ids raise ContentNotFoundError."""
        try:
            item = self.content_repository.find_by_id(content_id)
        except Exception as exc:
            raise UpstreamFailure(f"Failed to load content {content_id}") from exc
        if item is None or not item.is_approved:
            raise ContentNotFoundError(content_id)
        return item

    def recommend(
        self,
        user_id: Optional[str] = None,
        limit: int = 10,
        seed_item: Optional[ContentItem] = None,
        timeout: Optional[float] = None,
    ) -> RecommendationResponse:
        """Rank a page of content for a user, a seed item, or an anonymous caller.

        ``timeout`` bounds the whole data load for this call and defaults to
        ``settings.request_timeout_seconds``.
        """
        if limit <= 0:
            raise ValueError("limit must be a positive integer")

        started = time.perf_counter()
        now = self.clock()
        exclude_ids = {seed_item.id} if seed_item is not None else set()

        candidates, profile = self._load_inputs(user_id, exclude_ids, now, timeout)
        ranked = self.rank(candidates, profile=profile, seed_item=seed_item, now=now, limit=limit)

        items = [
            {**candidate.item.to_public_dict(), "recommendation_score": candidate.score}
            for candidate in ranked
        ]
        items = self._attach_creators(items)
        if seed_item is not None:
            similarity_source = "seed"
        elif profile is not None and profile.interest_vector is not None:
            similarity_source = "interest"
        else:
            similarity_source = None
        scores = {
            candidate.item.id: RecommendationScore(
                score=candidate.score,
                breakdown=candidate.breakdown,
                metadata={
                    "rank": position,
                    "category": candidate.item.category,
                    "creator_id": candidate.item.creator_id,
                    "similarity_source": similarity_source,
                },
            )
            for position, candidate in enumerate(ranked, start=1)
        }

        logger.info(
            "[recommendations] user=%s seed=%s pool=%d personalized=%s returned=%d in %.1fms",
            user_id or "-",
            seed_item.id if seed_item is not None else "-",
            len(candidates),
            profile is not None,
            len(items),
            (time.perf_counter() - started) * 1000,
        )
        return RecommendationResponse(
            items=items,
            scores=scores,
            personalized=profile is not None,
            profile=profile.summary() if profile is not None else None,
            generated_at=now,
        )

    def rank(
        self,
        candidates: Sequence[ContentItem],
        profile: Optional[UserBehaviorProfile],
        seed_item: Optional[ContentItem],
        now: datetime,
        limit: int,
    ) -> List[ScoredCandidate]:
        """Score, sort and diversify. Pure: no repository access."""
        popularity_only = profile is None and seed_item is None

        scored: List[ScoredCandidate] = []
        for item in candidates:
            breakdown: Dict[str, float] = {}
            if not popularity_only:
                breakdown.update(behavior_components(item, profile, self.weights, self.settings, now))
                breakdown.update(similarity_components(item, self.weights, seed=seed_item, profile=profile))
            breakdown.update(popularity_components(item, self.weights, now))
            scored.append(ScoredCandidate(item=item, score=sum(breakdown.values()), breakdown=breakdown))

        # sorted() is stable, so ties keep the most-recently-updated-first pool order
        scored = sorted(scored, key=lambda candidate: candidate.score, reverse=True)
        return apply_diversity(
            scored,
            limit,
            max_per_category=self.settings.max_per_category,
            max_per_creator=self.settings.max_per_creator,
        )

    # Internals ----------------------------------------------------------------

    def _load_inputs(self, user_id, exclude_ids, now, timeout=None):
        """Fetch the candidate pool and the behavior profile concurrently.

        Both waits share one deadline, so the load never outlasts ``timeout``.
        """
        if timeout is None:
            timeout = self.settings.request_timeout_seconds
        deadline = time.monotonic() + timeout if timeout is not None else None
        executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="recommendations")
        try:
            profile_future = executor.submit(self._load_profile, user_id) if user_id else None
            candidates_future = executor.submit(self._load_candidates, exclude_ids, now)
            candidates = self._wait_for_candidates(candidates_future, profile_future, deadline)
            profile = self._wait_for_profile(profile_future, user_id, deadline)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return candidates, profile

    def _load_candidates(self, exclude_ids, now) -> List[ContentItem]:
        excluded = set(exclude_ids)
        excluded.update(self.live_schedule_repository.find_content_ids_scheduled_for_future_broadcast(now))
        candidates = self.content_repository.find_approved_candidates(
            excluded,
            self.settings.candidate_pool_size,
            sort_by_recent_update=True,
        )
        return [item for item in candidates if item.is_approved and item.id not in excluded]

    def _load_profile(self, user_id: str) -> Optional[UserBehaviorProfile]:
        history = self.user_repository.find_user_with_history(user_id)
        if history is None:
            return None
        engaged = self.content_repository.find_by_ids(history.engaged_content_ids())
        return build_behavior_profile(history, engaged, self.settings)

    def _wait_for_candidates(
        self,
        future: Future,
        profile_future: Optional[Future],
        deadline: Optional[float],
    ) -> List[ContentItem]:
        try:
            return future.result(timeout=_remaining(deadline))
        except FuturesTimeout as exc:
            future.cancel()
            if profile_future is not None:
                profile_future.cancel()
            logger.error("Candidate pool load missed the request deadline")
            raise UpstreamFailure("Timed out loading candidate content") from exc
        except RecommendationError:
            raise
        except Exception as exc:
            if profile_future is not None:
                profile_future.cancel()
            logger.error("Candidate pool load failed: %s", exc)
            raise UpstreamFailure(f"Failed to load candidate content: {exc}") from exc

    def _wait_for_profile(
        self,
        future: Optional[Future],
        user_id: Optional[str],
        deadline: Optional[float],
    ) -> Optional[UserBehaviorProfile]:
        if future is None:
            return None
        try:
            return future.result(timeout=_remaining(deadline))
        except FuturesTimeout:
            future.cancel()
            logger.warning("Profile load for %s timed out, ranking as anonymous", user_id)
        except Exception as exc:
            logger.warning("Profile load for %s failed, ranking as anonymous: %s", user_id, exc)
        return None

    def _attach_creators(self, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if self.creator_joiner is None or not items:
            return items
        try:
            return self.creator_joiner.attach_creator_info(items, self.settings.creator_fields)
        except Exception as exc:
            logger.error("Creator info join failed: %s", exc)
            raise UpstreamFailure(f"Failed to attach creator info: {exc}") from exc


def build_default_engine(store: Any, config: Any = None) -> RecommendationEngine:
    """Wire an engine to a DocumentStore using a RecommendationConfig."""
    settings = build_recommendation_settings(config) if config is not None else None
    weights = build_scoring_weights(getattr(config, "weights", None))
    return RecommendationEngine(
        content_repository=store.content,
        user_repository=store.users,
        live_schedule_repository=store.live_schedule,
        creator_joiner=store.creators,
        settings=settings,
        weights=weights,
    )
