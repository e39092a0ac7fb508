"""
Shared fixtures: in-memory repositories and content builders for engine tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

import pytest

from content_service.models import Caption, ContentItem, UserHistory
from content_service.recommendations import RecommendationEngine, RecommendationSettings

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_item(
    item_id: str,
    category: str = "General",
    creator_id: Optional[str] = None,
    views: int = 0,
    age_days: float = 10,
    updated_days_ago: Optional[float] = None,
    duration: Optional[float] = 100.0,
    embedding: Optional[List[float]] = None,
    caption_language: Optional[str] = None,
    is_approved: bool = True,
) -> ContentItem:
    created_at = NOW - timedelta(days=age_days)
    updated_at = NOW - timedelta(days=updated_days_ago if updated_days_ago is not None else age_days)
    return ContentItem(
        id=item_id,
        creator_id=creator_id or f"creator-{item_id}",
        title=f"Video {item_id}",
        category=category,
        views=views,
        created_at=created_at,
        updated_at=updated_at,
        duration=duration,
        embedding=embedding,
        captions=[Caption(language_code=caption_language)] if caption_language else [],
        is_approved=is_approved,
    )


class FakeContentRepository:
    def __init__(self, items: Iterable[ContentItem]):
        self.items: Dict[str, ContentItem] = {item.id: item for item in items}
        self.candidate_calls = []

    def find_approved_candidates(self, exclude_ids, limit, sort_by_recent_update=True):
        excluded = set(exclude_ids)
        self.candidate_calls.append({"exclude_ids": excluded, "limit": limit})
        pool = [item for item in self.items.values() if item.is_approved and item.id not in excluded]
        if sort_by_recent_update:
            pool.sort(key=lambda item: item.updated_at, reverse=True)
        return pool[:limit]

    def find_by_id(self, content_id):
        return self.items.get(content_id)

    def find_by_ids(self, content_ids):
        return {cid: self.items[cid] for cid in content_ids if cid in self.items}


class FakeUserRepository:
    def __init__(self, histories: Optional[Dict[str, UserHistory]] = None):
        self.histories = histories or {}

    def find_user_with_history(self, user_id):
        return self.histories.get(user_id)


class FakeLiveScheduleRepository:
    def __init__(self, content_ids: Optional[List[str]] = None):
        self.content_ids = list(content_ids or [])
        self.seen_now = []

    def find_content_ids_scheduled_for_future_broadcast(self, now):
        self.seen_now.append(now)
        return list(self.content_ids)


class FakeCreatorJoiner:
    def __init__(self, names: Optional[Dict[str, str]] = None):
        self.names = names or {}

    def attach_creator_info(self, items, fields):
        joined = []
        for item in items:
            decorated = dict(item)
            creator_id = decorated.pop("creator_id")
            decorated["creator"] = {"id": creator_id, "name": self.names.get(creator_id, "")}
            joined.append(decorated)
        return joined


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def item_factory():
    return make_item


@pytest.fixture
def build_engine():
    """Return a function wiring an engine to in-memory repositories at a fixed clock."""

    def _build(
        items,
        histories=None,
        live_ids=None,
        settings=None,
        weights=None,
        content_repository=None,
        user_repository=None,
        creator_names=None,
    ):
        return RecommendationEngine(
            content_repository=content_repository or FakeContentRepository(items),
            user_repository=user_repository or FakeUserRepository(histories),
            live_schedule_repository=FakeLiveScheduleRepository(live_ids),
            creator_joiner=FakeCreatorJoiner(creator_names),
            settings=settings or RecommendationSettings(),
            weights=weights,
            clock=lambda: NOW,
        )

    return _build
