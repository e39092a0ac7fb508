"""
Tests for the recommendation engine: ranking, candidate pool, fallbacks and failures.
"""

import math
import threading
import time
from collections import Counter
from datetime import timedelta

import pytest

from content_service.models import UserHistory, WatchProgressRecord
from content_service.recommendations import (
    ContentNotFoundError,
    RecommendationSettings,
    ScoringWeights,
    UpstreamFailure,
)
from content_service.recommendations.scoring import popularity_score


def _ids(response):
    return [item["id"] for item in response.items]


class TestAnonymousFeed:
    def test_comedy_never_exceeds_three_in_a_page_of_five(self, build_engine, item_factory):
        items = [item_factory(f"comedy-{i}", category="Comedy", views=10_000 - i) for i in range(4)]
        items += [item_factory(f"other-{i}", category=f"Cat{i}", views=10 + i) for i in range(6)]
        response = build_engine(items).recommend(limit=5)

        categories = Counter(item["category"] for item in response.items)
        assert len(response.items) == 5
        assert categories["Comedy"] == 3

    def test_ranked_by_popularity_only(self, build_engine, item_factory):
        items = [
            item_factory("low", views=1, embedding=[1.0, 0.0]),
            item_factory("high", views=5000, embedding=[1.0, 0.0]),
            item_factory("mid", views=100),
        ]
        response = build_engine(items).recommend(limit=3)

        assert _ids(response) == ["high", "mid", "low"]
        assert response.personalized is False
        assert response.profile is None
        for score in response.scores.values():
            assert set(score.breakdown) == {"views", "trending"}

    def test_items_are_public_and_carry_creator(self, build_engine, item_factory):
        items = [item_factory("a", creator_id="c1", embedding=[1.0], caption_language="en")]
        response = build_engine(items, creator_names={"c1": "Ada"}).recommend(limit=1)

        item = response.items[0]
        assert item["creator"] == {"id": "c1", "name": "Ada"}
        assert "embedding" not in item
        assert "captions" not in item
        assert "is_approved" not in item
        assert "creator_id" not in item
        assert item["recommendation_score"] == response.scores["a"].score

    def test_empty_pool_gives_empty_result(self, build_engine):
        response = build_engine([]).recommend(limit=5)
        assert response.items == []
        assert response.scores == {}

    def test_limit_must_be_positive(self, build_engine, item_factory):
        engine = build_engine([item_factory("a")])
        with pytest.raises(ValueError):
            engine.recommend(limit=0)


class TestCandidatePool:
    def test_future_live_broadcasts_are_excluded(self, build_engine, item_factory):
        items = [item_factory("live", views=10_000), item_factory("vod", views=1)]
        response = build_engine(items, live_ids=["live"]).recommend(limit=5)
        assert _ids(response) == ["vod"]

    def test_unapproved_content_is_excluded(self, build_engine, item_factory):
        items = [item_factory("pending", views=10_000, is_approved=False), item_factory("ok")]
        assert _ids(build_engine(items).recommend(limit=5)) == ["ok"]

    def test_seed_is_excluded(self, build_engine, item_factory):
        items = [item_factory("seed", category="Drama"), item_factory("other", category="Drama")]
        engine = build_engine(items)
        response = engine.recommend(limit=5, seed_item=engine.resolve_seed("seed"))
        assert _ids(response) == ["other"]

    def test_pool_is_bounded(self, build_engine, item_factory):
        items = [item_factory(f"v{i}", updated_days_ago=i) for i in range(20)]
        engine = build_engine(items, settings=RecommendationSettings(candidate_pool_size=5))
        response = engine.recommend(limit=20)

        assert engine.content_repository.candidate_calls[0]["limit"] == 5
        assert sorted(_ids(response)) == sorted(f"v{i}" for i in range(5))

    def test_ties_keep_most_recently_updated_first(self, build_engine, item_factory):
        items = [
            item_factory("older", category="A", updated_days_ago=5),
            item_factory("newest", category="B", updated_days_ago=1),
            item_factory("middle", category="C", updated_days_ago=3),
        ]
        assert _ids(build_engine(items).recommend(limit=3)) == ["newest", "middle", "older"]


class TestPersonalizedFeed:
    def test_interest_vector_contribution(self, build_engine, item_factory):
        liked = item_factory("x", category="A", embedding=[1.0, 0.0])
        similar = item_factory("y", category="B", views=50, embedding=[0.9, math.sqrt(1 - 0.81)])
        history = UserHistory(user_id="ada", likes=["x"])
        engine = build_engine([liked, similar], histories={"ada": history})

        response = engine.recommend(user_id="ada", limit=5)
        score = response.scores["y"]

        assert response.personalized is True
        assert score.breakdown["interest"] == pytest.approx(0.9 * 40)
        assert score.score == pytest.approx(0.9 * 40 + popularity_score(similar, ScoringWeights(), engine.clock()))

    def test_strong_watch_one_day_ago(self, build_engine, item_factory, now):
        watched = item_factory("w", duration=100)
        history = UserHistory(
            user_id="ada",
            watch_progress=[WatchProgressRecord(content_id="w", progress=95, last_watched_at=now - timedelta(days=1))],
        )
        response = build_engine([watched], histories={"ada": history}).recommend(user_id="ada", limit=1)
        assert response.scores["w"].breakdown["watch"] == pytest.approx(27.145, abs=1e-3)

    def test_liked_content_ranks_above_more_popular(self, build_engine, item_factory):
        items = [item_factory("popular", category="A", views=1000), item_factory("liked", category="B", views=1)]
        history = UserHistory(user_id="ada", likes=["liked"])
        response = build_engine(items, histories={"ada": history}).recommend(user_id="ada", limit=2)
        assert _ids(response) == ["liked", "popular"]

    def test_new_user_gets_popularity_ranking(self, build_engine, item_factory):
        items = [item_factory(f"v{i}", category=f"C{i}", views=i * 10) for i in range(6)]
        engine = build_engine(items, histories={"new": UserHistory(user_id="new")})
        response = engine.recommend(user_id="new", limit=4)

        assert response.personalized is True
        assert _ids(response) == ["v5", "v4", "v3", "v2"]

    def test_unknown_user_is_anonymous(self, build_engine, item_factory):
        response = build_engine([item_factory("a")]).recommend(user_id="ghost", limit=1)
        assert response.personalized is False
        assert _ids(response) == ["a"]

    def test_deterministic_for_same_inputs(self, build_engine, item_factory, now):
        items = [
            item_factory(f"v{i}", category=f"C{i % 3}", creator_id=f"u{i % 4}", views=(i * 37) % 11,
                         embedding=[float(i % 5), 1.0, float(i % 2)])
            for i in range(15)
        ]
        history = UserHistory(
            user_id="ada",
            likes=["v1", "v7"],
            watch_progress=[WatchProgressRecord(content_id="v3", progress=50, last_watched_at=now)],
        )
        engine = build_engine(items, histories={"ada": history})
        first = engine.recommend(user_id="ada", limit=8)
        second = engine.recommend(user_id="ada", limit=8)

        assert _ids(first) == _ids(second)
        assert [s.score for s in first.scores.values()] == [s.score for s in second.scores.values()]


class TestRelatedContent:
    def test_seed_category_and_creator_similarity(self, build_engine, item_factory):
        seed = item_factory("seed", category="Drama", creator_id="c1")
        match = item_factory("match", category="Drama", creator_id="c1")
        engine = build_engine([seed, match])
        response = engine.recommend(limit=5, seed_item=engine.resolve_seed("seed"))

        breakdown = response.scores["match"].breakdown
        assert breakdown["seed_category"] + breakdown["seed_creator"] == 25.0

    def test_seed_similarity_applies_for_anonymous(self, build_engine, item_factory):
        seed = item_factory("seed", category="Drama", embedding=[1.0, 0.0])
        near = item_factory("near", category="Other", embedding=[1.0, 0.0])
        far = item_factory("far", category="Other2", views=100, embedding=[0.0, 1.0])
        engine = build_engine([seed, near, far])
        response = engine.recommend(limit=2, seed_item=engine.resolve_seed("seed"))
        assert _ids(response)[0] == "near"

    def test_uncategorized_items_share_the_seed_category(self, build_engine, item_factory):
        seed = item_factory("seed", category="", creator_id="c1")
        loose = item_factory("loose", category="", creator_id="c2")
        engine = build_engine([seed, loose])
        response = engine.recommend(limit=1, seed_item=engine.resolve_seed("seed"))
        assert response.scores["loose"].breakdown["seed_category"] == 10.0

    def test_score_metadata(self, build_engine, item_factory):
        seed = item_factory("seed", category="Drama", creator_id="c1")
        first = item_factory("first", category="Drama", creator_id="c1")
        second = item_factory("second", category="News", creator_id="c2")
        engine = build_engine([seed, first, second])
        response = engine.recommend(limit=2, seed_item=engine.resolve_seed("seed"))

        assert response.scores["first"].metadata == {
            "rank": 1,
            "category": "Drama",
            "creator_id": "c1",
            "similarity_source": "seed",
        }
        assert response.scores["second"].metadata["rank"] == 2


    def test_unknown_seed(self, build_engine, item_factory):
        engine = build_engine([item_factory("a")])
        with pytest.raises(ContentNotFoundError) as excinfo:
            engine.resolve_seed("missing")
        assert excinfo.value.content_id == "missing"

    def test_unapproved_seed_is_not_found(self, build_engine, item_factory):
        engine = build_engine([item_factory("pending", is_approved=False)])
        with pytest.raises(ContentNotFoundError):
            engine.resolve_seed("pending")


class TestFailures:
    def test_profile_failure_falls_back_to_anonymous(self, build_engine, item_factory):
        class BrokenUsers:
            def find_user_with_history(self, user_id):
                raise ConnectionError("user store down")

        items = [item_factory("a", views=5), item_factory("b", views=50)]
        response = build_engine(items, user_repository=BrokenUsers()).recommend(user_id="ada", limit=2)

        assert response.personalized is False
        assert _ids(response) == ["b", "a"]

    def test_candidate_failure_raises_upstream_failure(self, build_engine, item_factory):
        class BrokenContent:
            def find_approved_candidates(self, exclude_ids, limit, sort_by_recent_update=True):
                raise ConnectionError("content store down")

            def find_by_ids(self, content_ids):
                return {}

        engine = build_engine([], content_repository=BrokenContent())
        with pytest.raises(UpstreamFailure) as excinfo:
            engine.recommend(limit=3)
        assert isinstance(excinfo.value.__cause__, ConnectionError)

    def test_candidate_timeout_raises_upstream_failure(self, build_engine, item_factory):
        release = threading.Event()

        class SlowContent:
            def find_approved_candidates(self, exclude_ids, limit, sort_by_recent_update=True):
                release.wait(5)
                return []

            def find_by_ids(self, content_ids):
                return {}

        engine = build_engine(
            [],
            content_repository=SlowContent(),
            settings=RecommendationSettings(request_timeout_seconds=0.05),
        )
        try:
            with pytest.raises(UpstreamFailure):
                engine.recommend(limit=3)
        finally:
            release.set()

    def test_profile_timeout_falls_back_to_anonymous(self, build_engine, item_factory):
        release = threading.Event()

        class SlowUsers:
            def find_user_with_history(self, user_id):
                release.wait(5)
                return None

        engine = build_engine(
            [item_factory("a")],
            user_repository=SlowUsers(),
            settings=RecommendationSettings(request_timeout_seconds=0.05),
        )
        try:
            response = engine.recommend(user_id="ada", limit=1)
        finally:
            release.set()
        assert response.personalized is False
        assert _ids(response) == ["a"]

    def test_profile_and_candidate_waits_share_one_deadline(self, build_engine, item_factory):
        release = threading.Event()

        item = item_factory("a")

        class SlowContent:
            def find_approved_candidates(self, exclude_ids, limit, sort_by_recent_update=True):
                time.sleep(0.2)
                return [item]

            def find_by_ids(self, content_ids):
                return {}

        class HungUsers:
            def find_user_with_history(self, user_id):
                release.wait(5)
                return None

        engine = build_engine(
            [],
            content_repository=SlowContent(),
            user_repository=HungUsers(),
            settings=RecommendationSettings(request_timeout_seconds=0.3),
        )
        started = time.monotonic()
        try:
            response = engine.recommend(user_id="ada", limit=1)
        finally:
            release.set()
        elapsed = time.monotonic() - started

        assert elapsed < 0.45
        assert response.personalized is False
        assert _ids(response) == ["a"]

    def test_call_timeout_overrides_setting(self, build_engine):
        release = threading.Event()

        class HungContent:
            def find_approved_candidates(self, exclude_ids, limit, sort_by_recent_update=True):
                release.wait(5)
                return []

            def find_by_ids(self, content_ids):
                return {}

        engine = build_engine(
            [],
            content_repository=HungContent(),
            settings=RecommendationSettings(request_timeout_seconds=30.0),
        )
        started = time.monotonic()
        try:
            with pytest.raises(UpstreamFailure):
                engine.recommend(limit=3, timeout=0.05)
        finally:
            release.set()
        assert time.monotonic() - started < 1.0


    def test_seed_lookup_failure_is_upstream(self, build_engine):
        class BrokenContent:
            def find_by_id(self, content_id):
                raise OSError("disk gone")

        engine = build_engine([], content_repository=BrokenContent())
        with pytest.raises(UpstreamFailure):
            engine.resolve_seed("a")
