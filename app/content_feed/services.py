"""
Content feed services: query parsing and recommendation serialization.
"""
import logging
from typing import Any, Dict, List, Optional

from content_service.recommendations import RecommendationEngine, RecommendationResponse

from .models import FeedQuery, InvalidFeedQuery

logger = logging.getLogger(__name__)

TRUTHY = {"1", "true", "yes", "on"}


def parse_limit(raw: Optional[str], default: int, maximum: int) -> int:
    """Parse the ``limit`` query parameter.

    Missing or blank values fall back to ``default``; anything that is not an
    integer in ``1..maximum`` raises InvalidFeedQuery.
    """
    if raw is None or str(raw).strip() == "":
        return default
    try:
        limit = int(str(raw).strip())
    except ValueError:
        raise InvalidFeedQuery(f"limit must be an integer, got {raw!r}")
    if limit < 1 or limit > maximum:
        raise InvalidFeedQuery(f"limit must be between 1 and {maximum}")
    return limit


def parse_explain(raw: Optional[str]) -> bool:
    return str(raw or "").strip().lower() in TRUTHY


class FeedService:
    """Turns feed queries into engine calls and JSON-ready lists."""

    def __init__(self, engine: RecommendationEngine, default_limit: int = 10, max_limit: int = 50):
        self.engine = engine
        self.default_limit = default_limit
        self.max_limit = max_limit

    def build_query(
        self,
        args: Dict[str, Any],
        user_id: Optional[str] = None,
        seed_id: Optional[str] = None,
    ) -> FeedQuery:
        """Build a FeedQuery from request args."""
        return FeedQuery(
            limit=parse_limit(args.get("limit"), self.default_limit, self.max_limit),
            explain=parse_explain(args.get("explain")),
            user_id=user_id or None,
            seed_id=seed_id,
        )

    def get_feed(self, query: FeedQuery) -> List[Dict[str, Any]]:
        """Home feed when the query has no seed, related content otherwise.

        Raises ContentNotFoundError for an unknown seed and UpstreamFailure
        when storage cannot be read.
        """
        seed_item = self.engine.resolve_seed(query.seed_id) if query.is_related else None
        response = self.engine.recommend(user_id=query.user_id, limit=query.limit, seed_item=seed_item)
        return self._serialize(response, query.explain)

    def _serialize(self, response: RecommendationResponse, explain: bool) -> List[Dict[str, Any]]:
        items = []
        for item in response.items:
            payload = dict(item)
            if explain:
                score = response.scores.get(payload.get("id"))
                payload["score_breakdown"] = dict(score.breakdown) if score else {}
            items.append(payload)
        return items
