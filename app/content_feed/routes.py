"""
Content feed routes for API endpoints.
"""
import logging

from flask import Blueprint, jsonify, request

from content_service.recommendations import ContentNotFoundError, UpstreamFailure

from .models import InvalidFeedQuery
from .services import FeedService

logger = logging.getLogger(__name__)


def create_content_feed_routes(feed_service: FeedService) -> Blueprint:
    """Create content feed routes blueprint."""
    bp = Blueprint('content_feed', __name__, url_prefix='/api/content')

    def _respond(seed_id=None):
        try:
            query = feed_service.build_query(
                request.args,
                user_id=request.cookies.get("uid"),
                seed_id=seed_id,
            )
        except InvalidFeedQuery as exc:
            return jsonify({"error": str(exc)}), 400

        try:
            return jsonify(feed_service.get_feed(query))
        except ContentNotFoundError as exc:
            logger.info("Related feed requested for unknown content %s", exc.content_id)
            return jsonify({"error": "Content not found"}), 404
        except UpstreamFailure as exc:
            logger.error("Recommendation request failed: %s", exc)
            return jsonify({"error": "Server error"}), 500

    @bp.route('/homepage-feed', methods=['GET'])
    def homepage_feed():
        """
        Personalized home feed (popularity ranked for anonymous visitors).

        Query parameters:
            - limit: Number of items (default 10, max 50)
            - explain: "1" to include each item's score breakdown
        """
        return _respond()

    @bp.route('/recommended/<content_id>', methods=['GET'])
    def recommended(content_id):
        """Content related to ``content_id``; 404 if it does not exist."""
        return _respond(seed_id=content_id)

    return bp
