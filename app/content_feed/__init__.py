"""
Content feed module: home feed and related-content recommendations.
"""

from .services import FeedService, parse_limit
from .routes import create_content_feed_routes
from .factory import create_content_feed_module

__all__ = ['FeedService', 'parse_limit', 'create_content_feed_routes', 'create_content_feed_module']
