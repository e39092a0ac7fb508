"""
Factory for creating the content feed module.
"""
from content_service.recommendations import RecommendationEngine
from .services import FeedService
from .routes import create_content_feed_routes


def create_content_feed_module(engine: RecommendationEngine, default_limit: int = 10, max_limit: int = 50) -> dict:
    """
    Create the content feed module with all its components.

    Args:
        engine: RecommendationEngine wired to the document store
        default_limit: Page size when the request gives none
        max_limit: Largest accepted page size

    Returns:
        Dictionary containing:
            - service: FeedService instance
            - blueprint: Flask blueprint for routes
    """
    service = FeedService(engine, default_limit=default_limit, max_limit=max_limit)
    blueprint = create_content_feed_routes(service)

    return {
        "service": service,
        "blueprint": blueprint
    }
