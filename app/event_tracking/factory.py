"""
Factory for creating event tracking module.
"""
from content_service.document_store import JsonUserRepository
from .routes import create_event_tracking_blueprint
from .event_tracker import EventTracker


def create_event_tracking_module(user_repository: JsonUserRepository) -> dict:
    """Create event tracking module with service and routes.

    Args:
        user_repository: Repository the tracker writes behavior history to

    Returns:
        Dictionary containing the service and blueprint
    """
    event_tracker = EventTracker(user_repository)
    blueprint = create_event_tracking_blueprint(event_tracker)

    return {
        "service": event_tracker,
        "blueprint": blueprint
    }
