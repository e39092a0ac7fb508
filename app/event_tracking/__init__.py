"""
Event Tracking Subsystem

Ingests viewer behavior events (likes, watch progress, hovers, comments,
unfollows) and folds them into the user history the recommender reads.
"""

from .event_tracker import EventTracker
from .event_types import EventType
from .models import Event, EventPayload

__all__ = ['EventTracker', 'EventType', 'Event', 'EventPayload']
