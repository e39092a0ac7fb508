"""
Event Types for the Event Tracking System

Defines all allowed event types as an enum for type safety and consistency.
"""

from enum import Enum


class EventType(Enum):
    """Allowed event types for tracking."""

    # Content-related events
    LIKE = "like"
    UNLIKE = "unlike"
    WATCH_PROGRESS = "watch_progress"
    REWATCH = "rewatch"
    HOVER = "hover"
    COMMENT = "comment"

    # Creator-related events
    UNFOLLOW = "unfollow"
    FOLLOW = "follow"

    @classmethod
    def is_valid(cls, event_type: str) -> bool:
        """Check if an event type string is valid."""
        try:
            cls(event_type)
            return True
        except ValueError:
            return False

    @classmethod
    def get_allowed_types(cls) -> set[str]:
        """Get all allowed event type strings."""
        return {e.value for e in cls}

    @property
    def targets_creator(self) -> bool:
        return self in (EventType.UNFOLLOW, EventType.FOLLOW)
