"""
Data Models for Event Tracking

Defines the data structures used by the event tracking system.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .event_types import EventType


@dataclass
class EventPayload:
    """Payload structure for incoming events from frontend."""

    type: str
    content_id: Optional[str] = None
    creator_id: Optional[str] = None
    progress: Optional[float] = None
    meta: Dict[str, Any] = field(default_factory=dict)
    ts: Optional[str] = None
    tz_offset_min: Optional[int] = None

    def validate(self) -> bool:
        """Validate the payload structure and the fields its event type needs."""
        well_formed = (
            isinstance(self.type, str) and
            (self.content_id is None or isinstance(self.content_id, str)) and
            (self.creator_id is None or isinstance(self.creator_id, str)) and
            (self.progress is None or (
                isinstance(self.progress, (int, float))
                and not isinstance(self.progress, bool)
                and self.progress >= 0
            )) and
            isinstance(self.meta, dict) and
            (self.ts is None or isinstance(self.ts, str)) and
            (self.tz_offset_min is None or isinstance(self.tz_offset_min, int))
        )
        if not well_formed or not EventType.is_valid(self.type):
            return False

        event_type = EventType(self.type)
        if event_type.targets_creator:
            return bool(self.creator_id)
        if not self.content_id:
            return False
        if event_type is EventType.WATCH_PROGRESS:
            return self.progress is not None
        return True


@dataclass
class Event:
    """Internal event structure for storage."""

    ts: str
    type: str
    content_id: Optional[str] = None
    creator_id: Optional[str] = None
    progress: Optional[float] = None
    meta: Dict[str, Any] = field(default_factory=dict)
    path: Optional[str] = None
    ua: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "ts": self.ts,
            "type": self.type,
            "content_id": self.content_id,
            "creator_id": self.creator_id,
            "progress": self.progress,
            "meta": self.meta,
            "path": self.path,
            "ua": self.ua
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Event':
        """Create Event from dictionary."""
        return cls(
            ts=data.get("ts", ""),
            type=data.get("type", ""),
            content_id=data.get("content_id"),
            creator_id=data.get("creator_id"),
            progress=data.get("progress"),
            meta=data.get("meta") or {},
            path=data.get("path"),
            ua=data.get("ua")
        )
