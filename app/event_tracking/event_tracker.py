"""
Event Tracker

Main class for handling event tracking operations including validation,
history updates, and raw event storage.
"""

import logging
from datetime import datetime, timezone, timedelta
from typing import Dict, List, Optional

from flask import has_request_context, request

from content_service.document_store import JsonUserRepository

from .event_types import EventType
from .models import Event, EventPayload

logger = logging.getLogger(__name__)


class EventTracker:
    """Main event tracking system."""

    def __init__(self, user_repository: JsonUserRepository):
        """Initialize the event tracker.

        Args:
            user_repository: Repository holding user documents and their history
        """
        self.user_repository = user_repository

    def _parse_client_timestamp(self, ts_client: str, tz_offset_min: Optional[int]) -> Optional[datetime]:
        """Parse a client timestamp into an aware UTC datetime.

        Args:
            ts_client: ISO 8601 timestamp from client
            tz_offset_min: Timezone offset in minutes (UTC - local), used
                when the timestamp carries no offset of its own

        Returns:
            UTC datetime or None if parsing fails
        """
        try:
            # Accept 'Z' by replacing with +00:00
            parsed = datetime.fromisoformat(str(ts_client).replace('Z', '+00:00'))
        except ValueError:
            return None

        if parsed.tzinfo is None:
            offset = tz_offset_min if isinstance(tz_offset_min, int) else 0
            parsed = parsed.replace(tzinfo=timezone(timedelta(minutes=-offset)))
        return parsed.astimezone(timezone.utc)

    def _apply_to_history(self, uid: str, payload: EventPayload, at: datetime) -> None:
        """Fold one event into the stored behavior history."""
        event_type = EventType(payload.type)
        users = self.user_repository

        if event_type is EventType.LIKE:
            users.record_like(uid, payload.content_id, at)
        elif event_type is EventType.UNLIKE:
            users.remove_like(uid, payload.content_id)
        elif event_type is EventType.WATCH_PROGRESS:
            users.record_watch_progress(uid, payload.content_id, float(payload.progress), at)
        elif event_type is EventType.REWATCH:
            users.record_rewatch(uid, payload.content_id, at)
        elif event_type is EventType.HOVER:
            users.record_hover(uid, payload.content_id, at)
        elif event_type is EventType.COMMENT:
            users.record_comment(uid, payload.content_id, at)
        elif event_type is EventType.UNFOLLOW:
            users.record_unfollow(uid, payload.creator_id, at)
        elif event_type is EventType.FOLLOW:
            users.remove_unfollow(uid, payload.creator_id)

    def process_event_payload(self, uid: str, payload: EventPayload) -> bool:
        """Process an event payload from the frontend.

        Args:
            uid: User identifier
            payload: Event payload from frontend

        Returns:
            True if event was processed successfully, False if it was rejected
        """
        if not payload.validate():
            logger.debug("Rejected invalid %r event for %s", payload.type, uid)
            return False

        at = None
        if payload.ts:
            at = self._parse_client_timestamp(payload.ts, payload.tz_offset_min)
        if at is None:
            at = datetime.now(timezone.utc)

        self._apply_to_history(uid, payload, at)

        event = Event(
            ts=at.isoformat(timespec="seconds"),
            type=payload.type,
            content_id=payload.content_id,
            creator_id=payload.creator_id,
            progress=payload.progress,
            meta=payload.meta or {},
            path=request.path if has_request_context() else None,
            ua=request.headers.get("User-Agent") if has_request_context() else None
        )
        self.user_repository.append_event(uid, event.to_dict())
        return True

    def get_user_events(self, uid: str, limit: Optional[int] = None) -> List[Event]:
        """Get events for a user.

        Args:
            uid: User identifier
            limit: Optional limit on number of events to return (most recent)

        Returns:
            List of Event objects
        """
        return [Event.from_dict(e) for e in self.user_repository.load_events(uid, limit=limit)]

    def get_event_stats(self, uid: str) -> Dict[str, int]:
        """Get event counts per type for a user."""
        stats: Dict[str, int] = {}
        for event in self.get_user_events(uid):
            stats[event.type] = stats.get(event.type, 0) + 1
        return stats
