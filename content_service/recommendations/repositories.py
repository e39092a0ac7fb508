"""Collaborator interfaces the engine reads from."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from ..models import ContentItem, UserHistory


class ContentRepository(Protocol):
    """Read access to approved content documents."""

    def find_approved_candidates(
        self,
        exclude_ids: Iterable[str],
        limit: int,
        sort_by_recent_update: bool = True,
    ) -> List[ContentItem]:
        """Approved items not in ``exclude_ids``, most recently updated first."""

    def find_by_id(self, content_id: str) -> Optional[ContentItem]:
        """Single item regardless of approval, or None."""

    def find_by_ids(self, content_ids: Iterable[str]) -> Dict[str, ContentItem]:
        """Items keyed by id; unknown ids are skipped."""


class UserRepository(Protocol):
    def find_user_with_history(self, user_id: str) -> Optional[UserHistory]:
        """The user's stored behavior history, or None for unknown users."""


class LiveScheduleRepository(Protocol):
    def find_content_ids_scheduled_for_future_broadcast(self, now: datetime) -> List[str]:
        """Ids of content whose live broadcast starts strictly after ``now``."""


class CreatorInfoJoiner(Protocol):
    def attach_creator_info(
        self,
        items: Sequence[Dict[str, object]],
        fields: Sequence[str],
    ) -> List[Dict[str, object]]:
        """Replace each item's ``creator_id`` with a ``creator`` object."""
