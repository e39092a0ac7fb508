"""
Behavior history data models.

This module contains Pydantic models for the viewing history stored on
each user document: watch progress, hovers, comments and unfollows.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .content_models import ensure_utc


class WatchProgressRecord(BaseModel):
    """How far a user got into a video."""
    content_id: str = Field(description="Watched content identifier")
    progress: float = Field(default=0, ge=0, description="Seconds watched")
    last_watched_at: Optional[datetime] = Field(default=None, description="Last time the video was watched")
    watch_count: int = Field(default=0, ge=0, description="Number of rewatches")

    @field_validator("last_watched_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class HoverRecord(BaseModel):
    """A video previewed in the UI without being played."""
    content_id: str = Field(description="Hovered content identifier")
    hovered_at: Optional[datetime] = Field(default=None, description="Last hover time")

    @field_validator("hovered_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class UnfollowRecord(BaseModel):
    """A creator the user stopped following."""
    creator_id: str = Field(description="Unfollowed creator identifier")
    unfollowed_at: Optional[datetime] = Field(default=None, description="Unfollow time")

    @field_validator("unfollowed_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class CommentRecord(BaseModel):
    """A video the user commented on."""
    content_id: str = Field(description="Commented content identifier")
    commented_at: Optional[datetime] = Field(default=None, description="Last comment time")

    @field_validator("commented_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class UserHistory(BaseModel):
    """A user document together with its behavior history."""
    user_id: str = Field(description="User identifier")
    name: str = Field(default="", description="Display name")
    likes: List[str] = Field(default_factory=list, description="Liked content identifiers")
    watch_progress: List[WatchProgressRecord] = Field(default_factory=list)
    hover_history: List[HoverRecord] = Field(default_factory=list)
    unfollowed_creators: List[UnfollowRecord] = Field(default_factory=list)
    commented_content: List[CommentRecord] = Field(default_factory=list)

    def engaged_content_ids(self) -> List[str]:
        """Content ids whose metadata is needed to interpret this history."""
        seen = set()
        ordered: List[str] = []
        candidates = (
            list(self.likes)
            + [record.content_id for record in self.watch_progress]
            + [record.content_id for record in self.commented_content]
        )
        for content_id in candidates:
            if content_id and content_id not in seen:
                seen.add(content_id)
                ordered.append(content_id)
        return ordered
