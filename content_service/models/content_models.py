"""
Content-related data models.

This module contains Pydantic models for content documents, captions,
live programs and creator display info as they are stored in the
document store and read by the recommendation engine.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Interpret naive datetimes as UTC so ages and decays compare cleanly."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Caption(BaseModel):
    """A caption track attached to a video."""
    language_code: str = Field(description="Caption language code (e.g., 'en', 'fr')")
    text: str = Field(default="", description="Caption text")


class ContentItem(BaseModel):
    """A video document as stored in the content collection."""
    id: str = Field(description="Unique content identifier")
    creator_id: str = Field(description="Identifier of the owning creator")
    title: str = Field(default="", description="Display title")
    description: str = Field(default="", description="Display description")
    thumbnail: Optional[str] = Field(default=None, description="Thumbnail URL")
    category: str = Field(default="", description="Category label")
    views: int = Field(default=0, ge=0, description="View counter")
    created_at: datetime = Field(description="Creation time")
    updated_at: datetime = Field(description="Last update time")
    duration: Optional[float] = Field(default=None, description="Duration in seconds")
    embedding: Optional[List[float]] = Field(default=None, description="Content embedding vector")
    captions: List[Caption] = Field(default_factory=list, description="Caption tracks")
    is_approved: bool = Field(default=False, description="Whether moderation approved the content")

    @field_validator("created_at", "updated_at")
    @classmethod
    def _timestamps_are_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def caption_language(self) -> Optional[str]:
        """Language code of the first caption track, if any."""
        if not self.captions:
            return None
        return self.captions[0].language_code or None

    def to_public_dict(self) -> Dict[str, Any]:
        """Serialize for API responses, dropping internal fields."""
        return self.model_dump(
            mode="json",
            exclude={"embedding", "captions", "is_approved"},
        )


class LiveProgram(BaseModel):
    """A scheduled live broadcast of a content item."""
    id: str = Field(description="Program identifier")
    content_id: str = Field(description="Content broadcast by this program")
    title: str = Field(default="", description="Program title")
    date: str = Field(description="Broadcast date (YYYY-MM-DD)")
    start_time: str = Field(description="Broadcast start time (HH:MM, UTC)")
    duration: float = Field(default=0, ge=0, description="Program duration in seconds")
    status: str = Field(default="scheduled", description="One of 'scheduled', 'live', 'ended'")

    @property
    def scheduled_start(self) -> datetime:
        """Start of the broadcast as an aware UTC datetime."""
        start = datetime.fromisoformat(f"{self.date}T{self.start_time}")
        return ensure_utc(start)


class CreatorInfo(BaseModel):
    """Creator display info joined onto recommendation results.

    Extra profile fields requested through ``creator_fields`` are kept as-is.
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(description="Creator identifier")
    name: str = Field(default="", description="Creator display name")
