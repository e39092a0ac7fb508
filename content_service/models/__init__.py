"""
Models package for content documents and behavior history.

This package contains the Pydantic models shared by the document store,
the recommendation engine and the web layer.
"""

from .content_models import (
    Caption,
    ContentItem,
    CreatorInfo,
    LiveProgram,
    ensure_utc,
)

from .behavior_models import (
    CommentRecord,
    HoverRecord,
    UnfollowRecord,
    UserHistory,
    WatchProgressRecord,
)

__all__ = [
    # Content models
    "Caption",
    "ContentItem",
    "CreatorInfo",
    "LiveProgram",
    "ensure_utc",

    # Behavior models
    "CommentRecord",
    "HoverRecord",
    "UnfollowRecord",
    "UserHistory",
    "WatchProgressRecord",
]
