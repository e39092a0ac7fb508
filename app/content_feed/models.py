"""
Content feed request models.
"""
from dataclasses import dataclass
from typing import Optional


class InvalidFeedQuery(ValueError):
    """Raised when feed query parameters cannot be used."""


@dataclass
class FeedQuery:
    """Parsed query for one feed request."""
    limit: int
    explain: bool = False
    user_id: Optional[str] = None
    seed_id: Optional[str] = None

    @property
    def is_related(self) -> bool:
        return self.seed_id is not None
