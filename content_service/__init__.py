# Content service package: document models, JSON document store and the recommendation engine

from .document_store import (
    DocumentStore,
    JsonContentRepository,
    JsonCreatorInfoJoiner,
    JsonLiveScheduleRepository,
    JsonUserRepository,
)
from .logging_config import get_logger, setup_logging, stop_logging

__all__ = [
    "DocumentStore",
    "JsonContentRepository",
    "JsonCreatorInfoJoiner",
    "JsonLiveScheduleRepository",
    "JsonUserRepository",
    "get_logger",
    "setup_logging",
    "stop_logging",
]
