"""
JSON document store.

Each collection is a directory of JSON documents, one file per document:

    <data_dir>/content/<content_id>.json        ContentItem fields
    <data_dir>/users/<user_id>.json             profile, behavior history, raw events
    <data_dir>/live_programs/<program_id>.json  LiveProgram fields

User documents have this shape (every section optional):

    {
      "name": "Ada",
      "likes": {content_id: ISO8601 | null, ...},
      "watch_progress": {content_id: {"progress": seconds, "last_watched_at": ISO8601,
                                      "watch_count": int}, ...},
      "hover_history": {content_id: ISO8601, ...},
      "commented_content": {content_id: ISO8601, ...},
      "unfollowed_creators": {creator_id: ISO8601, ...},
      "events": [ {"ts": ISO8601, "type": str, "content_id": str|None, ...}, ... ]
    }

Missing or unreadable documents are treated as absent. Directory-level I/O
errors propagate so the engine can report them as upstream failures.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from pydantic import ValidationError

from .models import (
    CommentRecord,
    ContentItem,
    CreatorInfo,
    HoverRecord,
    LiveProgram,
    UnfollowRecord,
    UserHistory,
    WatchProgressRecord,
    ensure_utc,
)

logger = logging.getLogger(__name__)

HISTORY_SECTIONS = ("likes", "watch_progress", "hover_history", "commented_content", "unfollowed_creators")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _to_iso(value: Optional[datetime]) -> str:
    if value is None:
        return _now_iso()
    return ensure_utc(value).isoformat(timespec="seconds")


def _document_path(directory: Path, document_id: str) -> Path:
    """Path of a document, rejecting ids that would escape the directory."""
    name = str(document_id).strip()
    if not name or "/" in name or "\\" in name or name.startswith("."):
        raise ValueError(f"Invalid document id: {document_id!r}")
    return directory / f"{name}.json"


def _read_json(path: Path) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Skipping unreadable document %s: %s", path, exc)
        return None
    if not isinstance(data, dict):
        logger.warning("Skipping document %s: not a JSON object", path)
        return None
    return data


def _write_json(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(".json.tmp")
    tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp_path.replace(path)


def _iter_documents(directory: Path) -> Iterator[Dict[str, Any]]:
    if not directory.exists():
        return
    for path in sorted(directory.glob("*.json")):
        data = _read_json(path)
        if data is not None:
            data.setdefault("id", path.stem)
            yield data


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


class JsonContentRepository:
    """Content documents under ``content/``."""

    def __init__(self, content_dir: Path):
        self.content_dir = Path(content_dir)

    def _parse(self, data: Dict[str, Any]) -> Optional[ContentItem]:
        try:
            return ContentItem.model_validate(data)
        except ValidationError as exc:
            logger.warning("Skipping invalid content document %s: %s", data.get("id"), exc.error_count())
            return None

    def find_approved_candidates(
        self,
        exclude_ids: Iterable[str],
        limit: int,
        sort_by_recent_update: bool = True,
    ) -> List[ContentItem]:
        excluded = set(exclude_ids)
        items = []
        for data in _iter_documents(self.content_dir):
            if data.get("id") in excluded or not data.get("is_approved"):
                continue
            item = self._parse(data)
            if item is not None and item.is_approved:
                items.append(item)
        if sort_by_recent_update:
            items.sort(key=lambda item: item.updated_at, reverse=True)
        return items[: max(limit, 0)]

    def find_by_id(self, content_id: str) -> Optional[ContentItem]:
        try:
            path = _document_path(self.content_dir, content_id)
        except ValueError:
            return None
        data = _read_json(path)
        if data is None:
            return None
        data.setdefault("id", path.stem)
        return self._parse(data)

    def find_by_ids(self, content_ids: Iterable[str]) -> Dict[str, ContentItem]:
        found: Dict[str, ContentItem] = {}
        for content_id in content_ids:
            if content_id in found:
                continue
            item = self.find_by_id(content_id)
            if item is not None:
                found[content_id] = item
        return found

    def save(self, item: ContentItem) -> None:
        _write_json(_document_path(self.content_dir, item.id), item.model_dump(mode="json"))


# ---------------------------------------------------------------------------
# Users and behavior history
# ---------------------------------------------------------------------------


class JsonUserRepository:
    """User documents under ``users/``, including the behavior history."""

    def __init__(self, users_dir: Path):
        self.users_dir = Path(users_dir)
        self._lock = threading.RLock()

    # Reading ------------------------------------------------------------------

    def load(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Raw user document with every history section normalized to a map."""
        data = _read_json(_document_path(self.users_dir, user_id))
        if data is None:
            return None
        for section in HISTORY_SECTIONS:
            data[section] = _normalize_section(section, data.get(section))
        if not isinstance(data.get("events"), list):
            data["events"] = []
        return data

    def find_user_with_history(self, user_id: str) -> Optional[UserHistory]:
        data = self.load(user_id)
        if data is None:
            return None

        watch_progress = []
        for content_id, entry in data["watch_progress"].items():
            try:
                watch_progress.append(WatchProgressRecord.model_validate({**entry, "content_id": content_id}))
            except ValidationError:
                logger.warning("Ignoring malformed watch record %s for user %s", content_id, user_id)

        return UserHistory(
            user_id=user_id,
            name=str(data.get("name") or ""),
            likes=list(data["likes"]),
            watch_progress=watch_progress,
            hover_history=_timed_records(HoverRecord, "content_id", "hovered_at", data["hover_history"]),
            unfollowed_creators=_timed_records(
                UnfollowRecord, "creator_id", "unfollowed_at", data["unfollowed_creators"]
            ),
            commented_content=_timed_records(
                CommentRecord, "content_id", "commented_at", data["commented_content"]
            ),
        )

    def load_events(self, user_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        data = self.load(user_id) or {}
        events = data.get("events", [])
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events

    # Writing ------------------------------------------------------------------

    def _update(self, user_id: str, mutate) -> None:
        path = _document_path(self.users_dir, user_id)
        with self._lock:
            data = self.load(user_id) or {section: {} for section in HISTORY_SECTIONS}
            data.setdefault("events", [])
            mutate(data)
            _write_json(path, data)

    def record_like(self, user_id: str, content_id: str, at: Optional[datetime] = None) -> None:
        self._update(user_id, lambda data: data["likes"].__setitem__(content_id, _to_iso(at)))

    def remove_like(self, user_id: str, content_id: str) -> None:
        self._update(user_id, lambda data: data["likes"].pop(content_id, None))

    def record_watch_progress(
        self,
        user_id: str,
        content_id: str,
        seconds: float,
        at: Optional[datetime] = None,
    ) -> None:
        """Store the latest playback position for a video."""
        if seconds < 0:
            raise ValueError("seconds watched must be non-negative")

        def mutate(data):
            entry = data["watch_progress"].setdefault(content_id, {"progress": 0, "watch_count": 0})
            entry["progress"] = float(seconds)
            entry["last_watched_at"] = _to_iso(at)

        self._update(user_id, mutate)

    def record_rewatch(self, user_id: str, content_id: str, at: Optional[datetime] = None) -> None:
        def mutate(data):
            entry = data["watch_progress"].setdefault(content_id, {"progress": 0, "watch_count": 0})
            entry["watch_count"] = int(entry.get("watch_count") or 0) + 1
            entry["last_watched_at"] = _to_iso(at)

        self._update(user_id, mutate)

    def record_hover(self, user_id: str, content_id: str, at: Optional[datetime] = None) -> None:
        self._update(user_id, lambda data: data["hover_history"].__setitem__(content_id, _to_iso(at)))

    def record_comment(self, user_id: str, content_id: str, at: Optional[datetime] = None) -> None:
        self._update(user_id, lambda data: data["commented_content"].__setitem__(content_id, _to_iso(at)))

    def record_unfollow(self, user_id: str, creator_id: str, at: Optional[datetime] = None) -> None:
        self._update(user_id, lambda data: data["unfollowed_creators"].__setitem__(creator_id, _to_iso(at)))

    def remove_unfollow(self, user_id: str, creator_id: str) -> None:
        self._update(user_id, lambda data: data["unfollowed_creators"].pop(creator_id, None))

    def append_event(self, user_id: str, event: Dict[str, Any]) -> None:
        self._update(user_id, lambda data: data["events"].append(event))


def _normalize_section(section: str, raw: Any) -> Dict[str, Any]:
    """Accept the map shape and the older list-of-records shape."""
    if isinstance(raw, dict):
        normalized = {str(key): value for key, value in raw.items()}
    elif isinstance(raw, list):
        normalized = {}
        for entry in raw:
            if isinstance(entry, str):
                normalized[entry] = None
            elif isinstance(entry, dict):
                key = entry.get("content_id") or entry.get("creator_id")
                if key:
                    value = {k: v for k, v in entry.items() if k not in ("content_id", "creator_id")}
                    normalized[str(key)] = value if section == "watch_progress" else _first_timestamp(value)
    else:
        normalized = {}

    if section == "watch_progress":
        normalized = {key: value for key, value in normalized.items() if isinstance(value, dict)}
    return normalized


def _first_timestamp(value: Dict[str, Any]) -> Optional[str]:
    for key in ("at", "hovered_at", "commented_at", "unfollowed_at", "timestamp"):
        if value.get(key):
            return value[key]
    return None


def _timed_records(model, id_field: str, time_field: str, entries: Dict[str, Any]) -> list:
    records = []
    for key, timestamp in entries.items():
        try:
            records.append(model(**{id_field: key, time_field: timestamp}))
        except ValidationError:
            logger.warning("Ignoring malformed %s entry %s", model.__name__, key)
    return records


# ---------------------------------------------------------------------------
# Live schedule
# ---------------------------------------------------------------------------


class JsonLiveScheduleRepository:
    """Live programs under ``live_programs/``."""

    def __init__(self, programs_dir: Path):
        self.programs_dir = Path(programs_dir)

    def list_programs(self) -> List[LiveProgram]:
        programs = []
        for data in _iter_documents(self.programs_dir):
            try:
                programs.append(LiveProgram.model_validate(data))
            except ValidationError:
                logger.warning("Skipping invalid live program %s", data.get("id"))
        return programs

    def find_content_ids_scheduled_for_future_broadcast(self, now: datetime) -> List[str]:
        now = ensure_utc(now)
        content_ids = []
        for program in self.list_programs():
            try:
                starts_at = program.scheduled_start
            except ValueError:
                logger.warning("Live program %s has an unparseable start time", program.id)
                continue
            if starts_at > now and program.content_id not in content_ids:
                content_ids.append(program.content_id)
        return content_ids

    def save(self, program: LiveProgram) -> None:
        _write_json(_document_path(self.programs_dir, program.id), program.model_dump(mode="json"))


# ---------------------------------------------------------------------------
# Creator display info
# ---------------------------------------------------------------------------


class JsonCreatorInfoJoiner:
    """Replaces ``creator_id`` on result items with a ``creator`` object read from user documents."""

    def __init__(self, users_dir: Path):
        self.users_dir = Path(users_dir)

    def attach_creator_info(
        self,
        items: Sequence[Dict[str, Any]],
        fields: Sequence[str] = ("name",),
    ) -> List[Dict[str, Any]]:
        cache: Dict[str, Dict[str, Any]] = {}
        joined = []
        for item in items:
            decorated = dict(item)
            creator_id = decorated.pop("creator_id", None)
            if creator_id is None:
                joined.append(decorated)
                continue
            if creator_id not in cache:
                cache[creator_id] = self._creator(creator_id, fields)
            decorated["creator"] = dict(cache[creator_id])
            joined.append(decorated)
        return joined

    def _creator(self, creator_id: str, fields: Sequence[str]) -> Dict[str, Any]:
        try:
            document = _read_json(_document_path(self.users_dir, creator_id)) or {}
        except ValueError:
            document = {}
        creator: Dict[str, Any] = {"id": creator_id}
        for name in fields:
            value = document.get(name)
            if value is not None or name != "name":
                creator[name] = value
        try:
            return CreatorInfo.model_validate(creator).model_dump()
        except ValidationError:
            logger.warning("Ignoring malformed creator profile %s", creator_id)
            return CreatorInfo(id=creator_id).model_dump()


# ---------------------------------------------------------------------------
# Bundle
# ---------------------------------------------------------------------------


class DocumentStore:
    """All collections under one data directory."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.content_dir = self.data_dir / "content"
        self.users_dir = self.data_dir / "users"
        self.programs_dir = self.data_dir / "live_programs"
        for directory in (self.content_dir, self.users_dir, self.programs_dir):
            directory.mkdir(parents=True, exist_ok=True)

        self.content = JsonContentRepository(self.content_dir)
        self.users = JsonUserRepository(self.users_dir)
        self.live_schedule = JsonLiveScheduleRepository(self.programs_dir)
        self.creators = JsonCreatorInfoJoiner(self.users_dir)
