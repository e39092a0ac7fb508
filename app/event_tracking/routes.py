"""
Event Tracking Routes

Flask routes for handling event tracking endpoints.
"""

import json
import logging

from flask import Blueprint, request, jsonify

from .event_tracker import EventTracker
from .models import EventPayload

logger = logging.getLogger(__name__)


def _payload_from_request() -> EventPayload:
    payload_data = request.get_json(silent=True)
    if payload_data is None:
        raw = request.get_data(as_text=True) or "{}"
        try:
            payload_data = json.loads(raw)
        except json.JSONDecodeError:
            payload_data = {}
    if not isinstance(payload_data, dict):
        payload_data = {}

    return EventPayload(
        type=str(payload_data.get("type", "")).strip(),
        content_id=payload_data.get("content_id"),
        creator_id=payload_data.get("creator_id"),
        progress=payload_data.get("progress"),
        meta=payload_data.get("meta") or {},
        ts=payload_data.get("ts"),
        tz_offset_min=payload_data.get("tz_offset_min")
    )


def create_event_tracking_blueprint(event_tracker: EventTracker):
    """Create a Flask blueprint for event tracking routes.

    Args:
        event_tracker: Tracker that validates and stores events

    Returns:
        Flask blueprint with event tracking routes
    """
    bp = Blueprint('event_tracking', __name__)

    @bp.route("/event", methods=["POST"])
    def ingest_event():
        """Ingest a behavior event from the frontend."""
        uid = request.cookies.get("uid")
        if not uid:
            return jsonify({"error": "no-uid"}), 400

        payload = _payload_from_request()
        try:
            accepted = event_tracker.process_event_payload(uid, payload)
        except (OSError, ValueError) as exc:
            logger.error("Failed to store %r event for %s: %s", payload.type, uid, exc)
            return jsonify({"error": str(exc)}), 400

        if not accepted:
            return jsonify({"error": "invalid-event"}), 400
        return jsonify({"status": "ok"})

    @bp.route("/events", methods=["GET"])
    def get_events():
        """Get events for the current user (for debugging/admin purposes)."""
        uid = request.cookies.get("uid")
        if not uid:
            return jsonify({"error": "no-uid"}), 400

        try:
            limit = request.args.get("limit", type=int)
            events = event_tracker.get_user_events(uid, limit=limit)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400

        return jsonify({
            "status": "ok",
            "events": [event.to_dict() for event in events]
        })

    @bp.route("/events/stats", methods=["GET"])
    def get_event_stats():
        """Get event statistics for the current user."""
        uid = request.cookies.get("uid")
        if not uid:
            return jsonify({"error": "no-uid"}), 400

        try:
            stats = event_tracker.get_event_stats(uid)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400

        return jsonify({
            "status": "ok",
            "stats": stats
        })

    return bp
