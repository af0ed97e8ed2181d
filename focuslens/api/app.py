# api/app.py

"""
Flask bridge between the browser and the focus tracker.

The page side (a browser extension content script) posts visits, image
and video attention, page snapshots and input signals here; dashboards
read the current focus, the session history and the aggregation window.
"""
from __future__ import annotations

import logging

from flask import Flask, jsonify, request
from flask_cors import CORS

from focuslens.focus_tracker import FocusTracker
from focuslens.monitoring.page_snapshot import PageSnapshot

logger = logging.getLogger(__name__)


class BadRequest(ValueError):
    pass


def _require(data: dict, *keys):
    missing = [k for k in keys if data.get(k) in (None, "")]
    if missing:
        raise BadRequest(f"missing field(s): {', '.join(missing)}")
    return [data[k] for k in keys]


def create_app(tracker: FocusTracker) -> Flask:
    app = Flask(__name__)
    CORS(app)  # extension pages live on another origin

    def body() -> dict:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise BadRequest("expected a JSON object")
        return data

    def timestamp_of(data: dict) -> int:
        value = data.get("timestamp")
        return tracker.clock() if value is None else int(value)

    @app.errorhandler(ValueError)
    def handle_bad_request(e):
        # BadRequest and malformed numbers both end up here
        return jsonify({"success": False, "error": str(e)}), 400

    @app.route("/")
    def index():
        """Health check endpoint."""
        return jsonify({"status": "ok", "running": tracker.is_running})

    # ------------------------------------------------------------------ #
    # Visits
    # ------------------------------------------------------------------ #

    @app.route("/visits", methods=["POST"])
    def visit_event():
        data = body()
        event, url = _require(data, "event", "url")
        ts = timestamp_of(data)

        if event == "opened":
            tracker.visits.record_open(
                url=url,
                title=data.get("title") or url,
                opened_at=ts,
                metadata=data.get("metadata") or {},
                referrer=data.get("referrer"),
            )
            found = True
        elif event == "active-time-update":
            (active_time,) = _require(data, "time")
            found = tracker.visits.update_active_time(url, int(active_time))
        elif event == "closed":
            found = tracker.visits.record_close(url, ts)
        else:
            raise BadRequest(f"unknown visit event {event!r}")

        return jsonify({"success": True, "found": found})

    # ------------------------------------------------------------------ #
    # Attention from collaborators (images, videos)
    # ------------------------------------------------------------------ #

    @app.route("/attention/image", methods=["POST"])
    def image_attention():
        data = body()
        url, src = _require(data, "url", "src")
        record = tracker.attentions.add_image(url, src, data.get("caption", ""), timestamp_of(data))
        return jsonify({"success": True, "id": record.id})

    @app.route("/attention/video", methods=["POST"])
    def video_attention():
        data = body()
        event, video_id = _require(data, "event", "videoId")
        ts = timestamp_of(data)
        payload = data.get("data") or {}

        if event == "opened":
            tracker.attentions.open_video(
                video_id, payload.get("title", ""), payload.get("channelName", ""), ts
            )
            changed = True
        elif event == "caption":
            changed = tracker.attentions.append_video_caption(video_id, payload.get("caption", ""), ts)
        elif event == "active-watch-time-update":
            changed = tracker.attentions.update_video_watch_time(
                video_id, int(payload.get("activeWatchTime", 0)), ts
            )
        else:
            raise BadRequest(f"unknown video event {event!r}")

        return jsonify({"success": True, "changed": changed})

    # ------------------------------------------------------------------ #
    # Attention scorer feed
    # ------------------------------------------------------------------ #

    @app.route("/snapshots", methods=["POST"])
    def snapshot():
        data = body()
        try:
            page = PageSnapshot.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise BadRequest(f"malformed snapshot: {e}") from e
        tracker.scorer.submit_snapshot(page)
        return jsonify({"success": True, "nodes": len(page.nodes)})

    @app.route("/signals", methods=["POST"])
    def signal():
        data = body()
        (kind,) = _require(data, "kind")
        ts = timestamp_of(data)

        if kind == "scroll":
            tracker.scorer.notify_scroll(float(data.get("scrollY", 0.0)), ts)
        elif kind == "resize":
            tracker.scorer.notify_resize(ts)
        elif kind == "mutation":
            tracker.scorer.notify_mutation(ts)
        elif kind == "input":
            tracker.scorer.notify_input(ts)
        else:
            raise BadRequest(f"unknown signal {kind!r}")
        return jsonify({"success": True})

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    @app.route("/focus", methods=["GET"])
    def current_focus():
        session = tracker.focus.get_active()
        return jsonify({"focus": session.to_dict() if session else None})

    @app.route("/focus/history", methods=["GET"])
    def focus_history():
        limit = request.args.get("limit", type=int)
        return jsonify({"sessions": [s.to_dict() for s in tracker.focus.history(limit)]})

    @app.route("/activity", methods=["GET"])
    def activity():
        ms = request.args.get("ms", default=10 * 60 * 1000, type=int)
        if ms <= 0:
            raise BadRequest("ms must be positive")
        items = tracker.activity.all_activity_for_last_ms(ms)
        return jsonify({"activity": [a.to_dict() for a in items]})

    @app.route("/activity/summaries", methods=["GET"])
    def activity_summaries():
        limit = request.args.get("limit", default=10, type=int)
        if limit <= 0:
            raise BadRequest("limit must be positive")
        return jsonify({"summaries": [s.to_dict() for s in tracker.summaries.recent(limit)]})

    @app.route("/settings", methods=["GET"])
    def get_settings():
        return jsonify(tracker.settings.to_dict())

    @app.route("/settings", methods=["PUT"])
    def put_settings():
        data = body()
        try:
            settings = tracker.update_settings(**data)
        except KeyError as e:
            raise BadRequest(f"unknown setting {e.args[0]!r}") from e
        except ValueError as e:
            raise BadRequest(str(e)) from e
        return jsonify(settings.to_dict())

    return app
