#!/usr/bin/env python3
"""CanvasSmith - HTTP server streaming workflow progress as server-sent events."""

import json
import logging
import os
import threading

from flask import Flask, Response, jsonify, request, stream_with_context

from config.defaults import DEFAULTS
from core.canvas_store import CanvasStore
from core.errors import InputValidationError, WorkflowError
from core.orchestrator import run_workflow

logger = logging.getLogger(__name__)

app = Flask(__name__)


def _sse(payload):
    """Frame one event dict for a text/event-stream response."""
    return f"event: {payload['event']}\ndata: {json.dumps(payload)}\n\n"


def _error_response(e):
    status = 400 if isinstance(e, InputValidationError) else 500
    return jsonify({"error": str(e)}), status


@app.route("/api/canvas/workflow", methods=["POST"])
def api_workflow():
    """Run the full pipeline for a version and stream its events."""
    data = request.get_json(silent=True) or {}
    version_id = data.get("versionId")
    if not version_id:
        return jsonify({"error": "versionId is required"}), 400

    cancel = threading.Event()

    def generate():
        step = "architect"
        try:
            for event in run_workflow(version_id, cancel=cancel):
                step = getattr(event, "step", step)
                yield _sse(event.to_dict())
        except Exception as e:
            logger.exception("Canvas workflow failed for %s during %s", version_id, step)
            yield _sse({"event": "error", "step": step, "error": str(e) or "Unknown error"})
        finally:
            # Client disconnects close this generator
            cancel.set()

    return Response(
        stream_with_context(generate()),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@app.route("/api/canvas")
def api_canvas():
    version_id = request.args.get("versionId")
    if not version_id:
        return jsonify({"error": "versionId query parameter is required"}), 400
    try:
        canvas = CanvasStore(version_id).get()
    except WorkflowError as e:
        return _error_response(e)
    return jsonify({"data": canvas})


@app.route("/api/canvas/<canvas_id>/history")
def api_history(canvas_id):
    version_id = request.args.get("versionId")
    if not version_id:
        return jsonify({"error": "versionId query parameter is required"}), 400
    try:
        limit = int(request.args.get("limit", 50))
    except ValueError:
        return jsonify({"error": "limit must be an integer"}), 400

    try:
        commits = CanvasStore(version_id).history(limit)
    except WorkflowError as e:
        logger.error("Failed to fetch history for canvas %s: %s", canvas_id, e)
        return _error_response(e)
    return jsonify({"data": [c.to_dict() for c in commits]})


@app.route("/api/canvas/<canvas_id>/revert", methods=["POST"])
def api_revert(canvas_id):
    data = request.get_json(silent=True) or {}
    for field in ("versionId", "pageId", "commitHash"):
        if not data.get(field):
            return jsonify({"error": f"{field} is required"}), 400

    try:
        CanvasStore(data["versionId"]).revert_page(data["pageId"], data["commitHash"])
    except WorkflowError as e:
        logger.error("Failed to revert canvas %s page %s: %s", canvas_id, data["pageId"], e)
        return _error_response(e)
    return jsonify({"success": True})


if __name__ == "__main__":
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", DEFAULTS["log_level"]),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    port = int(os.environ.get("PORT", 5001))
    logger.info("CanvasSmith running at http://localhost:%d", port)
    app.run(debug=False, port=port, threaded=True)
