import json

from flask import Blueprint, Response, current_app, jsonify, request, stream_with_context
from flask_jwt_extended import jwt_required

from socialfeed.auth import current_auth_context
from socialfeed.errors import ApiError
from socialfeed.routes.helpers import cursor_from_args, error_response, feed_page_payload
from socialfeed.services import feed_service, post_service
from socialfeed.services.feed_stream import NDJSON_MIMETYPE, feed_events, ndjson_stream

post_bp = Blueprint("posts", __name__)

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def _media_items_from_form():
    raw = request.form.get("media")
    if not raw:
        return []
    try:
        return json.loads(raw)
    except ValueError:
        return None


@post_bp.route("/posts", methods=["POST"])
@jwt_required()
def create_post():
    actor = current_auth_context()

    content_type = (request.content_type or "").lower()
    files = []

    if "multipart/form-data" in content_type:
        text = request.form.get("text")
        media_items = _media_items_from_form()
        if media_items is None:
            return jsonify({"error": "Invalid media JSON"}), 400
        files = (
            request.files.getlist("media")
            or request.files.getlist("media[]")
            or request.files.getlist("files")
        )
    else:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid JSON body"}), 400
        text = data.get("text")
        media_items = data.get("media")

    try:
        result = post_service.create_post(actor, text, media_items, files)
        return jsonify({
            "message": "Post created successfully",
            "post_id": result["post_id"]
        }), 201
    except ApiError as e:
        return error_response(e)


@post_bp.route("/posts", methods=["GET"])
def list_posts():
    cursor = cursor_from_args()
    page = feed_service.get_page(cursor)
    return jsonify(feed_page_payload(page, cursor)), 200, NO_STORE_HEADERS


@post_bp.route("/posts/stream", methods=["GET"])
def stream_posts():
    cursor = cursor_from_args()
    events = feed_events(
        cursor,
        delay=current_app.config.get("FEED_STREAM_DELAY_SECONDS", 0),
    )
    return Response(
        stream_with_context(ndjson_stream(events)),
        mimetype=NDJSON_MIMETYPE,
        headers={"Cache-Control": "no-cache"},
    )


@post_bp.route("/posts/mine", methods=["GET"])
@jwt_required()
def list_my_posts():
    actor = current_auth_context()
    cursor = cursor_from_args()
    try:
        page = post_service.list_my_posts(actor, cursor)
    except ApiError as e:
        return error_response(e)
    return jsonify(feed_page_payload(page, cursor)), 200, NO_STORE_HEADERS


@post_bp.route("/posts/<post_id>", methods=["DELETE"])
@jwt_required()
def delete_post(post_id):
    actor = current_auth_context()
    try:
        return jsonify(post_service.delete_post(actor, post_id)), 200
    except ApiError as e:
        return error_response(e)
