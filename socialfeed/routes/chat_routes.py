from flask import Blueprint, Response, jsonify, request, stream_with_context
from flask_jwt_extended import jwt_required

from socialfeed.auth import current_auth_context
from socialfeed.errors import ApiError
from socialfeed.routes.helpers import error_response
from socialfeed.services import chat_service
from socialfeed.services.feed_stream import NDJSON_MIMETYPE, ndjson_stream

chat_bp = Blueprint("chat", __name__)


@chat_bp.route("/chat/messages", methods=["POST"])
@jwt_required()
def send_message():
    actor = current_auth_context()
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON body"}), 400

    try:
        message = chat_service.send_message(actor, data.get("message"))
        return jsonify({"success": True, "message": message}), 200
    except ApiError as e:
        return error_response(e)


@chat_bp.route("/chat/stream", methods=["GET"])
@jwt_required()
def stream_messages():
    actor = current_auth_context()
    try:
        actor.require_user()
    except ApiError as e:
        return error_response(e)

    limit, offset = chat_service.clamp_window(
        limit=request.args.get("limit", type=int),
        offset=request.args.get("offset", type=int),
    )
    return Response(
        stream_with_context(ndjson_stream(chat_service.chat_events(limit, offset))),
        mimetype=NDJSON_MIMETYPE,
        headers={"Cache-Control": "no-cache"},
    )
