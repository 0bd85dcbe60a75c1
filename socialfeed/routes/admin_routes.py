from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from socialfeed.auth import current_auth_context
from socialfeed.errors import ApiError
from socialfeed.routes.helpers import cursor_from_args, error_response, feed_page_payload
from socialfeed.services import audit_service, user_service

admin_bp = Blueprint("admin", __name__)


@admin_bp.route("/users", methods=["GET"])
@jwt_required()
def list_users():
    actor = current_auth_context()
    try:
        data = user_service.list_users(
            actor,
            search=request.args.get("search", ""),
            page=request.args.get("page", default=1, type=int),
            limit=request.args.get("limit", default=user_service.DEFAULT_USER_LIMIT, type=int),
            sort_by=request.args.get("sortBy", "createdAt"),
            sort_order=request.args.get("sortOrder", "desc"),
        )
        return jsonify(data), 200
    except ApiError as e:
        return error_response(e)


@admin_bp.route("/users", methods=["POST"])
@jwt_required()
def create_user():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON body"}), 400

    actor = current_auth_context()
    try:
        user = user_service.create_user(
            actor,
            data.get("username"),
            data.get("password"),
            data.get("role"),
        )
        return jsonify({
            "message": f'User "{user["username"]}" created successfully',
            "user": user,
        }), 201
    except ApiError as e:
        return error_response(e)


@admin_bp.route("/users/<user_id>", methods=["GET"])
@jwt_required()
def get_user(user_id):
    actor = current_auth_context()
    try:
        return jsonify({"user": user_service.get_user(actor, user_id)}), 200
    except ApiError as e:
        return error_response(e)


@admin_bp.route("/users/<user_id>", methods=["PATCH"])
@jwt_required()
def update_user(user_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON body"}), 400

    actor = current_auth_context()
    try:
        return jsonify(user_service.update_user(actor, user_id, data)), 200
    except ApiError as e:
        return error_response(e)


@admin_bp.route("/users/<user_id>", methods=["DELETE"])
@jwt_required()
def delete_user(user_id):
    actor = current_auth_context()
    try:
        return jsonify(user_service.delete_user(actor, user_id)), 200
    except ApiError as e:
        return error_response(e)


@admin_bp.route("/users/<user_id>/reset-password", methods=["POST"])
@jwt_required()
def reset_password(user_id):
    actor = current_auth_context()
    try:
        return jsonify(user_service.reset_password(actor, user_id)), 200
    except ApiError as e:
        return error_response(e)


@admin_bp.route("/users/<user_id>/delete-posts", methods=["POST"])
@jwt_required()
def delete_user_posts(user_id):
    actor = current_auth_context()
    try:
        return jsonify(user_service.delete_user_posts(actor, user_id)), 200
    except ApiError as e:
        return error_response(e)


@admin_bp.route("/users/<user_id>/posts", methods=["GET"])
@jwt_required()
def get_user_posts(user_id):
    actor = current_auth_context()
    cursor = cursor_from_args()
    try:
        page = user_service.get_user_posts(actor, user_id, cursor)
    except ApiError as e:
        return error_response(e)
    return jsonify(feed_page_payload(page, cursor)), 200


@admin_bp.route("/audit-logs", methods=["GET"])
@jwt_required()
def list_audit_logs():
    actor = current_auth_context()
    try:
        data = audit_service.list_audit_logs(
            actor,
            page=request.args.get("page", default=1, type=int),
            limit=request.args.get(
                "limit", default=audit_service.DEFAULT_LOG_LIMIT, type=int
            ),
            search=request.args.get("search", ""),
            action=request.args.get("action", ""),
            target_table=request.args.get("targetTable", ""),
            start_date=request.args.get("startDate", ""),
            end_date=request.args.get("endDate", ""),
            sort_by=request.args.get("sortBy", "timestamp"),
            sort_order=request.args.get("sortOrder", "desc"),
        )
        return jsonify(data), 200
    except ApiError as e:
        return error_response(e)


@admin_bp.route("/admin/cleanup-deleted-posts", methods=["POST"])
@jwt_required()
def cleanup_deleted_posts():
    actor = current_auth_context()
    try:
        return jsonify(user_service.cleanup_deleted_posts(actor)), 200
    except ApiError as e:
        return error_response(e)
