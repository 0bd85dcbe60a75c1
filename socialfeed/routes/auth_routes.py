from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from socialfeed.auth import current_auth_context
from socialfeed.errors import ApiError, ValidationError
from socialfeed.routes.helpers import error_response
from socialfeed.services import auth_service


auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON body"}), 400

    try:
        tokens = auth_service.login(
            data.get("username"),
            data.get("password")
        )
        return jsonify(tokens), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 401


@auth_bp.route("/refresh", methods=["POST"])
@auth_bp.route("/token", methods=["POST"])
@jwt_required(refresh=True)
def refresh_token():
    try:
        return jsonify(auth_service.refresh_access_token(get_jwt_identity())), 200
    except ApiError as e:
        return jsonify({"error": str(e)}), 401


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def me():
    actor = current_auth_context()
    if not actor.is_authenticated:
        return jsonify({"error": "User not found"}), 404
    return jsonify({
        "id": actor.user_id,
        "username": actor.username,
        "role": actor.role,
    }), 200


@auth_bp.route("/change-password", methods=["POST"])
@jwt_required()
def change_password():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON body"}), 400

    actor = current_auth_context()
    try:
        auth_service.change_password(
            actor,
            data.get("currentPassword"),
            data.get("newPassword"),
        )
        return jsonify({
            "success": True,
            "message": "Password changed successfully"
        }), 200
    except ApiError as e:
        return error_response(e)
