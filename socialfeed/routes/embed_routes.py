from flask import Blueprint, jsonify, request

from socialfeed.services import embed_service

embed_bp = Blueprint("embeds", __name__)


@embed_bp.route("/embeds/resolve", methods=["GET"])
def resolve_embed():
    url = request.args.get("url", "")
    info = embed_service.resolve(url)
    if info is None:
        return jsonify({"error": "Unsupported embed URL"}), 404

    if request.args.get("title", "").lower() in {"1", "true", "yes"}:
        info = embed_service.fetch_title(info)
    return jsonify(info.to_dict()), 200


@embed_bp.route("/embeds/domains", methods=["GET"])
def supported_domains():
    return jsonify({"domains": embed_service.supported_domains()}), 200
