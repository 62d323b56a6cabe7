from flask import Blueprint, jsonify

from blueprints.api_helpers import admin_required, error, json_body
from extensions import store
from services.logos import LogoService

bp = Blueprint("logo", __name__, url_prefix="/api/logo")

logo_service = LogoService(store)


@bp.route("/current", methods=["GET"])
def current_logo():
    return jsonify({"success": True, "logo": logo_service.get_current().to_dict()}), 200


@bp.route("/update", methods=["POST"])
@admin_required
def update_logo():
    data = json_body()
    logo_type = data.get("type", "text")
    if logo_type not in ("text", "image", "combined"):
        return error("Unknown logo type")
    if logo_type in ("text", "combined") and not str(data.get("text", "")).strip():
        return error("Logo text is required")
    if logo_type in ("image", "combined") and not str(data.get("imageUrl", "")).strip():
        return error("Logo image is required")
    logo = logo_service.update(data)
    return jsonify({"success": True, "message": "Logo updated", "logo": logo.to_dict()}), 200


@bp.route("/fonts", methods=["GET"])
def fonts():
    return jsonify({"success": True, "fonts": [f.to_dict() for f in logo_service.list_fonts()]}), 200


@bp.route("/history", methods=["GET"])
def history():
    return jsonify({"success": True, "logos": [l.to_dict() for l in logo_service.history()]}), 200
