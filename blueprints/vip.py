from flask import Blueprint, jsonify
from flask_login import current_user

from blueprints.api_helpers import handle_service_errors, json_body, user_required
from extensions import store
from services.vip import VipService

bp = Blueprint("vip", __name__, url_prefix="/api/vip")

vip_service = VipService(store)


@bp.route("/config", methods=["GET"])
def vip_config():
    return jsonify({"success": True, "levels": [v.to_dict() for v in vip_service.levels()]}), 200


@bp.route("/upgrade", methods=["POST"])
@user_required
@handle_service_errors
def upgrade():
    order, expire_at = vip_service.upgrade(current_user.id, json_body().get("targetLevel"))
    return jsonify({
        "success": True,
        "message": "VIP upgraded",
        "newLevel": order.to_level,
        "expireAt": expire_at.isoformat(),
        "order": order.to_dict(),
    }), 200


@bp.route("/orders", methods=["GET"])
@user_required
def vip_orders():
    return jsonify({"success": True, "orders": [o.to_dict() for o in vip_service.orders(current_user.id)]}), 200
