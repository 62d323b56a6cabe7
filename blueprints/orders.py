from flask import Blueprint, jsonify, request
from flask_login import current_user

from blueprints.api_helpers import handle_service_errors, user_required
from extensions import store
from services.orders import OrderService

bp = Blueprint("orders", __name__, url_prefix="/api/orders")

order_service = OrderService(store)


@bp.route("/mine", methods=["GET"])
@user_required
def my_orders():
    orders = order_service.for_user(current_user.id, request.args.get("status"))
    return jsonify({"success": True, "orders": [o.to_dict() for o in orders]}), 200


@bp.route("/stats", methods=["GET"])
@user_required
def my_stats():
    return jsonify({"success": True, **order_service.stats(current_user.id)}), 200


# ---------------------------------------------------------------------------
# Task hall
# ---------------------------------------------------------------------------
@bp.route("/available", methods=["GET"])
@user_required
def available_orders():
    limit = request.args.get("limit", 10, type=int)
    orders, total = order_service.available(max(1, min(limit, 50)))
    return jsonify({"success": True, "orders": [o.to_dict() for o in orders], "total": total}), 200


@bp.route("/grab", methods=["POST"])
@user_required
@handle_service_errors
def grab_order():
    order = order_service.grab(current_user.id)
    return jsonify({"success": True, "message": "Order grabbed", "order": order.to_dict()}), 200


@bp.route("/take/<order_id>", methods=["POST"])
@user_required
@handle_service_errors
def take_order(order_id):
    order = order_service.take(current_user.id, order_id)
    return jsonify({"success": True, "message": "Order taken", "order": order.to_dict()}), 200


@bp.route("/today-stats", methods=["GET"])
@user_required
def today_stats():
    return jsonify({"success": True, "stats": order_service.today_stats(current_user.id)}), 200
