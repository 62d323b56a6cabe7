#====================================================================================================
#   Recharge and withdraw endpoints for customers
#====================================================================================================
from flask import Blueprint, jsonify, request
from flask_login import current_user
import logging

from blueprints.api_helpers import handle_service_errors, json_body, user_required
from extensions import store
from services.payment_accounts import PaymentAccountService
from services.wallet import WalletService

logger = logging.getLogger(__name__)

bp = Blueprint("payments", __name__, url_prefix="/api")

wallet_service = WalletService(store)
payment_account_service = PaymentAccountService(store)


# ---------------------------------------------------------------------------
# Recharge
# ---------------------------------------------------------------------------
@bp.route("/recharge/config", methods=["GET"])
def recharge_config():
    return jsonify({"success": True, "config": wallet_service.recharge_config()}), 200


@bp.route("/payment-accounts", methods=["GET"])
def payment_accounts():
    """Enabled receiving accounts, default first."""
    accounts = [a.to_dict() for a in payment_account_service.list(active_only=True)]
    return jsonify({"success": True, "accounts": accounts}), 200


@bp.route("/recharge/create", methods=["POST"])
@user_required
@handle_service_errors
def create_recharge():
    data = json_body()
    order = wallet_service.create_recharge(current_user.id, data.get("methodId"), data.get("amount"))
    return jsonify({"success": True, "message": "Recharge order created", "order": order.to_dict()}), 201


@bp.route("/recharge/orders", methods=["GET"])
@user_required
def recharge_orders():
    orders = wallet_service.list_recharges(current_user.id, request.args.get("status"))
    return jsonify({"success": True, "orders": [o.to_dict() for o in orders]}), 200


@bp.route("/recharge/<order_id>/confirm", methods=["POST"])
@user_required
@handle_service_errors
def confirm_recharge(order_id):
    data = json_body()
    order = wallet_service.confirm_recharge(
        order_id, current_user.id, data.get("paymentProof", ""), data.get("remark", "")
    )
    return jsonify({"success": True, "message": "Payment submitted for review", "order": order.to_dict()}), 200


@bp.route("/recharge/<order_id>/cancel", methods=["POST"])
@user_required
@handle_service_errors
def cancel_recharge(order_id):
    order = wallet_service.cancel_recharge(order_id, current_user.id)
    return jsonify({"success": True, "order": order.to_dict()}), 200


# ---------------------------------------------------------------------------
# Withdraw
# ---------------------------------------------------------------------------
@bp.route("/withdraw/config", methods=["GET"])
def withdraw_config():
    return jsonify({"success": True, "config": wallet_service.withdraw_config()}), 200


@bp.route("/withdraw/create", methods=["POST"])
@user_required
@handle_service_errors
def create_withdraw():
    data = json_body()
    order = wallet_service.create_withdraw(
        current_user.id,
        data.get("amount"),
        {
            "bankName": data.get("bankName", ""),
            "cardNumber": data.get("cardNumber", ""),
            "cardHolder": data.get("cardHolder", ""),
        },
        data.get("remark", ""),
    )
    return jsonify({"success": True, "message": "Withdraw request submitted", "order": order.to_public_dict()}), 201


@bp.route("/withdraw/orders", methods=["GET"])
@user_required
def withdraw_orders():
    page = request.args.get("page", 1, type=int)
    page_size = request.args.get("pageSize", 20, type=int)
    orders, total = wallet_service.list_withdraws(
        current_user.id, request.args.get("status"), page, page_size
    )
    return jsonify({
        "success": True,
        "orders": [o.to_public_dict() for o in orders],
        "total": total,
        "page": page,
    }), 200


@bp.route("/withdraw/<order_id>/cancel", methods=["POST"])
@user_required
@handle_service_errors
def cancel_withdraw(order_id):
    order = wallet_service.cancel_withdraw(order_id, current_user.id)
    return jsonify({"success": True, "order": order.to_public_dict()}), 200
