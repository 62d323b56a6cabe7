from flask import Blueprint, jsonify
from flask_login import current_user

from blueprints.api_helpers import error, json_body, user_required
from extensions import store, tokens
from services.users import UserService
from services.wallet import WalletService


bp = Blueprint('profile', __name__, url_prefix="/api/user")

user_service = UserService(store, tokens)
wallet_service = WalletService(store)


# ----------------------------------------------------------------------------------
# Data the front-end uses to render the account pages
# ----------------------------------------------------------------------------------
@bp.route("/profile", methods=["GET"])
@user_required
def get_user_profile():
    user = user_service.get_by_id(current_user.id)
    if not user:
        return error("User not found", 404)
    return jsonify({"success": True, "user": user.to_public_dict()}), 200


@bp.route("/profile", methods=["POST", "PUT"])
@user_required
def update_user_profile():
    """Update user profile and return fresh data"""
    user = user_service.update_profile(current_user.id, json_body())
    if not user:
        return error("User not found", 404)
    return jsonify({"success": True, "message": "Profile updated", "user": user.to_public_dict()}), 200


@bp.route("/balance", methods=["GET"])
@user_required
def get_balance():
    balance = user_service.get_balance(current_user.id)
    if balance is None:
        return error("User not found", 404)
    return jsonify({"success": True, **balance}), 200


@bp.route("/transactions", methods=["GET"])
@user_required
def get_transactions():
    entries = wallet_service.transactions(current_user.id)
    return jsonify({"success": True, "transactions": [t.to_dict() for t in entries]}), 200
