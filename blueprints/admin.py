#======================================================================================
#
# ADMIN API
#
#=======================================================================================
from flask import Blueprint, jsonify, request
from flask_login import current_user
import logging

from blueprints.api_helpers import admin_required, error, handle_service_errors, json_body, super_admin_required
from extensions import store, tokens
from models import TRUE_STRINGS, User
from services.agents import AgentService
from services.assignments import CustomerAssignmentService
from services.orders import OrderService
from services.payment_accounts import PaymentAccountService
from services.users import UserService, USERS
from services.wallet import WalletService

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')

agent_service = AgentService(store, tokens)
assignment_service = CustomerAssignmentService(store)
order_service = OrderService(store)
payment_account_service = PaymentAccountService(store)
user_service = UserService(store, tokens)
wallet_service = WalletService(store)


def _flag(value):
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
@admin_bp.route("/users", methods=["GET"])
@admin_required
def list_users():
    users = [u.to_public_dict() for u in store.load(USERS, User)]
    return jsonify({"success": True, "users": users, "total": len(users)}), 200


# ---------------------------------------------------------------------------
# Agents
# ---------------------------------------------------------------------------
@admin_bp.route("/agents", methods=["GET"])
@admin_required
def list_agents():
    agents = [a.to_public_dict() for a in agent_service.list()]
    return jsonify({"success": True, "agents": agents}), 200


@admin_bp.route("/agents", methods=["POST"])
@admin_required
def create_agent():
    data = json_body()
    agent, message = agent_service.create(
        str(data.get("nickName") or data.get("nickname") or "").strip(),
        str(data.get("account", "")).strip(),
        str(data.get("password", "")),
        str(data.get("inviteCode", "") or "").strip(),
    )
    if agent is None:
        return error(message)
    return jsonify({"success": True, "message": message, "agent": agent.to_public_dict()}), 201


@admin_bp.route("/agents/<agent_id>/status", methods=["POST"])
@admin_required
def set_agent_status(agent_id):
    data = json_body()
    if not agent_service.set_active(agent_id, _flag(data.get("isActive", True))):
        return error("Agent not found", 404)
    return jsonify({"success": True}), 200


@admin_bp.route("/agents/invite-code", methods=["GET"])
@admin_required
def generate_invite_code():
    return jsonify({"success": True, "inviteCode": agent_service.generate_invite_code()}), 200


# ---------------------------------------------------------------------------
# Customer assignments
# ---------------------------------------------------------------------------
@admin_bp.route("/assignments", methods=["GET"])
@admin_required
def list_assignments():
    salesperson_id = request.args.get("salespersonId")
    if salesperson_id:
        assignments = assignment_service.get_by_salesperson(salesperson_id)
    else:
        assignments = assignment_service.list()
    return jsonify({"success": True, "assignments": [a.to_dict() for a in assignments]}), 200


@admin_bp.route("/assignments", methods=["POST"])
@admin_required
def create_assignment():
    data = json_body()
    customer_id = data.get("customerId")
    salesperson_id = data.get("salespersonId")
    if not customer_id or not salesperson_id:
        return error("customerId and salespersonId are required")
    if not assignment_service.create(customer_id, salesperson_id):
        return error("Customer is already assigned")
    return jsonify({"success": True}), 201


@admin_bp.route("/assignments/<customer_id>", methods=["GET"])
@admin_required
def get_assignment(customer_id):
    assignment = assignment_service.get_by_customer(customer_id)
    if assignment is None:
        return error("Assignment not found", 404)
    return jsonify({"success": True, "assignment": assignment.to_dict()}), 200


@admin_bp.route("/assignments/<customer_id>/transfer", methods=["POST"])
@admin_required
def transfer_assignment(customer_id):
    salesperson_id = json_body().get("salespersonId")
    if not salesperson_id:
        return error("salespersonId is required")
    if not assignment_service.transfer(customer_id, salesperson_id):
        return error("Assignment not found", 404)
    return jsonify({"success": True}), 200


@admin_bp.route("/assignments/<customer_id>", methods=["DELETE"])
@admin_required
def remove_assignment(customer_id):
    if not assignment_service.remove(customer_id):
        return error("Assignment not found", 404)
    return jsonify({"success": True}), 200


@admin_bp.route("/salespersons/<salesperson_id>/count", methods=["GET"])
@admin_required
def count_customers(salesperson_id):
    count = assignment_service.count_by_salesperson(salesperson_id)
    return jsonify({"success": True, "count": count}), 200


# ---------------------------------------------------------------------------
# Recharge / withdraw review
# ---------------------------------------------------------------------------
@admin_bp.route("/recharges", methods=["GET"])
@admin_required
def list_recharges():
    orders = wallet_service.list_recharges(status=request.args.get("status"))
    return jsonify({"success": True, "orders": [o.to_dict() for o in orders]}), 200


@admin_bp.route("/recharges/<order_id>/review", methods=["POST"])
@admin_required
@handle_service_errors
def review_recharge(order_id):
    data = json_body()
    order = wallet_service.approve_recharge(order_id, _flag(data.get("approved", True)), data.get("remark", ""))
    return jsonify({"success": True, "order": order.to_dict()}), 200


@admin_bp.route("/withdraws", methods=["GET"])
@admin_required
def list_withdraws():
    page = request.args.get("page", 1, type=int)
    page_size = request.args.get("pageSize", 20, type=int)
    orders, total = wallet_service.list_withdraws(
        status=request.args.get("status"), page=page, page_size=page_size
    )
    return jsonify({
        "success": True,
        "orders": [o.to_dict() for o in orders],
        "total": total,
        "page": page,
    }), 200


@admin_bp.route("/withdraws/<order_id>/review", methods=["POST"])
@admin_required
@handle_service_errors
def review_withdraw(order_id):
    data = json_body()
    order = wallet_service.approve_withdraw(order_id, _flag(data.get("approved", True)), data.get("remark", ""))
    return jsonify({"success": True, "order": order.to_dict()}), 200


# ---------------------------------------------------------------------------
# Order pool
# ---------------------------------------------------------------------------
@admin_bp.route("/orders", methods=["GET"])
@admin_required
def order_pool():
    assigned = request.args.get("assigned")
    orders = order_service.pool(None if assigned is None else _flag(assigned))
    return jsonify({"success": True, "orders": [o.to_dict() for o in orders]}), 200


@admin_bp.route("/orders", methods=["POST"])
@admin_required
@handle_service_errors
def create_order():
    data = json_body()
    order = order_service.create(
        product_name=str(data.get("productName", "")).strip(),
        amount=data.get("amount"),
        commission=data.get("commission", 0),
        platform=data.get("platform", ""),
        description=data.get("description", ""),
        created_by=current_user.id,
        created_by_name=current_user.name,
    )
    return jsonify({"success": True, "order": order.to_dict()}), 201


@admin_bp.route("/orders/<order_id>/assign", methods=["POST"])
@admin_required
@handle_service_errors
def assign_order(order_id):
    data = json_body()
    customer_id = data.get("customerId")
    if not customer_id:
        return error("customerId is required")
    customer = user_service.get_by_id(customer_id)
    if customer is None:
        return error("Customer not found", 404)
    order = order_service.assign(order_id, customer_id, customer.nickname, current_user.id)
    return jsonify({"success": True, "order": order.to_dict()}), 200


@admin_bp.route("/orders/<order_id>/status", methods=["POST"])
@admin_required
@handle_service_errors
def update_order_status(order_id):
    order = order_service.update_status(order_id, str(json_body().get("status", "")))
    return jsonify({"success": True, "order": order.to_dict()}), 200


# ---------------------------------------------------------------------------
# Recharge receiving accounts
# ---------------------------------------------------------------------------
@admin_bp.route("/payment-accounts", methods=["GET"])
@super_admin_required
def list_payment_accounts():
    accounts = [a.to_dict() for a in payment_account_service.list()]
    return jsonify({"success": True, "accounts": accounts}), 200


@admin_bp.route("/payment-accounts", methods=["POST"])
@super_admin_required
@handle_service_errors
def create_payment_account():
    account = payment_account_service.create(json_body())
    return jsonify({"success": True, "account": account.to_dict()}), 201


@admin_bp.route("/payment-accounts/<account_id>", methods=["PUT"])
@super_admin_required
@handle_service_errors
def update_payment_account(account_id):
    account = payment_account_service.update(account_id, json_body())
    return jsonify({"success": True, "account": account.to_dict()}), 200


@admin_bp.route("/payment-accounts/<account_id>", methods=["DELETE"])
@super_admin_required
@handle_service_errors
def delete_payment_account(account_id):
    payment_account_service.delete(account_id)
    return jsonify({"success": True, "message": "Payment account deleted"}), 200
