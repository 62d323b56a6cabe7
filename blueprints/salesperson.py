from flask import Blueprint, jsonify
from flask_login import current_user
import logging

from blueprints.api_helpers import error, json_body, salesperson_required
from blueprints.auth import with_token_cookie
from extensions import store, tokens
from services.agents import AgentService
from services.assignments import CustomerAssignmentService
from services.users import UserService

logger = logging.getLogger(__name__)

bp = Blueprint("salesperson", __name__, url_prefix="/api/salesperson")

agent_service = AgentService(store, tokens)
assignment_service = CustomerAssignmentService(store)
user_service = UserService(store, tokens)


@bp.route("/login", methods=["POST"])
def login():
    data = json_body()
    result = agent_service.login(str(data.get("account", "")).strip(), str(data.get("password", "")))
    if not result.success:
        return error(result.message, 401)
    return with_token_cookie(result.to_dict(), result.token)


@bp.route("/customers", methods=["GET"])
@salesperson_required
def my_customers():
    customers = []
    for assignment in assignment_service.get_by_salesperson(current_user.id):
        user = user_service.get_by_id(assignment.customer_id)
        entry = assignment.to_dict()
        entry["customer"] = user.to_public_dict() if user else None
        customers.append(entry)
    return jsonify({"success": True, "customers": customers, "total": len(customers)}), 200
