#====================================================================================================
#   Invite programme: levels, stats, records, rewards and the leaderboard
#====================================================================================================
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from blueprints.api_helpers import admin_required, handle_service_errors
from extensions import store
from services.agents import AgentService
from services.invites import InviteService

bp = Blueprint("invite", __name__, url_prefix="/api/invite")

invite_service = InviteService(store)
agent_service = AgentService(store)


def _page_args(default_size=20):
    page = max(request.args.get("page", 1, type=int), 1)
    page_size = max(1, min(request.args.get("pageSize", default_size, type=int), 100))
    return page, page_size


@bp.route("/config", methods=["GET"])
def invite_config():
    config = invite_service.config()
    return jsonify({
        "success": True,
        "levels": [lv.to_dict() for lv in config["levels"]],
        "rules": config["rules"],
        "notice": config["notice"],
    }), 200


@bp.route("/info", methods=["GET"])
@login_required
def invite_info():
    info = invite_service.info(current_user.id)
    agent = agent_service.get(current_user.id) if current_user.is_salesperson else None
    if agent is not None:
        info["inviteCode"] = agent.invite_code
        info["inviteEarnings"] = float(agent.invite_earnings)
    return jsonify({"success": True, **info}), 200


@bp.route("/records", methods=["GET"])
@login_required
def invite_records():
    page, page_size = _page_args()
    items, total = invite_service.records(current_user.id, page, page_size)
    return jsonify({"success": True, "records": items, "total": total, "page": page, "pageSize": page_size}), 200


@bp.route("/rewards", methods=["GET"])
@login_required
def invite_rewards():
    page, page_size = _page_args()
    rewards, total = invite_service.rewards(current_user.id, page, page_size)
    return jsonify({
        "success": True,
        "rewards": [r.to_dict() for r in rewards],
        "total": total,
        "page": page,
        "pageSize": page_size,
    }), 200


@bp.route("/leaderboard", methods=["GET"])
def leaderboard():
    page, page_size = _page_args(default_size=50)
    entries, total = invite_service.leaderboard(page, page_size)
    return jsonify({"success": True, "leaderboard": entries, "total": total}), 200


@bp.route("/validate/<invite_id>", methods=["POST"])
@admin_required
@handle_service_errors
def validate_invite(invite_id):
    record = invite_service.validate(invite_id)
    return jsonify({"success": True, "record": record.to_dict()}), 200
