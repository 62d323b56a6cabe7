from flask import Blueprint, current_app, jsonify, make_response
from flask_login import current_user, login_required
import logging

from blueprints.api_helpers import error, json_body
from extensions import store, tokens
from services.users import UserService
from utils import full_phone_number, validate_invite_code, validate_phone


logger = logging.getLogger(__name__)
#==================================================================================================================

bp = Blueprint("auth", __name__, url_prefix="/api/auth")

user_service = UserService(store, tokens)


def with_token_cookie(payload, token, status=200):
    """JSON response that also sets the userToken cookie used for page navigations."""
    response = make_response(jsonify(payload), status)
    response.set_cookie(
        current_app.config.get("TOKEN_COOKIE_NAME", "userToken"),
        token,
        max_age=current_app.config.get("TOKEN_COOKIE_DAYS", 7) * 24 * 3600,
        httponly=False,
        samesite="Lax",
    )
    return response


#===========================================================================
#      REGISTER
#==============================================================================
@bp.route("/register", methods=["POST"])
def register():
    data = json_body()

    phone = str(data.get("phone", "")).strip()
    password = str(data.get("password", ""))
    invite_code = str(data.get("inviteCode", "") or "").strip()
    country_code = str(data.get("countryCode") or current_app.config.get("DEFAULT_COUNTRY_CODE", "+86"))

    # -----------------------------------------
    #  BASIC VALIDATION
    # -----------------------------------------
    if not phone or not password:
        return error("Phone number and password are required")
    if not validate_phone(phone):
        return error("Phone number must contain at least 8 digits")
    if len(password) < 6:
        return error("Password must be at least 6 characters")
    if invite_code and not validate_invite_code(invite_code):
        return error("Invite code must be 6 letters or digits")

    result = user_service.register(
        full_phone_number(country_code, phone),
        password,
        invite_code,
        nickname=(data.get("nickname") or data.get("name") or None),
    )
    if not result.success:
        return error(result.message)
    return with_token_cookie(result.to_dict(), result.token)


#===========================================================================
#      LOGIN
#==============================================================================
@bp.route("/login", methods=["POST"])
def login():
    data = json_body()
    phone = str(data.get("phone", "")).strip()
    password = str(data.get("password", ""))
    if not phone or not password:
        return error("Phone number and password are required")

    country_code = str(data.get("countryCode") or current_app.config.get("DEFAULT_COUNTRY_CODE", "+86"))
    result = user_service.login(full_phone_number(country_code, phone), password)
    if not result.success:
        return error(result.message, 401)
    return with_token_cookie(result.to_dict(), result.token)


@bp.route("/admin-login", methods=["POST"])
def admin_login():
    data = json_body()
    username = str(data.get("username") or data.get("phone") or "").strip()
    result = user_service.admin_login(username, str(data.get("password", "")))
    if not result.success:
        return error(result.message, 401)
    return with_token_cookie(result.to_dict(), result.token)


@bp.route("/logout", methods=["POST"])
def logout():
    response = make_response(jsonify({"success": True, "message": "Logged out"}))
    response.delete_cookie(current_app.config.get("TOKEN_COOKIE_NAME", "userToken"))
    return response


@bp.route("/verify", methods=["GET"])
@login_required
def verify():
    return jsonify({
        "success": True,
        "userId": current_user.id,
        "userType": current_user.user_type,
        "permissionLevel": current_user.permission_level,
        "claims": tokens.public_claims(current_user.claims),
    }), 200
