from functools import wraps
import logging

from flask import jsonify, request
from flask_login import current_user

from models import PermissionLevel
from services.wallet import WalletError

logger = logging.getLogger(__name__)


def error(message, status=400):
    return jsonify({"success": False, "message": message}), status


def json_body():
    return request.get_json(silent=True) or {}


def handle_service_errors(f):
    """Turn wallet/order exceptions into JSON error bodies; unexpected ones into 500."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except WalletError as e:
            return error(str(e), e.status_code)
        except Exception as e:
            logger.exception(f"Unhandled error in {request.endpoint}: {e}")
            return error("Internal server error", 500)
    return decorated_function


def admin_required(f):
    """
    Restrict a route to admin tokens (permission level 0 or 1).
    Unauthenticated callers get 401, others 403.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return error("Unauthorized", 401)
        if not current_user.is_admin:
            return error("Admin privileges required", 403)
        return f(*args, **kwargs)
    return decorated_function


def salesperson_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return error("Unauthorized", 401)
        if not (current_user.is_salesperson or current_user.is_admin):
            return error("Salesperson privileges required", 403)
        return f(*args, **kwargs)
    return decorated_function


def user_required(f):
    """Customer token required (admins and salespeople carry a PermissionLevel claim)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return error("Unauthorized", 401)
        if current_user.user_type != "user":
            return error("Customer account required", 403)
        return f(*args, **kwargs)
    return decorated_function


def super_admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return error("Unauthorized", 401)
        if current_user.permission_level != PermissionLevel.SUPER_ADMIN:
            return error("Super admin privileges required", 403)
        return f(*args, **kwargs)
    return decorated_function
