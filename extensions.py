#=======================================================================================================
# Extensions for the task platform Flask application
#=======================================================================================================
from flask import current_app, jsonify
from flask_login import LoginManager, UserMixin

from storage import FlatFileStore
from services.tokens import (
    TokenService,
    CLAIM_SUBJECT,
    CLAIM_NAME,
    CLAIM_DISPLAY_NAME,
    CLAIM_PERMISSION_LEVEL,
    CLAIM_USER_TYPE,
    CLAIM_VIP_LEVEL,
)
from models import PermissionLevel


# -------------------------------------------------------------------------------------
# Flask Extensions
# -------------------------------------------------------------------------------------
login_manager = LoginManager()
store = FlatFileStore()
tokens = TokenService()


class CurrentPrincipal(UserMixin):
    """Whoever presented a valid bearer token on this request."""

    def __init__(self, claims):
        self.claims = claims
        self.id = claims.get(CLAIM_SUBJECT)
        self.name = claims.get(CLAIM_DISPLAY_NAME) or claims.get(CLAIM_NAME) or ""
        self.user_type = claims.get(CLAIM_USER_TYPE) or "user"
        try:
            self.permission_level = int(claims.get(CLAIM_PERMISSION_LEVEL, PermissionLevel.USER))
        except (TypeError, ValueError):
            self.permission_level = PermissionLevel.USER
        self.vip_level = claims.get(CLAIM_VIP_LEVEL)

    @property
    def is_admin(self):
        return self.permission_level <= PermissionLevel.ADMIN

    @property
    def is_salesperson(self):
        return self.permission_level == PermissionLevel.SALESPERSON


# The token cookie is readable by page scripts, so it only authenticates
# requests that cannot change state. Writes must send the Authorization header.
COOKIE_METHODS = ("GET", "HEAD", "OPTIONS")


def bearer_token(req):
    header = req.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip()
    if req.method not in COOKIE_METHODS:
        return None
    return req.cookies.get(current_app.config.get("TOKEN_COOKIE_NAME", "userToken"))


# -------------------------------------------------------------------------------------
# Initialization helper
# -------------------------------------------------------------------------------------
def init_extensions(app):
    """Initialize Flask extensions"""
    store.init_app(app)
    tokens.init_app(app)
    login_manager.init_app(app)

    @login_manager.request_loader
    def load_principal(req):
        claims = tokens.validate(bearer_token(req))
        if not claims or not claims.get(CLAIM_SUBJECT):
            return None
        return CurrentPrincipal(claims)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"success": False, "message": "Unauthorized"}), 401

    return app
