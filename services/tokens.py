#=======================================================================================================
# Bearer token issuing and validation (HS256 JWT)
#=======================================================================================================
import logging
import uuid
from datetime import datetime, timedelta, timezone

import jwt

logger = logging.getLogger(__name__)

# Claim names kept compatible with tokens issued by the previous backend
CLAIM_SUBJECT = "nameid"
CLAIM_NAME = "unique_name"
CLAIM_MOBILE_PHONE = "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/mobilephone"
CLAIM_VIP_LEVEL = "VipLevel"
CLAIM_DISPLAY_NAME = "DisplayName"
CLAIM_PERMISSION_LEVEL = "PermissionLevel"
CLAIM_USER_TYPE = "UserType"
CLAIM_EMAIL = "email"

_RESERVED = ("jti", "iss", "aud", "exp")


class TokenService:
    ALGORITHM = "HS256"

    def __init__(self, key=None, issuer=None, audience=None, expire_minutes=1440):
        self.key = key
        self.issuer = issuer
        self.audience = audience
        self.expire_minutes = expire_minutes

    def init_app(self, app):
        self.key = app.config["JWT_KEY"]
        self.issuer = app.config["JWT_ISSUER"]
        self.audience = app.config["JWT_AUDIENCE"]
        self.expire_minutes = app.config.get("JWT_EXPIRE_MINUTES", 1440)

    # -------------------------------------------------------------------------------------
    # Issuing
    # -------------------------------------------------------------------------------------
    def issue(self, identity_claims, role_claims=None, ttl_minutes=None):
        if not self.key:
            raise RuntimeError("JWT_KEY not configured")
        ttl = self.expire_minutes if ttl_minutes is None else ttl_minutes
        payload = dict(identity_claims)
        payload.update(role_claims or {})
        payload["jti"] = str(uuid.uuid4())
        payload["iss"] = self.issuer
        payload["aud"] = self.audience
        payload["exp"] = datetime.now(timezone.utc) + timedelta(minutes=ttl)
        return jwt.encode(payload, self.key, algorithm=self.ALGORITHM)

    def issue_user_token(self, user):
        return self.issue(
            {
                CLAIM_SUBJECT: user.id,
                CLAIM_MOBILE_PHONE: user.phone,
                CLAIM_NAME: user.nickname,
            },
            {CLAIM_VIP_LEVEL: str(user.vip_level)},
        )

    def issue_admin_token(self, admin):
        return self.issue(
            {
                CLAIM_SUBJECT: admin.id,
                CLAIM_NAME: admin.username,
                CLAIM_DISPLAY_NAME: admin.name,
                CLAIM_EMAIL: admin.email,
            },
            {
                CLAIM_PERMISSION_LEVEL: str(admin.permission_level),
                CLAIM_USER_TYPE: admin.user_type or "admin",
            },
        )

    def issue_agent_token(self, agent):
        return self.issue(
            {
                CLAIM_SUBJECT: agent.id,
                CLAIM_NAME: agent.account,
                CLAIM_DISPLAY_NAME: agent.nick_name,
            },
            {
                CLAIM_PERMISSION_LEVEL: "2",
                CLAIM_USER_TYPE: "salesperson",
            },
        )

    # -------------------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------------------
    def validate(self, token):
        """Return the claim set of a valid token, or None."""
        if not token or not self.key:
            return None
        try:
            return jwt.decode(
                token,
                self.key,
                algorithms=[self.ALGORITHM],
                issuer=self.issuer,
                audience=self.audience,
                leeway=0,
                options={"require": ["exp", "iss", "aud"]},
            )
        except jwt.PyJWTError as e:
            logger.warning(f"Token validation failed: {e}")
            return None

    def _claim(self, token, name):
        claims = self.validate(token)
        if not claims:
            return None
        return claims.get(name)

    def subject_id(self, token):
        return self._claim(token, CLAIM_SUBJECT)

    def user_type(self, token):
        return self._claim(token, CLAIM_USER_TYPE)

    def permission_level(self, token):
        value = self._claim(token, CLAIM_PERMISSION_LEVEL)
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def public_claims(claims):
        """Claims without the registered ones (jti, iss, aud, exp)."""
        return {k: v for k, v in claims.items() if k not in _RESERVED}
