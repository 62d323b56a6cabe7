#=======================================================================================================
# User accounts: registration, login, profile
#=======================================================================================================
import logging
import uuid
from dataclasses import replace
from datetime import datetime
from decimal import Decimal

from models import AuthResult, Admin, Agent, User, PermissionLevel, to_camel
from services.assignments import CustomerAssignmentService, ASSIGNMENTS
from services.invites import INVITE_CONFIG, INVITE_RECORDS, InviteService
from services.passwords import make_password, needs_upgrade, verify_password

logger = logging.getLogger(__name__)

USERS = "users"
AGENTS = "agents"
ADMINS = "admins"

STARTING_BALANCE = Decimal("10.0")
DEFAULT_CREDIT_SCORE = 100
LOGIN_FAILED = "Incorrect phone number or password"

REDIRECTS = {
    PermissionLevel.SUPER_ADMIN: "/admin.html",
    PermissionLevel.ADMIN: "/admin.html",
    PermissionLevel.SALESPERSON: "/salesperson.html",
    PermissionLevel.USER: "/home.html",
}


def redirect_url_for(permission_level):
    """Landing page for a permission level; unknown levels go back to login."""
    return REDIRECTS.get(permission_level, "/login.html")


class UserService:

    def __init__(self, store, tokens, starting_balance=STARTING_BALANCE):
        self.store = store
        self.tokens = tokens
        self.starting_balance = Decimal(str(starting_balance))
        self.assignments = CustomerAssignmentService(store)
        self.invites = InviteService(store)

    # ==========================================================
    #                  REGISTRATION
    # ==========================================================
    def register(self, full_phone, password, invite_code="", nickname=None):
        if not full_phone or not password:
            return AuthResult.fail("Phone number and password are required")

        invite_code = (invite_code or "").strip()

        with self.store.lock(USERS, AGENTS, ASSIGNMENTS, INVITE_RECORDS, INVITE_CONFIG):
            users = self.store.load(USERS, User)
            if any(u.phone == full_phone for u in users):
                return AuthResult.fail("This phone number is already registered")

            agents = self.store.load(AGENTS, Agent)
            agent = None
            if invite_code:
                agent = next(
                    (a for a in agents if a.is_active and a.invite_code == invite_code),
                    None,
                )
                if agent is None:
                    return AuthResult.fail("invite code not found")

            now = datetime.now()
            user = User(
                id=str(uuid.uuid4()),
                phone=full_phone,
                password=make_password(password),
                nickname=nickname or f"User{full_phone[-4:]}",
                current_balance=self.starting_balance,
                frozen_amount=Decimal("0"),
                credit_score=DEFAULT_CREDIT_SCORE,
                vip_level=0,
                invite_code_used=invite_code if agent else "",
                inviter_id=agent.id if agent else None,
                register_time=now,
                last_login_time=now,
            )
            users.append(user)
            self.store.save(USERS, users)

            if agent is not None:
                self.assignments.create(user.id, agent.id)
                self.invites.record(agent.id, user.id, invite_code)
                agent.customer_count += 1
                agent.updated_at = now
                self.store.save(AGENTS, agents)
                logger.info(f"User {user.id} registered under agent {agent.id}")

        logger.info(f"Registered user {user.id} ({full_phone})")
        return AuthResult(
            success=True,
            message="Registration successful",
            token=self.tokens.issue_user_token(user),
            user=self._public(user),
            permission_level=user.permission_level,
            redirect_url=redirect_url_for(user.permission_level),
        )

    # ==========================================================
    #                  LOGIN
    # ==========================================================
    def login(self, full_phone, password):
        with self.store.lock(USERS):
            users = self.store.load(USERS, User)
            user = next((u for u in users if u.phone == full_phone), None)
            if user is None:
                return AuthResult.fail(LOGIN_FAILED)
            if not verify_password(password, user.password):
                return AuthResult.fail(LOGIN_FAILED)
            if not user.is_active:
                return AuthResult.fail(LOGIN_FAILED)

            if needs_upgrade(user.password):
                user.password = make_password(password)
                logger.info(f"Upgraded password hash for user {user.id}")
            user.last_login_time = datetime.now()
            self.store.save(USERS, users)

        logger.info(f"User {user.id} logged in")
        return AuthResult(
            success=True,
            message="Login successful",
            token=self.tokens.issue_user_token(user),
            user=self._public(user),
            permission_level=user.permission_level,
            redirect_url=redirect_url_for(user.permission_level),
        )

    def admin_login(self, username, password):
        if not username or not password:
            return AuthResult.fail("Username and password are required")

        with self.store.lock(ADMINS):
            admins = self.store.load(ADMINS, Admin)
            admin = next(
                (a for a in admins if a.is_active and username in (a.username, a.phone)),
                None,
            )
            if admin is None or not verify_password(password, admin.password):
                logger.warning(f"Failed admin login for {username}")
                return AuthResult.fail(LOGIN_FAILED)

            if needs_upgrade(admin.password):
                admin.password = make_password(password)
            admin.last_login_time = datetime.now()
            self.store.save(ADMINS, admins)

        logger.info(f"Admin {admin.username} logged in")
        return AuthResult(
            success=True,
            message="Login successful",
            token=self.tokens.issue_admin_token(admin),
            user=admin.to_public_dict(),
            permission_level=admin.permission_level,
            redirect_url=redirect_url_for(admin.permission_level),
        )

    # ==========================================================
    #                  LOOKUP & UPDATE
    # ==========================================================
    def get_by_id(self, user_id):
        """Active user with the password blanked, or None."""
        for user in self.store.load(USERS, User):
            if user.id == user_id and user.is_active:
                return replace(user, password="")
        return None

    def update(self, user):
        """Replace the whole stored record with the same id."""
        with self.store.lock(USERS):
            users = self.store.load(USERS, User)
            for index, existing in enumerate(users):
                if existing.id == user.id:
                    if not user.password:
                        # Records handed out by get_by_id have no password
                        user = replace(user, password=existing.password)
                    users[index] = user
                    self.store.save(USERS, users)
                    return True
        logger.warning(f"Update of unknown user {user.id}")
        return False

    def update_profile(self, user_id, changes):
        """Merge editable profile fields; returns the updated user or None."""
        allowed = {}
        for name in User.PROFILE_FIELDS:
            camel = to_camel(name)
            for key in (camel, name):
                if key in changes and changes[key] is not None:
                    allowed[name] = str(changes[key]).strip()
                    break
        if "nickName" in changes and "nickname" not in allowed:
            allowed["nickname"] = str(changes["nickName"]).strip()
        if "name" in changes and "nickname" not in allowed:
            allowed["nickname"] = str(changes["name"]).strip()

        with self.store.lock(USERS):
            users = self.store.load(USERS, User)
            for index, user in enumerate(users):
                if user.id == user_id and user.is_active:
                    users[index] = replace(user, **allowed)
                    self.store.save(USERS, users)
                    return replace(users[index], password="")
        return None

    def get_balance(self, user_id):
        user = self.get_by_id(user_id)
        if user is None:
            return None
        return {
            "balance": float(user.current_balance),
            "frozenAmount": float(user.frozen_amount),
            "totalAssets": float(user.current_balance + user.frozen_amount),
            "creditScore": user.credit_score,
            "vipLevel": user.vip_level,
        }

    @staticmethod
    def _public(user):
        return user.to_public_dict()
