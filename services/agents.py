import logging
import random
import uuid
from dataclasses import replace
from datetime import datetime

from models import Agent, AuthResult, PermissionLevel
from services.passwords import make_password, needs_upgrade, verify_password
from utils import validate_invite_code

logger = logging.getLogger(__name__)

AGENTS = "agents"


class AgentService:
    """Salesperson accounts and their invite codes."""

    def __init__(self, store, tokens=None):
        self.store = store
        self.tokens = tokens

    def create(self, nickname, account, password, invite_code=None):
        """Returns (agent, message); agent is None when validation fails."""
        if not nickname or not account or not password:
            return None, "Nickname, account and password are required"
        if len(password) < 6:
            return None, "Password must be at least 6 characters"

        with self.store.lock(AGENTS):
            agents = self.store.load(AGENTS, Agent)
            if any(a.account == account for a in agents):
                return None, "Account already exists"

            invite_code = (invite_code or "").strip() or self._unique_code(agents)
            if not validate_invite_code(invite_code):
                return None, "Invite code must be 6 letters or digits"
            if any(a.invite_code == invite_code for a in agents):
                return None, "Invite code already in use"

            now = datetime.now()
            agent = Agent(
                id=str(uuid.uuid4()),
                nick_name=nickname,
                account=account,
                password=make_password(password),
                invite_code=invite_code,
                register_time=now,
                created_at=now,
                updated_at=now,
            )
            agents.append(agent)
            self.store.save(AGENTS, agents)

        logger.info(f"Created agent {agent.id} ({account}) with invite code {invite_code}")
        return replace(agent, password=""), "Agent created"

    def list(self):
        return [replace(a, password="") for a in self.store.load(AGENTS, Agent)]

    def get(self, agent_id):
        for agent in self.store.load(AGENTS, Agent):
            if agent.id == agent_id:
                return replace(agent, password="")
        return None

    def set_active(self, agent_id, active):
        with self.store.lock(AGENTS):
            agents = self.store.load(AGENTS, Agent)
            agent = next((a for a in agents if a.id == agent_id), None)
            if agent is None:
                return False
            agent.is_active = bool(active)
            agent.updated_at = datetime.now()
            self.store.save(AGENTS, agents)
        logger.info(f"Agent {agent_id} active={agent.is_active}")
        return True

    def generate_invite_code(self):
        return self._unique_code(self.store.load(AGENTS, Agent))

    @staticmethod
    def _unique_code(agents):
        taken = {a.invite_code for a in agents}
        while True:
            code = f"{random.randint(0, 999999):06d}"
            if code not in taken:
                return code

    def login(self, account, password):
        if not account or not password:
            return AuthResult.fail("Account and password are required")

        with self.store.lock(AGENTS):
            agents = self.store.load(AGENTS, Agent)
            agent = next((a for a in agents if a.account == account), None)
            if agent is None or not verify_password(password, agent.password):
                return AuthResult.fail("Incorrect account or password")
            if not agent.is_active:
                return AuthResult.fail("Incorrect account or password")
            if needs_upgrade(agent.password):
                agent.password = make_password(password)
                agent.updated_at = datetime.now()
                self.store.save(AGENTS, agents)

        logger.info(f"Agent {agent.id} logged in")
        return AuthResult(
            success=True,
            message="Login successful",
            token=self.tokens.issue_agent_token(agent),
            user=agent.to_public_dict(),
            permission_level=PermissionLevel.SALESPERSON,
            redirect_url="/salesperson.html",
        )
