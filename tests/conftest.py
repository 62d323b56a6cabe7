import os
import tempfile

# Config refuses to import without these
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_KEY", "test-jwt-signing-key-that-is-long-enough-for-hs256")
os.environ.setdefault("FLASK_ENV", "production")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="task-platform-logs-"))

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
import extensions  # noqa: E402
from models import Agent  # noqa: E402
from services.passwords import make_password  # noqa: E402
from services.tokens import TokenService  # noqa: E402
from storage import FlatFileStore  # noqa: E402

TEST_JWT_KEY = "unit-test-signing-key-with-enough-bytes-for-hs256"


@pytest.fixture
def app(tmp_path):
    class TestConfig(Config):
        TESTING = True
        DATA_DIR = str(tmp_path / "Data")
        LOG_DIR = str(tmp_path / "logs")

    return create_app(TestConfig)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    """The store the running app uses."""
    return extensions.store


@pytest.fixture
def tokens(app):
    return extensions.tokens


@pytest.fixture
def file_store(tmp_path):
    """Standalone store for service-level tests."""
    return FlatFileStore(str(tmp_path / "data"))


@pytest.fixture
def token_service():
    return TokenService(TEST_JWT_KEY, "TestIssuer", "TestAudience", expire_minutes=60)


def add_agent(store, agent_id="A1", invite_code="AGENT1", account="agent1",
              password="agentpass", active=True):
    agents = store.load("agents", Agent)
    agent = Agent(
        id=agent_id,
        nick_name=f"Agent {agent_id}",
        account=account,
        password=make_password(password),
        invite_code=invite_code,
        is_active=active,
        register_time=datetime.now(),
        created_at=datetime.now(),
        updated_at=datetime.now(),
    )
    agents.append(agent)
    store.save("agents", agents)
    return agent


@pytest.fixture
def agent_factory():
    return add_agent


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_header():
    return bearer


@pytest.fixture
def admin_token(app, client):
    from make_admin import make_admin
    make_admin("root", "rootpass", 0)
    response = client.post("/api/auth/admin-login", json={"username": "root", "password": "rootpass"})
    return response.get_json()["token"]


@pytest.fixture
def registered_user(client):
    """Registers +8613800000001 and returns the response JSON (user + token)."""
    response = client.post(
        "/api/auth/register",
        json={"phone": "13800000001", "password": "secret123", "countryCode": "+86"},
    )
    assert response.status_code == 200
    return response.get_json()
