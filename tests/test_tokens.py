import jwt

from models import Admin, Agent, User
from services.tokens import (
    CLAIM_MOBILE_PHONE,
    CLAIM_PERMISSION_LEVEL,
    CLAIM_USER_TYPE,
    CLAIM_VIP_LEVEL,
    TokenService,
)


def test_issue_then_validate_returns_issued_claims(token_service):
    identity = {"nameid": "u-1", CLAIM_MOBILE_PHONE: "+8613800000001", "unique_name": "Tom"}
    roles = {CLAIM_VIP_LEVEL: "3"}
    claims = token_service.validate(token_service.issue(identity, roles))

    assert token_service.public_claims(claims) == {**identity, **roles}
    assert claims["iss"] == "TestIssuer"
    assert claims["aud"] == "TestAudience"
    assert claims["jti"]


def test_each_token_has_unique_jti(token_service):
    first = token_service.validate(token_service.issue({"nameid": "u-1"}))
    second = token_service.validate(token_service.issue({"nameid": "u-1"}))
    assert first["jti"] != second["jti"]


def test_expired_token_is_invalid(token_service):
    token = token_service.issue({"nameid": "u-1"}, ttl_minutes=-1)
    assert token_service.validate(token) is None


def test_wrong_key_issuer_or_audience_is_invalid(token_service):
    token = token_service.issue({"nameid": "u-1"})
    assert TokenService("another-signing-key-that-is-also-long-enough", "TestIssuer", "TestAudience").validate(token) is None
    assert TokenService(token_service.key, "OtherIssuer", "TestAudience").validate(token) is None
    assert TokenService(token_service.key, "TestIssuer", "OtherAudience").validate(token) is None


def test_token_without_expiry_is_invalid(token_service):
    token = jwt.encode(
        {"nameid": "u-1", "iss": "TestIssuer", "aud": "TestAudience"},
        token_service.key,
        algorithm="HS256",
    )
    assert token_service.validate(token) is None


def test_garbage_is_invalid(token_service):
    assert token_service.validate("not.a.token") is None
    assert token_service.validate("") is None
    assert token_service.validate(None) is None


def test_claim_accessors(token_service):
    admin = Admin(id="adm-1", username="root", name="Root", email="r@example.com",
                  permission_level=0, user_type="admin")
    token = token_service.issue_admin_token(admin)
    assert token_service.subject_id(token) == "adm-1"
    assert token_service.user_type(token) == "admin"
    assert token_service.permission_level(token) == 0


def test_accessors_on_missing_claims_or_token(token_service):
    user = User(id="u-1", phone="+8613800000001", nickname="Tom", vip_level=2)
    token = token_service.issue_user_token(user)
    assert token_service.subject_id(token) == "u-1"
    assert token_service.user_type(token) is None
    assert token_service.permission_level(token) is None
    assert token_service.subject_id(None) is None


def test_user_token_claims(token_service):
    user = User(id="u-1", phone="+8613800000001", nickname="Tom", vip_level=2)
    claims = token_service.validate(token_service.issue_user_token(user))
    assert claims["nameid"] == "u-1"
    assert claims[CLAIM_MOBILE_PHONE] == "+8613800000001"
    assert claims["unique_name"] == "Tom"
    assert claims[CLAIM_VIP_LEVEL] == "2"


def test_agent_token_claims(token_service):
    agent = Agent(id="A1", nick_name="Alice", account="alice")
    claims = token_service.validate(token_service.issue_agent_token(agent))
    assert claims[CLAIM_PERMISSION_LEVEL] == "2"
    assert claims[CLAIM_USER_TYPE] == "salesperson"
    assert claims["DisplayName"] == "Alice"
