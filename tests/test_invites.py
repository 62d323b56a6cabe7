from decimal import Decimal

import pytest

from models import Agent, InviteLevel, InviteReward, Transaction, User
from services.invites import InviteService, level_for
from services.wallet import NotFoundError, ValidationError

TWO_LEVELS = {
    "levels": [
        {"level": 1, "name": "Starter", "reward": 10, "commission": 5, "requirement": 0},
        {"level": 2, "name": "Pro", "reward": 20, "commission": 8, "requirement": 2},
    ],
    "rules": ["Invite friends"],
    "notice": "Share and earn",
}


@pytest.fixture
def invites(file_store, agent_factory):
    agent_factory(file_store, agent_id="A1", invite_code="AGENT1")
    file_store.save("users", [
        User(id="u1", nickname="Tom", phone="+8613800000001"),
        User(id="u2", nickname="Ann", phone="+8613800000002"),
    ])
    return InviteService(file_store)


def earnings(file_store):
    return file_store.load("agents", Agent)[0].invite_earnings


def test_default_config_is_seeded(invites, file_store):
    config = invites.config()
    assert [lv.level for lv in config["levels"]] == [1, 2, 3, 4]
    assert len(config["rules"]) == 5
    assert file_store.load_single("invite_config")["levels"]


def test_level_for():
    levels = [InviteLevel(level=1, requirement=0), InviteLevel(level=2, requirement=10)]
    assert level_for(0, levels).level == 1
    assert level_for(9, levels).level == 1
    assert level_for(10, levels).level == 2


def test_record_once_per_invitee(invites):
    record = invites.record("A1", "u1", "AGENT1")
    assert record is not None
    assert not record.is_valid
    assert record.reward == Decimal("10")

    assert invites.record("A1", "u1", "AGENT1") is None
    assert invites.record("u1", "u1", "") is None


def test_validate_pays_reward(invites, file_store):
    record = invites.record("A1", "u1", "AGENT1")

    validated = invites.validate(record.id)
    assert validated.is_valid
    assert validated.validated_at is not None
    assert earnings(file_store) == Decimal("10")

    with pytest.raises(ValidationError):
        invites.validate(record.id)
    with pytest.raises(NotFoundError):
        invites.validate("missing")


def test_order_completion_validates_then_shares(invites, file_store):
    invites.record("A1", "u1", "AGENT1")

    assert invites.on_order_completed("u1", Decimal("10"), "O1") == Decimal("0.50")
    assert invites.on_order_completed("u1", Decimal("3.33"), "O2") == Decimal("0.16")
    assert earnings(file_store) == Decimal("10.66")

    types = sorted(r.type for r in file_store.load("invite_rewards", InviteReward))
    assert types == ["commission", "commission", "invite_reward"]


def test_completion_without_inviter_pays_nothing(invites, file_store):
    assert invites.on_order_completed("u2", Decimal("10"), "O1") == Decimal("0")
    assert file_store.load("invite_rewards", InviteReward) == []


def test_level_upgrade_bonus(invites, file_store):
    file_store.save_single("invite_config", TWO_LEVELS)
    first = invites.record("A1", "u1", "AGENT1")
    second = invites.record("A1", "u2", "AGENT1")

    invites.validate(first.id)
    assert earnings(file_store) == Decimal("10")

    invites.validate(second.id)
    # second reward plus the 20 - 10 difference for reaching level 2
    assert earnings(file_store) == Decimal("30")
    upgrades = [r for r in file_store.load("invite_rewards", InviteReward) if r.type == "level_upgrade"]
    assert len(upgrades) == 1

    info = invites.info("A1")
    assert info["level"]["current"]["level"] == 2
    assert info["level"]["next"] is None


def test_user_inviter_is_paid_into_balance(invites, file_store):
    record = invites.record("u1", "u2", "")
    invites.validate(record.id)

    tom = next(u for u in file_store.load("users", User) if u.id == "u1")
    assert tom.current_balance == Decimal("10")
    assert [t.type for t in file_store.load("transactions", Transaction)] == ["invite_reward"]


def test_info_records_and_rewards(invites):
    invites.record("A1", "u1", "AGENT1")
    second = invites.record("A1", "u2", "AGENT1")
    invites.validate(second.id)

    info = invites.info("A1")
    assert info["stats"]["totalInvites"] == 2
    assert info["stats"]["todayInvites"] == 2
    assert info["stats"]["validInvites"] == 1
    assert info["stats"]["totalReward"] == 10.0
    assert info["level"]["next"]["target"] == 10
    assert info["level"]["next"]["progress"] == 1

    items, total = invites.records("A1", page=1, page_size=10)
    assert total == 2
    by_name = {item["inviteeName"]: item for item in items}
    assert by_name["Ann"]["status"] == "valid"
    assert by_name["Tom"]["status"] == "pending"
    assert by_name["Tom"]["inviteePhone"] == "+86****0001"

    rewards, total = invites.rewards("A1")
    assert total == 1
    assert rewards[0].amount == Decimal("10")


def test_leaderboard(invites, file_store, agent_factory):
    agent_factory(file_store, agent_id="A2", invite_code="AGENT2", account="agent2")
    file_store.save("users", file_store.load("users", User) + [User(id="u3", nickname="Joe")])
    for inviter, invitee in (("A1", "u1"), ("A2", "u2"), ("A2", "u3")):
        invites.validate(invites.record(inviter, invitee, "").id)

    entries, total = invites.leaderboard()
    assert total == 2
    assert [(e["rank"], e["userId"], e["inviteCount"]) for e in entries] == [(1, "A2", 2), (2, "A1", 1)]
    assert entries[0]["username"] == "Agent A2"
    assert entries[0]["totalReward"] == 20.0
