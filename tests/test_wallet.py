from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from models import RechargeOrder, User
from services.wallet import (
    InsufficientBalanceError,
    InvalidOrderStateError,
    OrderNotFoundError,
    ValidationError,
    WalletService,
)

CARD = {"bankName": "ICBC", "cardNumber": "6222 0212 3456 7890", "cardHolder": "Tom"}


@pytest.fixture
def wallet(file_store):
    file_store.save("users", [User(id="u1", phone="+8613800000001", current_balance=Decimal("1000"))])
    return WalletService(file_store)


def balances(file_store, user_id="u1"):
    user = next(u for u in file_store.load("users", User) if u.id == user_id)
    return user.current_balance, user.frozen_amount


def test_configs_are_seeded(wallet, file_store):
    assert wallet.withdraw_config()["minAmount"] == 100
    assert [m["id"] for m in wallet.recharge_config()["methods"]] == ["bank", "alipay", "wechat"]
    assert file_store.load_single("withdraw_config")["fee"] == 5


def test_order_id_format(wallet):
    order = wallet.create_recharge("u1", "bank", 100)
    assert order.id.startswith("R")
    assert len(order.id) == 1 + 14 + 4
    assert order.id[1:].isdigit()


# ---------------------------------------------------------------------------
# Recharge
# ---------------------------------------------------------------------------
def test_recharge_lifecycle_credits_balance(wallet, file_store):
    order = wallet.create_recharge("u1", "bank", "200")
    assert order.status == "pending"
    assert order.actual_amount == Decimal("200")
    assert order.expired_at - order.created_at == timedelta(hours=24)

    assert wallet.confirm_recharge(order.id, "u1", "receipt.png").status == "processing"
    assert wallet.approve_recharge(order.id, True).status == "completed"

    assert balances(file_store) == (Decimal("1200"), Decimal("0"))
    ledger = wallet.transactions("u1")
    assert [t.type for t in ledger] == ["recharge"]
    assert ledger[0].balance == Decimal("1200")


def test_recharge_rejected_leaves_balance(wallet, file_store):
    order = wallet.create_recharge("u1", "alipay", 50)
    wallet.confirm_recharge(order.id)
    assert wallet.approve_recharge(order.id, False).status == "rejected"
    assert balances(file_store)[0] == Decimal("1000")


def test_recharge_validation(wallet):
    with pytest.raises(ValidationError):
        wallet.create_recharge("u1", "bank", 5)
    with pytest.raises(ValidationError):
        wallet.create_recharge("u1", "bitcoin", 100)
    with pytest.raises(ValidationError):
        wallet.create_recharge("u1", "bank", "abc")
    with pytest.raises(ValidationError):
        wallet.create_recharge("ghost", "bank", 100)


def test_approve_requires_processing(wallet):
    order = wallet.create_recharge("u1", "bank", 100)
    with pytest.raises(InvalidOrderStateError):
        wallet.approve_recharge(order.id)
    with pytest.raises(OrderNotFoundError):
        wallet.approve_recharge("R-missing")


def test_expired_recharge_cannot_be_confirmed(wallet, file_store):
    order = wallet.create_recharge("u1", "bank", 100)
    orders = file_store.load("recharge_orders", RechargeOrder)
    orders[0].expired_at = datetime.now() - timedelta(minutes=1)
    file_store.save("recharge_orders", orders)

    with pytest.raises(InvalidOrderStateError):
        wallet.confirm_recharge(order.id)
    assert wallet.list_recharges("u1")[0].status == "expired"


def test_cancel_recharge_only_when_pending(wallet):
    order = wallet.create_recharge("u1", "bank", 100)
    with pytest.raises(OrderNotFoundError):
        wallet.cancel_recharge(order.id, "someone-else")
    assert wallet.cancel_recharge(order.id, "u1").status == "cancelled"
    with pytest.raises(InvalidOrderStateError):
        wallet.cancel_recharge(order.id, "u1")


# ---------------------------------------------------------------------------
# Withdraw
# ---------------------------------------------------------------------------
def test_withdraw_freezes_amount(wallet, file_store):
    order = wallet.create_withdraw("u1", 300, CARD)
    assert order.id.startswith("W")
    assert order.fee == Decimal("5")
    assert order.actual_amount == Decimal("295")
    assert order.card_number == "6222021234567890"
    assert balances(file_store) == (Decimal("700"), Decimal("300"))


def test_withdraw_approval_consumes_frozen(wallet, file_store):
    order = wallet.create_withdraw("u1", 300, CARD)
    assert wallet.approve_withdraw(order.id, True).status == "approved"
    assert balances(file_store) == (Decimal("700"), Decimal("0"))
    with pytest.raises(InvalidOrderStateError):
        wallet.approve_withdraw(order.id, True)


def test_withdraw_rejection_unfreezes(wallet, file_store):
    order = wallet.create_withdraw("u1", 300, CARD)
    assert wallet.approve_withdraw(order.id, False).status == "rejected"
    assert balances(file_store) == (Decimal("1000"), Decimal("0"))
    assert [t.type for t in wallet.transactions("u1")].count("withdraw_unfreeze") == 1


def test_withdraw_cancel_by_owner(wallet, file_store):
    order = wallet.create_withdraw("u1", 300, CARD)
    with pytest.raises(OrderNotFoundError):
        wallet.cancel_withdraw(order.id, "intruder")
    assert wallet.cancel_withdraw(order.id, "u1").status == "cancelled"
    assert balances(file_store) == (Decimal("1000"), Decimal("0"))


def test_withdraw_validation(wallet):
    with pytest.raises(ValidationError):
        wallet.create_withdraw("u1", 0, CARD)
    with pytest.raises(ValidationError):
        wallet.create_withdraw("u1", 50, CARD)
    with pytest.raises(ValidationError):
        wallet.create_withdraw("u1", 200, {**CARD, "cardNumber": "1234"})
    with pytest.raises(InsufficientBalanceError):
        wallet.create_withdraw("u1", 5000, CARD)


def test_withdraw_daily_limit(file_store):
    file_store.save("users", [User(id="rich", current_balance=Decimal("200000"))])
    wallet = WalletService(file_store)
    wallet.create_withdraw("rich", 50000, CARD)
    wallet.create_withdraw("rich", 50000, CARD)
    with pytest.raises(ValidationError):
        wallet.create_withdraw("rich", 100, CARD)


def test_percentage_fee(wallet, file_store):
    file_store.save_single("withdraw_config", {
        "minAmount": 100, "maxAmount": 50000, "dailyLimit": 100000, "fee": 2, "feeType": "percentage",
    })
    order = wallet.create_withdraw("u1", 250, CARD)
    assert order.fee == Decimal("5.00")


def test_list_withdraws_paginates_newest_first(wallet):
    for amount in (100, 200, 300):
        wallet.create_withdraw("u1", amount, CARD)
    page, total = wallet.list_withdraws("u1", page=1, page_size=2)
    assert total == 3
    assert len(page) == 2
    second_page, _ = wallet.list_withdraws("u1", page=2, page_size=2)
    assert len(second_page) == 1


def test_public_dict_masks_card_number(wallet):
    order = wallet.create_withdraw("u1", 100, CARD)
    assert order.to_public_dict()["cardNumber"] == "6222****7890"
