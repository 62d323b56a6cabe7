import pytest

from services.payment_accounts import PaymentAccountService
from services.wallet import NotFoundError, ValidationError


def usdt(number, **extra):
    data = {
        "walletName": "Main wallet",
        "accountType": "USDT",
        "networkType": "TRC20",
        "accountNumber": number,
    }
    data.update(extra)
    return data


@pytest.fixture
def accounts(file_store):
    return PaymentAccountService(file_store)


def test_create_and_list(accounts):
    created = accounts.create(usdt("TXa1", remarks="primary"))
    assert created.id
    assert created.status == "enabled"
    assert created.create_time is not None
    assert [a.account_number for a in accounts.list()] == ["TXa1"]


def test_required_fields_and_status(accounts):
    with pytest.raises(ValidationError, match="Account number is required"):
        accounts.create(usdt("  "))
    with pytest.raises(ValidationError):
        accounts.create(usdt("TXa1", status="paused"))


def test_account_number_is_unique(accounts):
    accounts.create(usdt("TXa1"))
    with pytest.raises(ValidationError, match="already exists"):
        accounts.create(usdt("TXa1"))


def test_only_one_default(accounts):
    first = accounts.create(usdt("TXa1", isDefault=True))
    second = accounts.create(usdt("TXa2", isDefault=True))

    listed = accounts.list()
    assert listed[0].id == second.id
    assert [a.is_default for a in listed] == [True, False]

    accounts.update(first.id, usdt("TXa1", isDefault=True))
    assert [a.id for a in accounts.list() if a.is_default] == [first.id]


def test_active_only_hides_disabled(accounts):
    accounts.create(usdt("TXa1"))
    accounts.create(usdt("TXa2", status="disabled"))
    assert [a.account_number for a in accounts.list(active_only=True)] == ["TXa1"]


def test_update_and_delete(accounts):
    first = accounts.create(usdt("TXa1"))
    accounts.create(usdt("TXa2"))

    updated = accounts.update(first.id, usdt("TXa1", walletName="Cold wallet", networkType="ERC20"))
    assert updated.wallet_name == "Cold wallet"
    assert updated.network_type == "ERC20"

    with pytest.raises(ValidationError):
        accounts.update(first.id, usdt("TXa2"))
    with pytest.raises(NotFoundError):
        accounts.update("missing", usdt("TXa9"))

    assert accounts.delete(first.id)
    assert [a.account_number for a in accounts.list()] == ["TXa2"]
    with pytest.raises(NotFoundError):
        accounts.delete(first.id)
