import pytest

from services.passwords import hash_password, make_password, needs_upgrade, verify_password


def test_legacy_hash_is_deterministic():
    assert hash_password("secret123") == hash_password("secret123")


def test_legacy_hash_known_value():
    # base64(sha256("secret123" + "MobileECommerceSalt"))
    import base64
    import hashlib
    expected = base64.b64encode(hashlib.sha256(b"secret123MobileECommerceSalt").digest()).decode()
    assert hash_password("secret123") == expected


def test_verify_legacy_hash():
    stored = hash_password("secret123")
    assert verify_password("secret123", stored) is True
    assert verify_password("wrong", stored) is False


def test_hash_rejects_empty_password():
    with pytest.raises(ValueError):
        hash_password("")
    with pytest.raises(ValueError):
        make_password("")


def test_verify_empty_input_is_false():
    assert verify_password("", hash_password("secret123")) is False
    assert verify_password("secret123", "") is False
    assert verify_password(None, None) is False


def test_salted_hashes_differ_but_verify():
    first, second = make_password("secret123"), make_password("secret123")
    assert first != second
    assert verify_password("secret123", first)
    assert not verify_password("wrong", second)


def test_needs_upgrade():
    assert needs_upgrade(hash_password("secret123"))
    assert not needs_upgrade(make_password("secret123"))
    assert not needs_upgrade("")


def test_verify_never_raises_on_garbage():
    assert verify_password("secret123", "scrypt:broken") is False
    assert verify_password("secret123", "not-a-hash") is False
