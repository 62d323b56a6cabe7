import base64
import hashlib
import hmac

from werkzeug.security import check_password_hash, generate_password_hash

LEGACY_SALT = "MobileECommerceSalt"
# Prefixes produced by werkzeug's generate_password_hash
_WERKZEUG_PREFIXES = ("scrypt:", "pbkdf2:")


def hash_password(password):
    """
    Deterministic legacy hash: base64(SHA-256(password + shared salt)).
    Only used to read accounts created before salted hashes were introduced.
    """
    if not password:
        raise ValueError("password must not be empty")
    digest = hashlib.sha256((password + LEGACY_SALT).encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def make_password(password):
    """Per-record salted hash used for every newly stored password."""
    if not password:
        raise ValueError("password must not be empty")
    return generate_password_hash(password, method="scrypt")


def needs_upgrade(stored_hash):
    return bool(stored_hash) and not stored_hash.startswith(_WERKZEUG_PREFIXES)


def verify_password(password, stored_hash):
    if not password or not stored_hash:
        return False
    if stored_hash.startswith(_WERKZEUG_PREFIXES):
        try:
            return check_password_hash(stored_hash, password)
        except ValueError:
            return False
    return hmac.compare_digest(hash_password(password).encode("utf-8"), stored_hash.encode("utf-8"))
