"""Password credentials.

The default ``sha256`` scheme is an unsalted digest: equal passwords give equal
credentials. ``werkzeug`` produces salted hashes instead. ``verify_password``
accepts credentials from either scheme, so the setting can change without
locking out existing accounts.
"""
import hashlib
import hmac

from flask import current_app, has_app_context
from werkzeug.security import check_password_hash, generate_password_hash


SHA256_SCHEME = "sha256"
WERKZEUG_SCHEME = "werkzeug"
SUPPORTED_SCHEMES = {SHA256_SCHEME, WERKZEUG_SCHEME}

_SHA256_HEX_LENGTH = 64


def _configured_scheme() -> str:
    if not has_app_context():
        return SHA256_SCHEME
    scheme = current_app.config.get("PASSWORD_HASH_SCHEME", SHA256_SCHEME)
    if scheme not in SUPPORTED_SCHEMES:
        raise RuntimeError(f"Unsupported password hash scheme: {scheme}")
    return scheme


def _sha256_hex(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def _is_sha256_credential(credential: str) -> bool:
    if len(credential) != _SHA256_HEX_LENGTH:
        return False
    return all(ch in "0123456789abcdef" for ch in credential)


def hash_password(password: str, scheme: str | None = None) -> str:
    scheme = scheme or _configured_scheme()
    if scheme == WERKZEUG_SCHEME:
        return generate_password_hash(password)
    return _sha256_hex(password)


def verify_password(password: str, credential: str) -> bool:
    if not isinstance(password, str) or not isinstance(credential, str):
        return False

    if _is_sha256_credential(credential):
        return hmac.compare_digest(_sha256_hex(password), credential)
    return check_password_hash(credential, password)
