import logging
import time
import uuid
from datetime import timedelta

from flask import current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    get_jwt_identity,
)

from snapfeed.extensions.redis_client import get_redis_client


logger = logging.getLogger(__name__)

REVOKED_KEY_PREFIX = "revoked:"
REVOKED_SESSION_KEY_PREFIX = "revoked-session:"
SESSION_CLAIM = "sid"


def _revoked_key(jti: str) -> str:
    return f"{REVOKED_KEY_PREFIX}{jti}"


def _revoked_session_key(session_id: str) -> str:
    return f"{REVOKED_SESSION_KEY_PREFIX}{session_id}"


def _session_ttl_seconds():
    expires = current_app.config.get("JWT_REFRESH_TOKEN_EXPIRES")
    if isinstance(expires, timedelta):
        return max(int(expires.total_seconds()), 1)
    return None


def start_session(user_id):
    """Issue the access/refresh pair for one login, tied by a shared session id."""
    identity = str(user_id)
    claims = {SESSION_CLAIM: uuid.uuid4().hex}
    return {
        "access_token": create_access_token(identity=identity, additional_claims=claims),
        "refresh_token": create_refresh_token(identity=identity, additional_claims=claims),
    }


def refresh_access_token(identity, session_id=None):
    claims = {SESSION_CLAIM: session_id} if session_id else {}
    return {"access_token": create_access_token(identity=identity, additional_claims=claims)}


def current_user_id() -> int:
    return int(get_jwt_identity())


def revoke_token(jwt_payload):
    """Revoke the presented token and every token of its login session."""
    redis_client = get_redis_client()

    jti = jwt_payload["jti"]
    expires_in = int(jwt_payload.get("exp", time.time()) - time.time())
    redis_client.set(_revoked_key(jti), "1", ex=max(expires_in, 1))

    session_id = jwt_payload.get(SESSION_CLAIM)
    if session_id:
        redis_client.set(_revoked_session_key(session_id), "1", ex=_session_ttl_seconds())

    logger.info("Revoked session for user %s", jwt_payload.get("sub"))


def is_token_revoked(jwt_payload) -> bool:
    redis_client = get_redis_client()
    if redis_client.get(_revoked_key(jwt_payload["jti"])) is not None:
        return True

    session_id = jwt_payload.get(SESSION_CLAIM)
    return bool(session_id) and redis_client.get(_revoked_session_key(session_id)) is not None
