"""Feed subscription over Socket.IO.

Clients connect with an access token and are placed in the ``feed`` room.
They receive a ``feed_snapshot`` on connect and after every change to posts
or profiles. Snapshots are eventually consistent with HTTP reads; clients
that cannot hold a socket open can poll ``GET /api/posts`` instead.
"""
import logging

from flask import request, session
from flask_jwt_extended import decode_token
from flask_socketio import emit, join_room

from snapfeed.extensions.extensions import socketio
from snapfeed.repositories import user_repository
from snapfeed.schemas.post_schema import EnrichedPostResponseSchema
from snapfeed.services import post_service, session_service

logger = logging.getLogger(__name__)

FEED_ROOM = "feed"

_registered = False


def _extract_access_token(auth):
    if isinstance(auth, dict):
        token = auth.get("token") or auth.get("access_token")
        if token:
            return token

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip()

    return request.args.get("token")


def build_feed_snapshot():
    posts = post_service.get_feed()
    return {"posts": EnrichedPostResponseSchema(many=True).dump(posts)}


def has_feed_subscribers() -> bool:
    if socketio.server is None:
        return False
    participants = socketio.server.manager.get_participants("/", FEED_ROOM)
    return next(iter(participants), None) is not None


def broadcast_feed_snapshot():
    # Building a snapshot reads the whole feed; skip it when nobody listens.
    if not has_feed_subscribers():
        return
    socketio.emit("feed_snapshot", build_feed_snapshot(), to=FEED_ROOM)


def register_socket_events():
    global _registered
    if _registered:
        return

    @socketio.on("connect")
    def handle_connect(auth):
        token = _extract_access_token(auth)
        if not token:
            return False

        try:
            claims = decode_token(token)
        except Exception:
            logger.info("Refused socket connection with an invalid token")
            return False

        if claims.get("type") != "access" or session_service.is_token_revoked(claims):
            return False

        user_id = int(claims["sub"])
        if not user_repository.get_by_id(user_id):
            return False

        session["user_id"] = user_id
        join_room(FEED_ROOM)
        emit("feed_snapshot", build_feed_snapshot())

    @socketio.on("refresh_feed")
    def handle_refresh_feed(data=None):
        if not session.get("user_id"):
            emit("feed_error", {"error": "Unauthorized"})
            return
        emit("feed_snapshot", build_feed_snapshot())

    _registered = True
