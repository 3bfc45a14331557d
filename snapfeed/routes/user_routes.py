from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from snapfeed.errors import SnapFeedError
from snapfeed.schemas.post_schema import PostResponseSchema
from snapfeed.schemas.user_schema import ProfileUpdateSchema, UserResponseSchema
from snapfeed.services import account_service, post_service, session_service
from snapfeed.socket_events import broadcast_feed_snapshot


user_bp = Blueprint("users", __name__)


@user_bp.route("/users/me", methods=["GET"])
@jwt_required()
def get_me():
    user = account_service.get_user(session_service.current_user_id())
    if user is None:
        return jsonify({"error": "User not found"}), 404
    return jsonify(UserResponseSchema().dump(user)), 200


@user_bp.route("/users/me", methods=["PATCH"])
@jwt_required()
def update_me():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON body"}), 400

    payload = ProfileUpdateSchema().load(data)
    try:
        result = account_service.update_profile(
            session_service.current_user_id(),
            name=payload["name"],
            avatar=payload["avatar"],
        )
    except SnapFeedError as e:
        return jsonify({"error": str(e)}), e.status_code

    broadcast_feed_snapshot()
    return jsonify(result), 200


@user_bp.route("/users/me/avatar", methods=["PUT"])
@jwt_required()
def upload_my_avatar():
    avatar = request.files.get("avatar") or request.files.get("file")
    if avatar is None:
        return jsonify({"error": "Image file is required"}), 400

    try:
        user = account_service.upload_avatar(session_service.current_user_id(), avatar)
    except SnapFeedError as e:
        return jsonify({"error": str(e)}), e.status_code

    broadcast_feed_snapshot()
    return jsonify(UserResponseSchema().dump(user)), 200


@user_bp.route("/users/<int:user_id>", methods=["GET"])
def get_user(user_id):
    user = account_service.get_user(user_id)
    if user is None:
        return jsonify({"user": None}), 404
    return jsonify(UserResponseSchema().dump(user)), 200


@user_bp.route("/users/<int:user_id>/posts", methods=["GET"])
def get_user_posts(user_id):
    posts = post_service.get_user_posts(user_id)
    return jsonify({"posts": PostResponseSchema(many=True).dump(posts)}), 200
