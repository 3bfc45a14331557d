from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from snapfeed.errors import SnapFeedError
from snapfeed.schemas.post_schema import EnrichedPostResponseSchema, PostCreateSchema
from snapfeed.services import post_service, session_service
from snapfeed.socket_events import broadcast_feed_snapshot


post_bp = Blueprint("posts", __name__)


@post_bp.route("/posts", methods=["POST"])
@jwt_required()
def create_post():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON body"}), 400

    payload = PostCreateSchema().load(data)
    try:
        post_id = post_service.create_post(
            session_service.current_user_id(),
            payload["content"],
            image_url=payload["image_url"],
            image_storage_id=payload["image_storage_id"],
        )
    except SnapFeedError as e:
        return jsonify({"error": str(e)}), e.status_code

    broadcast_feed_snapshot()
    return jsonify({"message": "Post created successfully", "post_id": post_id}), 201


@post_bp.route("/posts", methods=["GET"])
def list_posts():
    schema = EnrichedPostResponseSchema(many=True)
    page = request.args.get("page", type=int)
    limit = request.args.get("limit", type=int)

    if page is None and limit is None:
        return jsonify({"posts": schema.dump(post_service.get_feed())}), 200

    data = post_service.get_feed_page(page or 1, limit or 10)
    data["posts"] = schema.dump(data["posts"])
    return jsonify(data), 200


@post_bp.route("/posts/<int:post_id>", methods=["GET"])
def get_post(post_id):
    try:
        post = post_service.get_post(post_id)
    except SnapFeedError as e:
        return jsonify({"error": str(e)}), e.status_code
    return jsonify(EnrichedPostResponseSchema().dump(post)), 200


@post_bp.route("/posts/<int:post_id>/like", methods=["POST"])
@jwt_required()
def like_post(post_id):
    try:
        result = post_service.like(post_id)
    except SnapFeedError as e:
        return jsonify({"error": str(e)}), e.status_code

    broadcast_feed_snapshot()
    return jsonify(result), 200
