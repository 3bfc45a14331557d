from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from snapfeed.errors import SnapFeedError
from snapfeed.schemas.post_schema import UploadHandleSchema
from snapfeed.services import media_service


upload_bp = Blueprint("uploads", __name__)


@upload_bp.route("/uploads", methods=["POST"])
@jwt_required()
def generate_upload_url():
    handle = media_service.generate_upload_url()
    return jsonify(UploadHandleSchema().dump(handle)), 201


@upload_bp.route("/uploads/<storage_id>", methods=["POST", "PUT"])
def upload_bytes(storage_id):
    try:
        result = media_service.store_upload(
            storage_id,
            request.stream,
            request.mimetype,
            length=request.content_length,
        )
    except SnapFeedError as e:
        return jsonify({"error": str(e)}), e.status_code
    return jsonify(result), 200


@upload_bp.route("/uploads/<storage_id>/url", methods=["GET"])
def resolve_url(storage_id):
    try:
        url = media_service.resolve_url(storage_id)
    except SnapFeedError as e:
        return jsonify({"error": str(e)}), e.status_code
    return jsonify({"url": url}), 200
