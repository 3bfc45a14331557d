from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt, get_jwt_identity, jwt_required

from snapfeed.errors import SnapFeedError
from snapfeed.schemas.auth_schema import LoginSchema, RegisterSchema
from snapfeed.services import account_service, session_service


auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/register", methods=["POST"])
def register():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON body"}), 400

    payload = RegisterSchema().load(data)
    try:
        user = account_service.register(
            payload["name"],
            payload["email"],
            payload["password"],
        )
    except SnapFeedError as e:
        return jsonify({"error": str(e)}), e.status_code

    return jsonify(user), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON body"}), 400

    payload = LoginSchema().load(data)
    try:
        user = account_service.authenticate(payload["email"], payload["password"])
    except SnapFeedError as e:
        return jsonify({"error": str(e)}), e.status_code

    tokens = session_service.start_session(user["id"])
    return jsonify({"user": user, **tokens}), 200


@auth_bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
def refresh_token():
    tokens = session_service.refresh_access_token(
        get_jwt_identity(),
        get_jwt().get(session_service.SESSION_CLAIM),
    )
    return jsonify(tokens), 200


@auth_bp.route("/logout", methods=["POST"])
@jwt_required(verify_type=False)
def logout():
    session_service.revoke_token(get_jwt())
    return jsonify({"message": "Logged out"}), 200
