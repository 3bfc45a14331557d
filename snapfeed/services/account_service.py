import logging

from flask import current_app
from sqlalchemy.exc import IntegrityError

from snapfeed.db import db
from snapfeed.errors import (
    ConflictError,
    InvalidArgumentError,
    InvalidCredentialsError,
    NotFoundError,
)
from snapfeed.repositories import user_repository
from snapfeed.security.credentials import hash_password, verify_password
from snapfeed.services import media_service


logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "User with this email already exists"


def _require_non_empty_string(value):
    return isinstance(value, str) and value.strip()


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _public_user(user):
    payload = user.to_public_dict()
    payload["avatar_url"] = media_service.resolve_references([user.avatar]).get(
        user.avatar
    )
    return payload


def register(name, email, password):
    if (
        not _require_non_empty_string(name)
        or not _require_non_empty_string(email)
        or not _require_non_empty_string(password)
    ):
        raise InvalidArgumentError("Missing fields")

    name = name.strip()
    email = normalize_email(email)
    if "@" not in email:
        raise InvalidArgumentError("Invalid email")

    min_length = current_app.config.get("MIN_PASSWORD_LENGTH", 6)
    if len(password) < min_length:
        raise InvalidArgumentError(
            f"Password must be at least {min_length} characters"
        )

    if user_repository.get_by_email(email):
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE)

    try:
        user = user_repository.create_user(
            name=name,
            email=email,
            password_hash=hash_password(password),
        )
        db.session.commit()
    except IntegrityError as e:
        # A concurrent sign-up with the same email won the unique index.
        db.session.rollback()
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from e

    logger.info("Registered user %s", user.id)
    return {"id": user.id, "name": user.name, "email": user.email}


def authenticate(email, password):
    if not _require_non_empty_string(email) or not isinstance(password, str):
        raise InvalidCredentialsError()

    user = user_repository.get_by_email(normalize_email(email))
    if not user or not verify_password(password, user.password_hash):
        logger.info("Rejected login attempt")
        raise InvalidCredentialsError()

    logger.info("User %s authenticated", user.id)
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "avatar": user.avatar,
        "avatar_url": media_service.resolve_references([user.avatar]).get(user.avatar),
    }


def get_user(user_id):
    user = user_repository.get_by_id(user_id)
    if not user:
        return None
    return _public_user(user)


def update_profile(user_id, name=None, avatar=None):
    user = user_repository.get_by_id(user_id)
    if not user:
        raise NotFoundError("User not found")

    if name is not None and not _require_non_empty_string(name):
        raise InvalidArgumentError("Name must be a non-empty string")

    if avatar is not None:
        if not isinstance(avatar, str):
            raise InvalidArgumentError("Avatar must be a string")
        # An empty string clears the avatar.
        avatar = avatar.strip() or None
        if avatar and not media_service.is_known_reference(avatar):
            raise InvalidArgumentError("Unknown avatar storage id")
        user.avatar = avatar

    if name is not None:
        user.name = name.strip()

    db.session.commit()
    return {"success": True}


def upload_avatar(user_id, file_storage):
    user = user_repository.get_by_id(user_id)
    if not user:
        raise NotFoundError("User not found")

    storage_id = media_service.upload_file(file_storage)
    user.avatar = storage_id
    db.session.commit()
    logger.info("User %s uploaded avatar %s", user_id, storage_id)
    return _public_user(user)
