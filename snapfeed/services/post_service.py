import logging

from flask import current_app

from snapfeed.db import db
from snapfeed.errors import InvalidArgumentError, NotFoundError
from snapfeed.repositories import media_repository, post_repository, user_repository
from snapfeed.services import media_service


logger = logging.getLogger(__name__)

UNKNOWN_USER_NAME = "Unknown User"


def _clean_optional(value, field):
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidArgumentError(f"{field} must be a string")
    return value.strip() or None


def _serialize_post(post, resolved):
    return {
        "id": post.id,
        "user_id": post.user_id,
        "content": post.content,
        "image_url": post.image_url,
        "image_storage_id": post.image_storage_id,
        "image": resolved.get(post.image_storage_id) or post.image_url,
        "likes": post.likes,
        "comments": post.comments,
        "created_at": post.created_at,
    }


def _serialize_posts(posts):
    resolved = media_service.resolve_references(
        post.image_storage_id for post in posts
    )
    return [_serialize_post(post, resolved) for post in posts]


def _enrich_posts(posts):
    """Join each post with its owner's current name and avatar."""
    owners = user_repository.get_many_by_ids({post.user_id for post in posts})
    references = [post.image_storage_id for post in posts]
    references += [owner.avatar for owner in owners.values()]
    resolved = media_service.resolve_references(references)

    enriched = []
    for post in posts:
        payload = _serialize_post(post, resolved)
        owner = owners.get(post.user_id)
        if owner:
            payload["user_name"] = owner.name
            payload["user_avatar"] = resolved.get(owner.avatar)
        else:
            payload["user_name"] = UNKNOWN_USER_NAME
            payload["user_avatar"] = None
        enriched.append(payload)
    return enriched


def create_post(user_id, content, image_url=None, image_storage_id=None):
    if content is None:
        content = ""
    if not isinstance(content, str):
        raise InvalidArgumentError("Content must be a string")

    content = content.strip()
    image_url = _clean_optional(image_url, "Image URL")
    image_storage_id = _clean_optional(image_storage_id, "Image storage id")

    if not content and not image_url and not image_storage_id:
        raise InvalidArgumentError("Post must have content or an image")

    if not user_repository.get_by_id(user_id):
        raise NotFoundError("User not found")

    # Pending handles are accepted: a failed upload leaves a text-only post.
    if image_storage_id and not media_repository.get_by_storage_id(image_storage_id):
        raise InvalidArgumentError("Unknown image storage id")

    post = post_repository.create_post(
        user_id=user_id,
        content=content,
        image_url=image_url,
        image_storage_id=image_storage_id,
    )
    db.session.commit()
    logger.info("User %s created post %s", user_id, post.id)
    return post.id


def get_feed():
    return _enrich_posts(post_repository.list_feed())


def get_feed_page(page: int, limit: int):
    page = max(page, 1)
    max_limit = current_app.config.get("FEED_MAX_PAGE_SIZE", 50)
    limit = min(max(limit, 1), max_limit)

    posts = post_repository.list_feed(offset=(page - 1) * limit, limit=limit)
    return {
        "page": page,
        "limit": limit,
        "total": post_repository.count_posts(),
        "posts": _enrich_posts(posts),
    }


def get_post(post_id):
    post = post_repository.get_by_id(post_id)
    if not post:
        raise NotFoundError("Post not found")
    return _enrich_posts([post])[0]


def get_user_posts(user_id):
    return _serialize_posts(post_repository.list_by_user(user_id))


def like(post_id):
    if not post_repository.increment_likes(post_id):
        db.session.rollback()
        raise NotFoundError("Post not found")

    db.session.commit()
    return {"success": True, "likes": post_repository.get_likes(post_id)}
