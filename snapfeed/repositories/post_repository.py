from snapfeed.db import db
from snapfeed.models.post_model import Post


def _newest_first(query):
    # id breaks ties between posts created in the same instant.
    return query.order_by(Post.created_at.desc(), Post.id.desc())


def create_post(user_id, content, image_url=None, image_storage_id=None):
    post = Post(
        user_id=user_id,
        content=content,
        image_url=image_url,
        image_storage_id=image_storage_id,
        likes=0,
        comments=0,
    )
    db.session.add(post)
    db.session.flush()
    return post


def get_by_id(post_id: int):
    return db.session.get(Post, post_id)


def list_feed(offset=None, limit=None):
    query = _newest_first(Post.query)
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def count_posts() -> int:
    return Post.query.count()


def list_by_user(user_id: int):
    return _newest_first(Post.query.filter(Post.user_id == user_id)).all()


def increment_likes(post_id: int) -> bool:
    # Single UPDATE so concurrent likers never overwrite each other.
    updated = (
        Post.query
        .filter(Post.id == post_id)
        .update({Post.likes: Post.likes + 1}, synchronize_session=False)
    )
    return updated > 0


def get_likes(post_id: int):
    return (
        db.session.query(Post.likes)
        .filter(Post.id == post_id)
        .scalar()
    )
