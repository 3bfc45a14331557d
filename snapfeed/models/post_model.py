from snapfeed.db import db, utcnow


class Post(db.Model):
    __tablename__ = "posts"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    content = db.Column(db.Text, nullable=False, default="")
    image_url = db.Column(db.String(1024), nullable=True)
    image_storage_id = db.Column(db.String(64), nullable=True)
    likes = db.Column(db.Integer, nullable=False, default=0)
    # Never incremented; there is no comment entity yet.
    comments = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("likes >= 0", name="ck_posts_likes_non_negative"),
        db.Index("ix_posts_user_id", "user_id"),
        db.Index("ix_posts_created_at", "created_at"),
        db.Index("ix_posts_user_id_created_at", "user_id", "created_at"),
    )
