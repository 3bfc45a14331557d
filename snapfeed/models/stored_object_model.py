from snapfeed.db import db, utcnow


class StoredObject(db.Model):
    """An upload handle and, once bytes arrive, the object it points at."""

    __tablename__ = "stored_objects"

    id = db.Column(db.Integer, primary_key=True)
    storage_id = db.Column(db.String(64), nullable=False)
    object_name = db.Column(db.String(255), nullable=False)
    mime_type = db.Column(db.String(50), nullable=True)
    size = db.Column(db.BigInteger, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    claimed_at = db.Column(db.DateTime, nullable=True)
    uploaded_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.Index("ix_stored_objects_storage_id", "storage_id", unique=True),
    )

    @property
    def is_uploaded(self):
        return self.uploaded_at is not None
