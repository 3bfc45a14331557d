from snapfeed.db import db
from snapfeed.models.stored_object_model import StoredObject


def create_handle(storage_id, object_name, expires_at):
    stored = StoredObject(
        storage_id=storage_id,
        object_name=object_name,
        expires_at=expires_at,
    )
    db.session.add(stored)
    return stored


def get_by_storage_id(storage_id: str):
    return StoredObject.query.filter_by(storage_id=storage_id).first()


def get_uploaded_by_storage_ids(storage_ids):
    if not storage_ids:
        return {}
    rows = (
        StoredObject.query
        .filter(StoredObject.storage_id.in_(storage_ids))
        .filter(StoredObject.uploaded_at.isnot(None))
        .all()
    )
    return {row.storage_id: row for row in rows}


def mark_uploaded(stored, mime_type, size, uploaded_at):
    stored.mime_type = mime_type
    stored.size = size
    stored.uploaded_at = uploaded_at
    return stored


def claim_handle(storage_id: str, claimed_at) -> bool:
    # Conditional UPDATE: exactly one writer wins an unclaimed handle.
    updated = (
        StoredObject.query
        .filter(StoredObject.storage_id == storage_id)
        .filter(StoredObject.claimed_at.is_(None))
        .update({StoredObject.claimed_at: claimed_at}, synchronize_session=False)
    )
    return updated == 1


def release_claim(storage_id: str):
    (
        StoredObject.query
        .filter(StoredObject.storage_id == storage_id)
        .filter(StoredObject.uploaded_at.is_(None))
        .update({StoredObject.claimed_at: None}, synchronize_session=False)
    )
