from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow():
    # Naive UTC so SQLite round-trips compare equal.
    return datetime.now(timezone.utc).replace(tzinfo=None)
