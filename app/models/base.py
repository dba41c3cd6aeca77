from datetime import datetime
from app.extensions import db


class TimestampMixin:
    """Adds created_at / updated_at columns."""
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


def iso(value):
    """Serialize a date/datetime (or None) for API responses."""
    return value.isoformat() if value else None


def money(value):
    """Serialize a Numeric column as float for JSON."""
    return float(value) if value is not None else None
