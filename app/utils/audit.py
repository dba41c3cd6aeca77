"""
Audit trail for staff actions on clinical, inventory and finance records.

Entries are written after the business change has been committed, in their
own commit. A failed audit write is logged and discarded; the committed
change stands.
"""
import json
import logging
from typing import Any, Optional

from flask_jwt_extended import get_jwt_identity

from app.extensions import db
from app.models import AuditLog

logger = logging.getLogger(__name__)


def _acting_user_id() -> Optional[int]:
    """Staff member behind the current request, if it carried a token."""
    try:
        identity = get_jwt_identity()
    except RuntimeError:
        # Outside a request or a @jwt_required() view
        return None
    try:
        return int(identity)
    except (TypeError, ValueError):
        return None


def log_audit(
    entity_type: str,
    action: str,
    entity_id: Optional[Any] = None,
    details: Optional[dict] = None,
    user_id: Optional[int] = None,
) -> Optional[AuditLog]:
    """
    Record who did what to which record.

    `user_id` defaults to the authenticated staff member. Decimal amounts and
    dates in `details` are stored as strings.
    """
    entry = AuditLog(
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        action=action,
        user_id=user_id if user_id is not None else _acting_user_id(),
        details=json.dumps(details, default=str, ensure_ascii=False) if details else None,
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except Exception as e:
        logger.warning("Audit entry %s/%s for %s not written: %s", entity_type, action, entity_id, e)
        db.session.rollback()
        return None
    return entry
