"""
Append-only audit trail of user-visible actions.

`record` only adds the row to the session; the caller owns the transaction so the
log entry commits (or rolls back) together with the change it describes.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from autowhiz.models.activity_log import ActivityLog
from autowhiz.schemas.common import row_to_dict

logger = logging.getLogger(__name__)


def record(
    db: Session,
    user_id: str,
    action: str,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> ActivityLog:
    entry = ActivityLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details or {},
    )
    db.add(entry)
    return entry


def recent_activity(db: Session, user_id: str, limit: int = 10) -> List[Dict[str, Any]]:
    rows = (
        db.query(ActivityLog)
        .filter(ActivityLog.user_id == user_id)
        .order_by(ActivityLog.created_at.desc())
        .limit(limit)
        .all()
    )
    return [row_to_dict(row) for row in rows]
