"""
User-scoped notification storage.

Every query is filtered by the caller's user id, so a notification belonging to
someone else behaves exactly like one that does not exist.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from autowhiz.core.errors import NotFoundError, ValidationError
from autowhiz.db.base import utcnow
from autowhiz.dependencies.auth import RequestContext
from autowhiz.models.notification import Notification
from autowhiz.schemas.common import pagination, row_to_dict

logger = logging.getLogger(__name__)

PRIORITIES = ("low", "normal", "high")


def _owned(db: Session, ctx: RequestContext):
    return db.query(Notification).filter(Notification.user_id == ctx.user_id)


def list_notifications(
    db: Session,
    ctx: RequestContext,
    unread_only: bool = False,
    limit: int = 20,
    offset: int = 0,
) -> Dict[str, Any]:
    query = _owned(db, ctx)
    if unread_only:
        query = query.filter(Notification.read.is_(False))

    total = query.count()
    rows = (
        query.order_by(Notification.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    unread_count = _owned(db, ctx).filter(Notification.read.is_(False)).count()

    return {
        "data": [row_to_dict(row) for row in rows],
        "unreadCount": unread_count,
        "pagination": pagination(total, limit, offset),
    }


def mark_read(db: Session, ctx: RequestContext, ids: List[str]) -> int:
    """Mark the given notifications read. Ids owned by other users are ignored."""
    if not ids:
        raise ValidationError("Notification ID(s) required")
    updated = (
        _owned(db, ctx)
        .filter(Notification.id.in_(ids))
        .update({"read": True, "read_at": utcnow()}, synchronize_session=False)
    )
    db.commit()
    return updated


def mark_all_read(db: Session, ctx: RequestContext) -> int:
    updated = (
        _owned(db, ctx)
        .filter(Notification.read.is_(False))
        .update({"read": True, "read_at": utcnow()}, synchronize_session=False)
    )
    db.commit()
    return updated


def delete_one(db: Session, ctx: RequestContext, notification_id: str) -> None:
    deleted = (
        _owned(db, ctx)
        .filter(Notification.id == notification_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        db.rollback()
        raise NotFoundError("Notification not found")
    db.commit()


def delete_all(db: Session, ctx: RequestContext) -> int:
    deleted = _owned(db, ctx).delete(synchronize_session=False)
    db.commit()
    return deleted


def delete_read(db: Session, ctx: RequestContext) -> int:
    deleted = _owned(db, ctx).filter(Notification.read.is_(True)).delete(synchronize_session=False)
    db.commit()
    return deleted


def create(
    db: Session,
    user_id: str,
    type: str,
    title: str,
    message: Optional[str] = None,
    priority: str = "normal",
    action_url: Optional[str] = None,
    action_text: Optional[str] = None,
    analysis_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Notification:
    """Queue a notification on the session for producers (webhooks, worker callbacks).
    The caller commits."""
    if priority not in PRIORITIES:
        priority = "normal"
    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        priority=priority,
        action_url=action_url,
        action_text=action_text,
        analysis_id=analysis_id,
        extra_metadata=metadata,
    )
    db.add(notification)
    return notification
