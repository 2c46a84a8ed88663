from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from autowhiz.core.errors import ValidationError
from autowhiz.db.session import get_db
from autowhiz.dependencies.auth import RequestContext, get_request_context
from autowhiz.schemas.notification import NotificationMarkRead
from autowhiz.services import notification_store

router = APIRouter()


@router.get("")
def list_notifications(
    unread: bool = False,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return notification_store.list_notifications(db, ctx, unread_only=unread, limit=limit, offset=offset)


@router.patch("")
def mark_notifications_read(
    payload: NotificationMarkRead,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    if payload.mark_all:
        updated = notification_store.mark_all_read(db, ctx)
    else:
        ids = payload.ids or ([payload.id] if payload.id else [])
        updated = notification_store.mark_read(db, ctx, ids)
    return {"success": True, "updated": updated}


@router.delete("")
def delete_notifications(
    id: Optional[str] = None,
    all: bool = False,
    read: bool = False,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Delete one notification (?id=), all of them (?all=true) or the read ones (?read=true)."""
    if all:
        deleted = notification_store.delete_all(db, ctx)
    elif read:
        deleted = notification_store.delete_read(db, ctx)
    elif id:
        notification_store.delete_one(db, ctx, id)
        deleted = 1
    else:
        raise ValidationError("Notification ID required")
    return {"success": True, "deleted": deleted}
