from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from autowhiz.db.session import get_db
from autowhiz.dependencies.auth import RequestContext, get_request_context
from autowhiz.schemas.profile import AccountDeleteRequest, ProfileUpdate
from autowhiz.services import profile_service

router = APIRouter()


@router.get("")
def get_user(
    include: Optional[str] = None,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Current user's profile. ?include=subscription,usage,activity adds those sections."""
    wanted = [part.strip() for part in include.split(",")] if include else []
    return {"data": profile_service.get_profile(db, ctx.user_id, wanted)}


@router.patch("")
def update_user(
    changes: ProfileUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return {"data": profile_service.update_profile(db, ctx.user_id, changes)}


@router.delete("")
def delete_user(
    payload: AccountDeleteRequest,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    profile_service.delete_account(db, ctx.user_id, payload.confirmation)
    return {"success": True, "message": "Account deleted"}
