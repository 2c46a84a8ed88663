from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from autowhiz.core.errors import ValidationError
from autowhiz.db.session import get_db
from autowhiz.dependencies.auth import RequestContext, get_request_context
from autowhiz.schemas.analysis import AnalysisCreate, AnalysisUpdate
from autowhiz.services import analysis_service

router = APIRouter()


@router.post("", status_code=201)
def create_analysis(
    payload: AnalysisCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Start a new analysis. Counts against the monthly quota."""
    return {"data": analysis_service.create_analysis(db, ctx, payload)}


@router.get("")
def list_analyses(
    id: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Paged list of the caller's analyses, or a single one with ?id=."""
    if id:
        return {"data": analysis_service.get_analysis(db, ctx, id)}
    return analysis_service.list_analyses(db, ctx, status=status, limit=limit, offset=offset)


@router.get("/{analysis_id}")
def get_analysis(
    analysis_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return {"data": analysis_service.get_analysis(db, ctx, analysis_id)}


@router.patch("/{analysis_id}")
def update_analysis(
    analysis_id: str,
    changes: AnalysisUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return {"data": analysis_service.update_analysis(db, ctx, analysis_id, changes)}


@router.delete("")
def delete_analysis_by_query(
    id: Optional[str] = None,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    if not id:
        raise ValidationError("Analysis ID required")
    analysis_service.delete_analysis(db, ctx, id)
    return {"success": True}


@router.delete("/{analysis_id}")
def delete_analysis(
    analysis_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    analysis_service.delete_analysis(db, ctx, analysis_id)
    return {"success": True}
