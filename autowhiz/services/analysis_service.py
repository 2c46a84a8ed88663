"""
Analysis lifecycle: create under quota, read, list, update and delete.

Quota is enforced with a single conditional UPDATE on the profile counter, so two
concurrent requests can never both take the last remaining slot. The counter
increment, the analysis row and its activity log entry commit together.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload

from autowhiz.core.errors import NotFoundError, QuotaExceededError, ValidationError
from autowhiz.db.base import utcnow
from autowhiz.dependencies.auth import RequestContext
from autowhiz.models.analysis import ANALYSIS_STATUSES, Analysis
from autowhiz.models.profile import Profile
from autowhiz.schemas.analysis import AnalysisCreate, AnalysisUpdate, analysis_to_dict
from autowhiz.schemas.common import pagination
from autowhiz.schemas.metadata import AnalysisOptions
from autowhiz.services import activity_log
from autowhiz.services.analysis_queue import enqueue_analysis
from autowhiz.services.entitlements import get_active_subscription, resolve_quota
from autowhiz.utils.vin import VIN_LENGTH

logger = logging.getLogger(__name__)

# pending -> processing -> completed | failed
ALLOWED_TRANSITIONS = {
    "pending": {"processing", "failed"},
    "processing": {"completed", "failed"},
    "completed": set(),
    "failed": set(),
}


def _owned(db: Session, ctx: RequestContext, analysis_id: str) -> Analysis:
    analysis = (
        db.query(Analysis)
        .filter(Analysis.id == analysis_id, Analysis.user_id == ctx.user_id)
        .first()
    )
    if not analysis:
        raise NotFoundError("Analysis not found")
    return analysis


def _reserve_slot(db: Session, user_id: str, limit: int) -> None:
    """Take one slot of the monthly quota, or raise if none are left."""
    result = db.execute(
        update(Profile)
        .where(Profile.id == user_id, Profile.analyses_this_month < limit)
        .values(
            analyses_this_month=Profile.analyses_this_month + 1,
            total_analyses=Profile.total_analyses + 1,
            last_analysis_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise QuotaExceededError()


def create_analysis(db: Session, ctx: RequestContext, payload: AnalysisCreate) -> Dict[str, Any]:
    if not payload.vin or len(payload.vin) != VIN_LENGTH:
        raise ValidationError("Valid 17-character VIN required")

    profile = db.query(Profile).filter(Profile.id == ctx.user_id).first()
    if not profile:
        raise NotFoundError("Profile not found")

    limit = resolve_quota(profile, get_active_subscription(db, ctx.user_id))
    options = payload.options or AnalysisOptions()

    try:
        _reserve_slot(db, ctx.user_id, limit)
        analysis = Analysis(
            user_id=ctx.user_id,
            vin=payload.vin.upper(),
            mileage=payload.mileage,
            asking_price=payload.asking_price,
            analysis_options=options.model_dump(),
            status="pending",
            progress=0,
        )
        db.add(analysis)
        db.flush()
        activity_log.record(
            db,
            ctx.user_id,
            "analysis_created",
            resource_type="analysis",
            resource_id=analysis.id,
            details={"vin": analysis.vin, "options": analysis.analysis_options},
        )
        db.commit()
    except QuotaExceededError:
        db.rollback()
        logger.info("Quota reached for user %s (limit %s)", ctx.user_id, limit)
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(analysis)
    enqueue_analysis(analysis.id)
    return analysis_to_dict(analysis)


def get_analysis(db: Session, ctx: RequestContext, analysis_id: str) -> Dict[str, Any]:
    analysis = (
        db.query(Analysis)
        .options(
            selectinload(Analysis.vehicle_history),
            selectinload(Analysis.visual_analysis),
            selectinload(Analysis.audio_analysis),
            selectinload(Analysis.market_value),
        )
        .filter(Analysis.id == analysis_id, Analysis.user_id == ctx.user_id)
        .first()
    )
    if not analysis:
        raise NotFoundError("Analysis not found")
    return analysis_to_dict(analysis, include_details=True)


def list_analyses(
    db: Session,
    ctx: RequestContext,
    status: Optional[str] = None,
    limit: int = 10,
    offset: int = 0,
) -> Dict[str, Any]:
    query = db.query(Analysis).filter(Analysis.user_id == ctx.user_id)
    if status:
        query = query.filter(Analysis.status == status)

    total = query.count()
    rows = query.order_by(Analysis.created_at.desc()).offset(offset).limit(limit).all()
    return {
        "data": [analysis_to_dict(row) for row in rows],
        "pagination": pagination(total, limit, offset),
    }


def update_analysis(db: Session, ctx: RequestContext, analysis_id: str, changes: AnalysisUpdate) -> Dict[str, Any]:
    analysis = _owned(db, ctx, analysis_id)
    fields = changes.model_dump(exclude_unset=True)
    for key, value in fields.items():
        setattr(analysis, key, value)
    db.commit()
    db.refresh(analysis)
    return analysis_to_dict(analysis)


def delete_analysis(db: Session, ctx: RequestContext, analysis_id: str) -> None:
    """Hard delete; detail rows go with it."""
    analysis = _owned(db, ctx, analysis_id)
    vin = analysis.vin
    db.delete(analysis)
    activity_log.record(
        db,
        ctx.user_id,
        "analysis_deleted",
        resource_type="analysis",
        resource_id=analysis_id,
        details={"vin": vin},
    )
    db.commit()


def set_status(
    db: Session,
    analysis_id: str,
    status: str,
    progress: Optional[int] = None,
    error_message: Optional[str] = None,
) -> Analysis:
    """Move an analysis through its state machine. For internal callers only."""
    if status not in ANALYSIS_STATUSES:
        raise ValidationError(f"Unknown analysis status: {status}")

    analysis = db.query(Analysis).filter(Analysis.id == analysis_id).first()
    if not analysis:
        raise NotFoundError("Analysis not found")
    if status != analysis.status and status not in ALLOWED_TRANSITIONS[analysis.status]:
        raise ValidationError(f"Cannot move analysis from {analysis.status} to {status}")

    analysis.status = status
    if progress is not None:
        analysis.progress = progress
    elif status == "completed":
        analysis.progress = 100
    if error_message is not None:
        analysis.error_message = error_message
    db.commit()
    db.refresh(analysis)
    return analysis
