"""
Saved vehicles: the user's watch list of VINs, one row per (user, VIN).
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from autowhiz.core.errors import ConflictError, NotFoundError, ValidationError
from autowhiz.dependencies.auth import RequestContext
from autowhiz.models.saved_vehicle import SavedVehicle
from autowhiz.schemas.common import pagination, row_to_dict
from autowhiz.schemas.vehicle import SavedVehicleCreate, SavedVehicleUpdate
from autowhiz.services import activity_log
from autowhiz.utils.vin import validate_vin

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "created_at": SavedVehicle.created_at,
    "updated_at": SavedVehicle.updated_at,
    "year": SavedVehicle.year,
    "make": SavedVehicle.make,
    "listing_price": SavedVehicle.listing_price,
}


def list_vehicles(
    db: Session,
    ctx: RequestContext,
    limit: int = 20,
    offset: int = 0,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> Dict[str, Any]:
    column = SORT_COLUMNS.get(sort_by, SavedVehicle.created_at)
    order = column.asc() if sort_order == "asc" else column.desc()

    query = db.query(SavedVehicle).filter(SavedVehicle.user_id == ctx.user_id)
    total = query.count()
    rows = query.order_by(order).offset(offset).limit(limit).all()
    return {
        "data": [row_to_dict(row) for row in rows],
        "pagination": pagination(total, limit, offset),
    }


def save_vehicle(db: Session, ctx: RequestContext, payload: SavedVehicleCreate) -> Dict[str, Any]:
    vin = validate_vin(payload.vin)

    existing = (
        db.query(SavedVehicle)
        .filter(SavedVehicle.user_id == ctx.user_id, SavedVehicle.vin == vin)
        .first()
    )
    if existing:
        raise ConflictError("Vehicle already saved")

    vehicle = SavedVehicle(user_id=ctx.user_id, **payload.model_dump(exclude={"vin"}))
    vehicle.vin = vin
    db.add(vehicle)
    try:
        db.flush()
    except IntegrityError:
        # Saved concurrently by another request
        db.rollback()
        raise ConflictError("Vehicle already saved")

    activity_log.record(
        db,
        ctx.user_id,
        "vehicle_saved",
        resource_type="vehicle",
        resource_id=vehicle.id,
        details={"vin": vin},
    )
    db.commit()
    db.refresh(vehicle)
    return row_to_dict(vehicle)


def update_vehicle(db: Session, ctx: RequestContext, changes: SavedVehicleUpdate) -> Dict[str, Any]:
    if not changes.id:
        raise ValidationError("Vehicle ID required")

    vehicle = (
        db.query(SavedVehicle)
        .filter(SavedVehicle.id == changes.id, SavedVehicle.user_id == ctx.user_id)
        .first()
    )
    if not vehicle:
        raise NotFoundError("Vehicle not found")

    for key, value in changes.model_dump(exclude_unset=True, exclude={"id"}).items():
        setattr(vehicle, key, value)
    db.commit()
    db.refresh(vehicle)
    return row_to_dict(vehicle)


def delete_vehicle(db: Session, ctx: RequestContext, vehicle_id: Optional[str] = None, vin: Optional[str] = None) -> None:
    query = db.query(SavedVehicle).filter(SavedVehicle.user_id == ctx.user_id)
    if vehicle_id:
        query = query.filter(SavedVehicle.id == vehicle_id)
    elif vin:
        query = query.filter(SavedVehicle.vin == validate_vin(vin))
    else:
        raise ValidationError("Vehicle ID or VIN required")

    if not query.delete(synchronize_session=False):
        db.rollback()
        raise NotFoundError("Vehicle not found")
    db.commit()
