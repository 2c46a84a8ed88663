from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from autowhiz.db.session import get_db
from autowhiz.dependencies.auth import RequestContext, get_request_context
from autowhiz.schemas.vehicle import SavedVehicleCreate, SavedVehicleUpdate
from autowhiz.services import vehicle_service

router = APIRouter()


@router.get("")
def list_vehicles(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    sortBy: str = "created_at",
    sortOrder: str = "desc",
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return vehicle_service.list_vehicles(db, ctx, limit=limit, offset=offset, sort_by=sortBy, sort_order=sortOrder)


@router.post("", status_code=status.HTTP_201_CREATED)
def save_vehicle(
    payload: SavedVehicleCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return {"data": vehicle_service.save_vehicle(db, ctx, payload)}


@router.patch("")
def update_vehicle(
    changes: SavedVehicleUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return {"data": vehicle_service.update_vehicle(db, ctx, changes)}


@router.delete("")
def delete_vehicle(
    id: Optional[str] = None,
    vin: Optional[str] = None,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    vehicle_service.delete_vehicle(db, ctx, vehicle_id=id, vin=vin)
    return {"success": True}
