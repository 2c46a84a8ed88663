"""
Public NHTSA safety data: recalls, crash-test ratings and owner complaints.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from autowhiz.services.nhtsa_client import NhtsaClient, get_nhtsa_client

router = APIRouter()


@router.get("/recalls")
def get_recalls(
    vin: Optional[str] = None,
    make: Optional[str] = None,
    model: Optional[str] = None,
    year: Optional[int] = None,
    nhtsa: NhtsaClient = Depends(get_nhtsa_client),
):
    return {"data": nhtsa.get_recalls(vin=vin, make=make, model=model, year=year)}


@router.get("/safety-ratings")
def get_safety_ratings(
    year: Optional[int] = None,
    make: Optional[str] = None,
    model: Optional[str] = None,
    nhtsa: NhtsaClient = Depends(get_nhtsa_client),
):
    return {"data": nhtsa.get_safety_ratings(year, make, model)}


@router.get("/complaints")
def get_complaints(
    year: Optional[int] = None,
    make: Optional[str] = None,
    model: Optional[str] = None,
    nhtsa: NhtsaClient = Depends(get_nhtsa_client),
):
    return {"data": nhtsa.get_complaints(make, model, year)}
