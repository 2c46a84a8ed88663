"""
Public VIN decoding. No session required.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from autowhiz.schemas.vehicle import BatchVinRequest
from autowhiz.services.nhtsa_client import NhtsaClient, decode_warning, get_nhtsa_client

router = APIRouter()


@router.get("")
def decode_vin(vin: Optional[str] = None, nhtsa: NhtsaClient = Depends(get_nhtsa_client)):
    decoded = nhtsa.decode_vin(vin)
    response = {"data": decoded}
    warning = decode_warning(decoded)
    if warning:
        response["warning"] = warning
    return response


@router.post("")
def batch_decode_vins(payload: BatchVinRequest, nhtsa: NhtsaClient = Depends(get_nhtsa_client)):
    results = nhtsa.batch_decode_vins(payload.vins)
    return {"data": results, "count": len(results)}
