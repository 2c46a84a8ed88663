"""
NHTSA public data client: VIN decoding (vPIC), recalls, safety ratings and complaints.

No API key is required. Results are cached in-process because the reference data
changes rarely: VIN decodes for a day, recalls for an hour.
Upstream timeouts and non-2xx responses fail the request; there are no retries here.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from autowhiz.core.config import settings
from autowhiz.core.errors import NotFoundError, UpstreamError, ValidationError
from autowhiz.utils.ttl_cache import TTLCache
from autowhiz.utils.vin import has_valid_check_digit, is_valid_vin, normalize_vin, validate_vin

logger = logging.getLogger(__name__)

MAX_BATCH_VINS = 50


def _value(row: Dict[str, Any], key: str) -> Optional[str]:
    value = row.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _year(row: Dict[str, Any]) -> int:
    try:
        return int(_value(row, "ModelYear") or 0)
    except ValueError:
        return 0


def map_decoded_row(row: Dict[str, Any], vin: str) -> Dict[str, Any]:
    """Flatten a DecodeVinValuesExtended result row."""
    return {
        "vin": vin,
        "year": _year(row),
        "make": _value(row, "Make"),
        "model": _value(row, "Model"),
        "trim": _value(row, "Trim"),
        "bodyClass": _value(row, "BodyClass"),
        "vehicleType": _value(row, "VehicleType"),
        "driveType": _value(row, "DriveType"),
        "fuelType": _value(row, "FuelTypePrimary"),
        "engine": {
            "displacement": _value(row, "DisplacementL"),
            "cylinders": _value(row, "EngineCylinders"),
            "hp": _value(row, "EngineHP"),
            "model": _value(row, "EngineModel"),
        },
        "transmission": {
            "type": _value(row, "TransmissionStyle"),
            "speeds": _value(row, "TransmissionSpeeds"),
        },
        "manufacturer": {
            "name": _value(row, "Manufacturer"),
            "country": _value(row, "PlantCountry"),
            "city": _value(row, "PlantCity"),
            "state": _value(row, "PlantState"),
        },
        "doors": _value(row, "Doors"),
        "gvwr": _value(row, "GVWR"),
        "wheelbase": _value(row, "WheelBaseShort"),
        "abs": _value(row, "ABS"),
        "airbags": {
            "front": _value(row, "AirBagLocFront"),
            "side": _value(row, "AirBagLocSide"),
            "curtain": _value(row, "AirBagLocCurtain"),
        },
        "checkDigitValid": has_valid_check_digit(vin),
        "errorCode": _value(row, "ErrorCode"),
        "errorText": _value(row, "ErrorText"),
    }


def map_batch_row(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "vin": _value(row, "VIN"),
        "year": _year(row),
        "make": _value(row, "Make"),
        "model": _value(row, "Model"),
        "trim": _value(row, "Trim"),
        "bodyClass": _value(row, "BodyClass"),
        "vehicleType": _value(row, "VehicleType"),
        "errorCode": _value(row, "ErrorCode"),
        "errorText": _value(row, "ErrorText"),
    }


def map_recall(recall: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "campaignNumber": recall.get("NHTSACampaignNumber"),
        "manufacturer": recall.get("Manufacturer"),
        "reportedDate": recall.get("ReportReceivedDate"),
        "component": recall.get("Component"),
        "summary": recall.get("Summary"),
        "consequence": recall.get("Consequence"),
        "remedy": recall.get("Remedy"),
        "notes": recall.get("Notes"),
        "parkIt": recall.get("parkIt", recall.get("ParkIt")) is True,
        "parkOutside": recall.get("parkOutSide", recall.get("ParkOutSide")) is True,
    }


def decode_warning(decoded: Dict[str, Any]) -> Optional[str]:
    """NHTSA reports partial decodes with a non-zero ErrorCode; surface it as a warning."""
    code = decoded.get("errorCode")
    if code and code != "0":
        return decoded.get("errorText") or "VIN may have issues"
    return None


def _int(value) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


class NhtsaClient:
    def __init__(self, http_client: Optional[httpx.Client] = None):
        self.vpic_url = settings.NHTSA_VPIC_URL.rstrip("/")
        self.api_url = settings.NHTSA_API_URL.rstrip("/")
        self.http = http_client or httpx.Client(
            timeout=settings.NHTSA_TIMEOUT_SECONDS,
            headers={"Accept": "application/json"},
        )
        self.decode_cache = TTLCache(settings.VIN_DECODE_CACHE_TTL)
        self.recalls_cache = TTLCache(settings.RECALLS_CACHE_TTL)
        self.safety_cache = TTLCache(settings.SAFETY_CACHE_TTL)

    def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self.http.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("[NHTSA] Timeout calling %s: %s", url, e)
            raise UpstreamError("Vehicle data service timed out")
        except httpx.HTTPError as e:
            logger.error("[NHTSA] Request to %s failed: %s", url, e)
            raise UpstreamError("Vehicle data service unavailable")

        if not response.is_success:
            logger.error("[NHTSA] %s %s returned %s", method, url, response.status_code)
            raise UpstreamError(f"Vehicle data service returned {response.status_code}")
        try:
            return response.json()
        except ValueError:
            raise UpstreamError("Vehicle data service returned invalid JSON")

    def decode_vin(self, vin: str) -> Dict[str, Any]:
        """Decode a single VIN. Validation happens before any network call."""
        clean = validate_vin(vin)
        cached = self.decode_cache.get(clean)
        if cached is not None:
            return cached

        data = self._request(
            "GET",
            f"{self.vpic_url}/vehicles/DecodeVinValuesExtended/{clean}",
            params={"format": "json"},
        )
        results = data.get("Results") or []
        if not results:
            raise NotFoundError("No results found for VIN")

        decoded = map_decoded_row(results[0], clean)
        self.decode_cache.set(clean, decoded)
        return decoded

    def batch_decode_vins(self, vins: List[str]) -> List[Dict[str, Any]]:
        if vins is None or not isinstance(vins, list):
            raise ValidationError("vins array is required")
        if len(vins) > MAX_BATCH_VINS:
            raise ValidationError(f"Maximum {MAX_BATCH_VINS} VINs per request")

        clean_vins = [v for v in (normalize_vin(vin) for vin in vins) if is_valid_vin(v)]
        if not clean_vins:
            raise ValidationError("No valid VINs provided")

        data = self._request(
            "POST",
            f"{self.vpic_url}/vehicles/DecodeVINValuesBatch/",
            data={"data": ";".join(clean_vins), "format": "json"},
        )
        return [map_batch_row(row) for row in data.get("Results") or []]

    def get_recalls(
        self,
        vin: Optional[str] = None,
        make: Optional[str] = None,
        model: Optional[str] = None,
        year: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Recalls by VIN (decoded first) or by make/model/year."""
        if vin:
            decoded = self.decode_vin(vin)
            make, model, year = decoded.get("make"), decoded.get("model"), decoded.get("year")
            if not make or not model or not year:
                raise ValidationError("Could not decode VIN")
        elif not (make and model and year):
            raise ValidationError("VIN or make/model/year required")

        key = (make.upper(), model.upper(), int(year))
        cached = self.recalls_cache.get(key)
        if cached is not None:
            return cached

        data = self._request(
            "GET",
            f"{self.api_url}/recalls/recallsByVehicle",
            params={"make": make, "model": model, "modelYear": year},
        )
        recalls = [map_recall(r) for r in data.get("results") or []]
        result = {
            "make": make,
            "model": model,
            "year": int(year),
            "count": len(recalls),
            "recalls": recalls,
            "hasOpenRecalls": len(recalls) > 0,
        }
        self.recalls_cache.set(key, result)
        return result

    def get_safety_ratings(self, year: int, make: str, model: str) -> List[Dict[str, Any]]:
        """NCAP ratings for every variant of a model year."""
        if not (year and make and model):
            raise ValidationError("make, model and year are required")

        key = ("ratings", int(year), make.upper(), model.upper())
        cached = self.safety_cache.get(key)
        if cached is not None:
            return cached

        variants = self._request(
            "GET",
            f"{self.api_url}/SafetyRatings/modelyear/{year}/make/{make}/model/{model}",
            params={"format": "json"},
        ).get("Results") or []

        ratings = []
        for variant in variants:
            vehicle_id = variant.get("VehicleId")
            if not vehicle_id:
                continue
            try:
                detail = self._request(
                    "GET",
                    f"{self.api_url}/SafetyRatings/VehicleId/{vehicle_id}",
                    params={"format": "json"},
                )
            except UpstreamError:
                # One missing variant should not hide the others
                logger.warning("[NHTSA] Skipping safety rating for vehicle %s", vehicle_id)
                continue
            rows = detail.get("Results") or []
            if not rows:
                continue
            row = rows[0]
            ratings.append({
                "vehicleId": vehicle_id,
                "vehicleDescription": variant.get("VehicleDescription"),
                "overallRating": _int(row.get("OverallRating")),
                "frontalCrashRating": _int(row.get("OverallFrontCrashRating")),
                "sideCrashRating": _int(row.get("OverallSideCrashRating")),
                "rolloverRating": _int(row.get("RolloverRating")),
                "rolloverRisk": float(row.get("RolloverPossibility") or 0),
            })

        self.safety_cache.set(key, ratings)
        return ratings

    def get_complaints(self, make: str, model: str, year: int) -> Dict[str, Any]:
        if not (year and make and model):
            raise ValidationError("make, model and year are required")

        key = ("complaints", int(year), make.upper(), model.upper())
        cached = self.safety_cache.get(key)
        if cached is not None:
            return cached

        data = self._request(
            "GET",
            f"{self.api_url}/complaints/complaintsByVehicle",
            params={"make": make, "model": model, "modelYear": year},
        )
        complaints = [
            {
                "odiNumber": c.get("odiNumber"),
                "component": c.get("components"),
                "summary": c.get("summary"),
                "crash": bool(c.get("crash")),
                "fire": bool(c.get("fire")),
                "dateOfIncident": c.get("dateOfIncident"),
            }
            for c in data.get("results") or []
        ]
        result = {"count": len(complaints), "complaints": complaints}
        self.safety_cache.set(key, result)
        return result


_client: Optional[NhtsaClient] = None


def get_nhtsa_client() -> NhtsaClient:
    """FastAPI dependency returning the shared client (one connection pool, one cache)."""
    global _client
    if _client is None:
        _client = NhtsaClient()
    return _client
