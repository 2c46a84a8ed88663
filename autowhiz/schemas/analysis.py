from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from autowhiz.schemas.common import iso, number, row_to_dict
from autowhiz.schemas.metadata import AnalysisOptions


class AnalysisCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    vin: Optional[str] = None
    mileage: Optional[int] = None
    asking_price: Optional[float] = Field(None, alias="askingPrice")
    options: Optional[AnalysisOptions] = None


class AnalysisUpdate(BaseModel):
    """Fields a user may change on their own analysis. Status is not among them."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    notes: Optional[str] = None
    tags: Optional[List[str]] = None
    starred: Optional[bool] = None
    mileage: Optional[int] = None
    asking_price: Optional[float] = Field(None, alias="askingPrice")


def analysis_to_dict(analysis, include_details: bool = False) -> Dict[str, Any]:
    data = {
        "id": analysis.id,
        "user_id": analysis.user_id,
        "vin": analysis.vin,
        "status": analysis.status,
        "progress": analysis.progress,
        "mileage": analysis.mileage,
        "asking_price": number(analysis.asking_price),
        "analysis_options": analysis.analysis_options,
        "notes": analysis.notes,
        "tags": analysis.tags or [],
        "starred": analysis.starred,
        "overall_score": analysis.overall_score,
        "summary": analysis.summary,
        "error_message": analysis.error_message,
        "created_at": iso(analysis.created_at),
        "updated_at": iso(analysis.updated_at),
    }
    if include_details:
        data["vehicle_history"] = row_to_dict(analysis.vehicle_history)
        data["visual_analysis"] = row_to_dict(analysis.visual_analysis)
        data["audio_analysis"] = row_to_dict(analysis.audio_analysis)
        data["market_value"] = row_to_dict(analysis.market_value)
    return data
