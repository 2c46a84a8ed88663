from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SavedVehicleCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    vin: Optional[str] = None
    analysis_id: Optional[str] = Field(None, alias="analysisId")
    year: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None
    trim: Optional[str] = None
    listing_url: Optional[str] = Field(None, alias="listingUrl")
    listing_price: Optional[float] = Field(None, alias="listingPrice")
    dealer_name: Optional[str] = Field(None, alias="dealerName")
    dealer_location: Optional[str] = Field(None, alias="dealerLocation")
    notes: Optional[str] = None
    tags: Optional[List[str]] = None


class SavedVehicleUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    notes: Optional[str] = None
    tags: Optional[List[str]] = None
    listing_price: Optional[float] = Field(None, alias="listingPrice")
    status: Optional[str] = None


class BatchVinRequest(BaseModel):
    vins: Optional[List[str]] = None
