from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from autowhiz.schemas.common import row_to_dict
from autowhiz.schemas.metadata import load_preferences

ACCOUNT_DELETE_CONFIRMATION = "DELETE MY ACCOUNT"


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    full_name: Optional[str] = Field(None, alias="fullName")
    display_name: Optional[str] = Field(None, alias="displayName")
    phone: Optional[str] = None
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = Field(None, alias="zipCode")
    preferences: Optional[Dict[str, Any]] = None


class AccountDeleteRequest(BaseModel):
    confirmation: Optional[str] = None


def profile_to_dict(profile) -> Dict[str, Any]:
    data = row_to_dict(profile)
    data["preferences"] = load_preferences(profile.preferences).model_dump()
    return data
