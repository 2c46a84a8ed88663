"""
Typed shapes for the JSON columns (analysis options, plan features, user preferences).

Known keys are validated; unknown keys are kept in `model_extra` so producers can
add extension data without a migration.
"""
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class _OpenModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class AnalysisOptions(_OpenModel):
    include_history: bool = True
    include_visual: bool = False
    include_audio: bool = False


class PlanFeatures(_OpenModel):
    visual_analysis: bool = False
    audio_analysis: bool = False
    history_report: bool = False
    export_pdf: bool = False
    api_access: bool = False
    priority_support: bool = False
    white_label: bool = False
    bulk_upload: bool = False
    team_members: int = 1


class NotificationPreferences(_OpenModel):
    email: bool = True
    push: bool = True
    sms: bool = False
    marketing: bool = False


class PrivacyPreferences(_OpenModel):
    share_reports: bool = False
    analytics_tracking: bool = True


class UserPreferences(_OpenModel):
    theme: Literal["light", "dark", "system"] = "system"
    language: str = "en"
    timezone: str = "America/New_York"
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)
    privacy: PrivacyPreferences = Field(default_factory=PrivacyPreferences)


def load_preferences(raw: Optional[Dict[str, Any]]) -> UserPreferences:
    return UserPreferences.model_validate(raw or {})


def merge_preferences(current: Optional[Dict[str, Any]], changes: Dict[str, Any]) -> UserPreferences:
    """Deep-merge a partial preferences update over the stored value."""
    merged = load_preferences(current).model_dump()
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return UserPreferences.model_validate(merged)
