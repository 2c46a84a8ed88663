from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NotificationMarkRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    ids: Optional[List[str]] = None
    mark_all: bool = Field(False, alias="markAll")
