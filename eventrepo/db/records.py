from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


# Column / document names shared by every backend
RECORD_FIELDS = (
    "id",
    "type",
    "payload",
    "parentId",
    "properties",
    "createdAt",
    "updatedAt",
)


class EventRecord(BaseModel):
    """
    Storage shape of an event.

    Dumped with by_alias=True it yields the stable field names in
    RECORD_FIELDS; type is kept as the raw stored string.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    type: str
    payload: Optional[str] = None
    parent_id: Optional[str] = Field(None, alias="parentId")
    properties: Dict[str, str] = Field(default_factory=dict)
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)
