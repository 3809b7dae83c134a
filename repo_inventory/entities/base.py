"""
Base entity shared by every MongoDB document model.
"""

from datetime import datetime
from typing import Annotated, Any, Optional

from bson import ObjectId
from pydantic import BaseModel, Field, PlainSerializer, PlainValidator

from repo_inventory.utils.datetime import utc_now


def _validate_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValueError(f"Invalid ObjectId: {value!r}")


# Stored as ObjectId, rendered as str in JSON mode
PyObjectId = Annotated[
    ObjectId,
    PlainValidator(_validate_object_id),
    PlainSerializer(lambda v: str(v), return_type=str, when_used="json"),
]


class BaseEntity(BaseModel):
    """Base class for all entities stored in MongoDB."""

    id: Optional[PyObjectId] = Field(None, alias="_id")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    class Config:
        populate_by_name = True
        arbitrary_types_allowed = True
        use_enum_values = True

    def to_mongo(self) -> dict:
        """Serialize for insert/replace; ``_id`` is omitted until assigned."""
        data = self.model_dump(by_alias=True)
        if data.get("_id") is None:
            data.pop("_id", None)
        return data
