"""Base model for records kept by a store."""

from datetime import datetime
from typing import Optional, TypeVar

from pydantic import BaseModel, Field

StoredT = TypeVar("StoredT", bound="DBModel")


class DBModel(BaseModel):
    """Record with a store-assigned primary key and audit timestamps."""

    id: Optional[int] = Field(None, description="Primary key, None until stored")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    class Config:
        """Pydantic config."""

        from_attributes = True

    def stored_copy(
        self: StoredT, record_id: int, now: datetime, created_at: Optional[datetime] = None
    ) -> StoredT:
        """Deep copy carrying the key and timestamps a store assigns on write."""
        return self.model_copy(
            update={"id": record_id, "created_at": created_at or now, "updated_at": now},
            deep=True,
        )
