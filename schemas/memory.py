from typing import Optional
from datetime import datetime, date

from pydantic import BaseModel, Field


class MemoryRead(BaseModel):
    id: int = Field(..., description="Primary key")
    photo_url: str = Field(..., description="Public URL of the memory photo")
    caption: str = Field(..., description="Caption")
    description: Optional[str] = Field(None, description="Free text story")
    memory_date: date = Field(..., description="Date the memory happened")
    created_at: datetime = Field(..., description="Record creation time")

    class Config:
        from_attributes = True
        validate_by_name = True
