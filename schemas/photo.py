from typing import List, Optional
from datetime import datetime

from pydantic import BaseModel, Field, computed_field


class PhotoRead(BaseModel):
    id: int = Field(..., description="Primary key")
    file_path: str = Field(..., description="Public URL of the image")
    file_name: str = Field(..., description="Original file name")
    caption: Optional[str] = Field(None, description="Caption entered on upload")
    created_at: datetime = Field(..., description="Upload time")

    class Config:
        from_attributes = True
        validate_by_name = True


class UploadFailure(BaseModel):
    file_name: str
    reason: str


class UploadReport(BaseModel):
    uploaded: List[PhotoRead] = Field([], description="Photos stored and recorded")
    failures: List[UploadFailure] = Field([], description="Files that were skipped, one entry per file")

    @computed_field
    @property
    def success_count(self) -> int:
        return len(self.uploaded)
