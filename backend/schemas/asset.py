from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class AssetResponse(BaseModel):
    id: int
    public_id: str = Field(..., serialization_alias="publicId")
    url: str
    folder: str
    resource_type: str = Field(..., serialization_alias="resourceType")
    file_name: str = Field(..., serialization_alias="fileName")
    size: int
    upload_id: Optional[str] = Field(None, serialization_alias="uploadId")
    created_at: Optional[datetime] = Field(None, serialization_alias="createdAt")

    class Config:
        from_attributes = True
