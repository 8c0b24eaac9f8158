from pydantic import BaseModel, Field
from models.uploads import UploadStatus


class ChunkReceivedResponse(BaseModel):
    """Returned while an upload still has chunks outstanding"""
    status: str
    upload_id: str = Field(..., alias="uploadId")
    received_chunks: int = Field(..., alias="receivedChunks")
    total_chunks: int = Field(..., alias="totalChunks")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "status": "chunk-received",
                "uploadId": "abc123",
                "receivedChunks": 2,
                "totalChunks": 3
            }
        }


class ChunkUploadCompleteResponse(BaseModel):
    """Returned once the assembled file is stored at the asset host"""
    url: str
    public_id: str = Field(..., alias="publicId")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "url": "https://assets.example.com/products/images/logo-1718000000000.png",
                "publicId": "products/images/logo-1718000000000.png"
            }
        }


class UploadStatusResponse(BaseModel):
    """Current state of a chunked upload"""
    upload_id: str = Field(..., alias="uploadId")
    file_name: str = Field(..., alias="fileName")
    file_type: str = Field(..., alias="fileType")
    total_chunks: int = Field(..., alias="totalChunks")
    received_chunks: list[int] = Field(..., alias="receivedChunks")
    status: UploadStatus
    progress_percent: float = Field(..., alias="progressPercent")

    class Config:
        populate_by_name = True


class ErrorResponse(BaseModel):
    error: str
