from .asset import Asset
from .uploads import Upload, UploadStatus
from .upload_chunks import UploadChunk

__all__ = ["Asset", "Upload", "UploadStatus", "UploadChunk"]
