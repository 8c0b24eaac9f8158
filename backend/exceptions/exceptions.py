class ChunkUploadException(Exception):
    """Base class for chunked upload failures"""

    def __init__(self, message: str = "Failed to process chunk"):
        self.message = message
        super().__init__(message)


class MissingFieldException(ChunkUploadException):
    def __init__(self, message: str = "Missing required fields"):
        super().__init__(message)


class InvalidChunkRequestException(ChunkUploadException):
    def __init__(self, message: str = "Invalid chunk metadata"):
        super().__init__(message)


class InvalidChunkFormatException(ChunkUploadException):
    """A buffered chunk failed its integrity check during reassembly"""


class UploadForwardException(ChunkUploadException):
    """The asset host rejected or failed to store the assembled file"""


class UploadConflictException(ChunkUploadException):
    pass


class UploadClosedException(ChunkUploadException):
    pass


class UploadNotFoundException(ChunkUploadException):
    def __init__(self, message: str = "Upload not found"):
        super().__init__(message)


class AssetNotFoundException(Exception):
    def __init__(self, message: str = "Asset not found"):
        self.message = message
        super().__init__(message)


class AssetStoreException(Exception):
    """Raised by the asset host adapter when a storage call fails"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
