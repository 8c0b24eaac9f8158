from .asset import router as asset_router
from .upload import router as upload_router

__all__ = ["asset_router", "upload_router"]
