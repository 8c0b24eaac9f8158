from sqlalchemy.orm import Session
from typing import Optional

from services.asset_store import AssetStore

class BaseService:
    def __init__(self, db: Session, asset_store: Optional[AssetStore] = None):
        self.db = db
        self.asset_store = asset_store

    def _require_asset_store(self) -> AssetStore:
        if self.asset_store is None:
            raise RuntimeError(f"{type(self).__name__} was created without an asset store")
        return self.asset_store
