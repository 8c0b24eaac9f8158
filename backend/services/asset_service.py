import logging
from typing import Optional

from sqlalchemy.orm import Session

from exceptions.exceptions import AssetNotFoundException
from models.asset import Asset
from models.uploads import Upload
from services.asset_store import AssetStore
from services.base import BaseService

logger = logging.getLogger(__name__)


class AssetService(BaseService):
    def __init__(self, db: Session, asset_store: Optional[AssetStore] = None):
        super().__init__(db, asset_store)

    def get_asset(self, public_id: str) -> Optional[Asset]:
        return self.db.query(Asset).filter(Asset.public_id == public_id).first()

    def list_assets(self, skip: int = 0, limit: int = 100) -> list[Asset]:
        """List stored assets, newest first"""
        return (
            self.db.query(Asset)
            .order_by(Asset.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def delete_asset(self, public_id: str) -> bool:
        """Delete an asset from the asset host and drop its record"""
        asset = self.get_asset(public_id)

        if not asset:
            raise AssetNotFoundException()

        self._require_asset_store().delete(asset.public_id)

        try:
            self.db.query(Upload).filter(Upload.asset_id == asset.id).update(
                {Upload.asset_id: None},
                synchronize_session=False
            )
            self.db.delete(asset)
            self.db.commit()
            logger.info(f"Deleted asset record {public_id}")
            return True
        except Exception:
            self.db.rollback()
            raise
