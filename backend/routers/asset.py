from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from dependencies.storage import get_asset_store
from exceptions.exceptions import AssetNotFoundException, AssetStoreException
from schemas.asset import AssetResponse
from services.asset_service import AssetService
from services.asset_store import AssetStore

router = APIRouter(prefix="/api/images", tags=["assets"])


@router.get("", response_model=list[AssetResponse])
async def list_assets(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    """
    List stored assets, newest first.

    - **skip**: Number of assets to skip (pagination)
    - **limit**: Maximum number of assets to return
    """
    asset_service = AssetService(db)
    return asset_service.list_assets(skip=skip, limit=limit)


@router.delete("/{public_id:path}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_asset(
    public_id: str,
    db: Session = Depends(get_db),
    asset_store: AssetStore = Depends(get_asset_store)
):
    """
    Delete an asset from the asset host and remove its record.
    """
    asset_service = AssetService(db, asset_store)
    try:
        asset_service.delete_asset(public_id)
        return None
    except AssetNotFoundException as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=e.message
        )
    except AssetStoreException as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=e.message
        )
