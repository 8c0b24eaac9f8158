from functools import lru_cache

from services.asset_store import AssetStore, R2AssetStore


@lru_cache
def get_asset_store() -> AssetStore:
    """Build the R2-backed asset store once and share it across requests"""
    return R2AssetStore()
