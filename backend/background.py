import asyncio
import logging
from database import SessionLocal
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import Session
from core.config import settings
from services.chunk_service import ChunkService

logger = logging.getLogger(__name__)

async def cleanup_stale_uploads():
    while True:
        db = SessionLocal()
        try:
            clean_uploads(db)
        except Exception as e:
            logger.error(f"Upload cleanup failed: {e}")
        finally:
            db.close()

        await asyncio.sleep(settings.UPLOAD_CLEANUP_INTERVAL_SECONDS)

def clean_uploads(db: Session, now: datetime = None) -> int:

    now = now or datetime.now(timezone.utc)
    logger.info(f"Cleaning stale uploads {now}")

    cutoff = now - timedelta(seconds=settings.UPLOAD_STALE_AFTER_SECONDS)

    expired = ChunkService(db).expire_stale_uploads(cutoff)

    if expired:
        logger.info(f"Expired {expired} stale uploads")
    return expired
