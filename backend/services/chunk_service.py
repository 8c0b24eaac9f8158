import hashlib
import logging
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from exceptions.exceptions import (
    ChunkUploadException,
    InvalidChunkFormatException,
    InvalidChunkRequestException,
    MissingFieldException,
    UploadClosedException,
    UploadConflictException,
    UploadForwardException,
    UploadNotFoundException,
)
from models.asset import Asset
from models.upload_chunks import UploadChunk
from models.uploads import Upload, UploadStatus
from services.asset_store import AssetStore
from services.base import BaseService

logger = logging.getLogger(__name__)

CHUNK_RECEIVED = "chunk-received"


def destination_for(file_type: str) -> tuple[str, str]:
    """Return the (folder, resource_type) an upload of this file type is stored under"""
    folder = f"{file_type}s"
    resource_type = "raw" if file_type == "pdf" else "image"
    return folder, resource_type


class ChunkService(BaseService):
    def __init__(self, db: Session, asset_store: Optional[AssetStore] = None):
        super().__init__(db, asset_store)

    def _get_upload(self, upload_id: str) -> Optional[Upload]:
        return self.db.query(Upload).filter(Upload.upload_id == upload_id).first()

    def _count_chunks(self, upload_id: str) -> int:
        return (
            self.db.query(func.count(UploadChunk.chunk_index))
            .filter(UploadChunk.upload_id == upload_id)
            .scalar()
        )

    def _received_result(self, upload: Upload, received: int) -> dict:
        return {
            "status": CHUNK_RECEIVED,
            "upload_id": upload.upload_id,
            "received_chunks": received,
            "total_chunks": upload.total_chunks
        }

    def _validate(
        self,
        upload_id: Optional[str],
        chunk_index: Union[int, str, None],
        total_chunks: Union[int, str, None],
        file_type: Optional[str],
        file_name: Optional[str],
        chunk_bytes: Optional[bytes]
    ) -> tuple[int, int]:
        """Check the request is complete and return (chunk_index, total_chunks) as ints"""

        fields = (upload_id, chunk_index, total_chunks, file_type, file_name)
        if chunk_bytes is None or any(value is None or value == "" for value in fields):
            raise MissingFieldException()

        try:
            index = int(chunk_index)
            total = int(total_chunks)
        except (TypeError, ValueError):
            raise InvalidChunkRequestException()

        if total < 1 or index < 0 or index >= total:
            raise InvalidChunkRequestException()

        return index, total

    def _get_or_create_upload(
        self,
        upload_id: str,
        total_chunks: int,
        file_type: str,
        file_name: str
    ) -> Upload:
        upload = self._get_upload(upload_id)
        if upload:
            return upload

        try:
            upload = Upload(
                upload_id=upload_id,
                file_type=file_type,
                file_name=file_name,
                total_chunks=total_chunks,
                status=UploadStatus.RECEIVING
            )
            self.db.add(upload)
            self.db.commit()
            logger.info(f"Opened upload {upload_id} for {file_name} ({total_chunks} chunks)")
            return upload
        except IntegrityError:
            # another request opened the same upload first
            self.db.rollback()
            upload = self._get_upload(upload_id)
            if not upload:
                raise
            return upload

    def _store_chunk(self, upload_id: str, chunk_index: int, chunk_bytes: bytes):
        """Store a chunk at its index, replacing any earlier copy"""

        chunk = UploadChunk(
            upload_id=upload_id,
            chunk_index=chunk_index,
            data=chunk_bytes,
            size=len(chunk_bytes),
            checksum=hashlib.md5(chunk_bytes).hexdigest()
        )

        try:
            self.db.merge(chunk)
            self.db.flush()
        except IntegrityError:
            # a concurrent retry inserted this index between our read and write
            self.db.rollback()
            self.db.merge(chunk)

        self.db.query(Upload).filter(Upload.upload_id == upload_id).update(
            {Upload.updated_at: func.now()},
            synchronize_session=False
        )
        self.db.commit()

    def _claim(self, upload_id: str) -> bool:
        """Atomically move the upload from receiving to assembling"""

        claimed = (
            self.db.query(Upload)
            .filter(
                Upload.upload_id == upload_id,
                Upload.status == UploadStatus.RECEIVING
            )
            .update({Upload.status: UploadStatus.ASSEMBLING}, synchronize_session=False)
        )
        self.db.commit()
        return claimed == 1

    def _release_claim(self, upload_id: str):
        self.db.rollback()
        (
            self.db.query(Upload)
            .filter(
                Upload.upload_id == upload_id,
                Upload.status == UploadStatus.ASSEMBLING
            )
            .update({Upload.status: UploadStatus.RECEIVING}, synchronize_session=False)
        )
        self.db.commit()

    def _assemble(self, upload: Upload, chunks: list[UploadChunk]) -> bytes:
        """Concatenate the buffered chunks in index order, checking each one"""

        indices = [chunk.chunk_index for chunk in chunks]
        if indices != list(range(upload.total_chunks)):
            raise InvalidChunkFormatException(f"Upload {upload.upload_id} is missing chunks")

        buffers = []
        for chunk in chunks:
            if not isinstance(chunk.data, (bytes, bytearray, memoryview)):
                raise InvalidChunkFormatException(
                    f"Chunk {chunk.chunk_index} of upload {upload.upload_id} is not binary data"
                )
            data = bytes(chunk.data)
            if len(data) != chunk.size or hashlib.md5(data).hexdigest() != chunk.checksum:
                raise InvalidChunkFormatException(
                    f"Chunk {chunk.chunk_index} of upload {upload.upload_id} failed its integrity check"
                )
            buffers.append(data)

        return b"".join(buffers)

    def _assemble_and_forward(self, upload_id: str, asset_store: AssetStore) -> dict:
        try:
            upload = self._get_upload(upload_id)
            chunks = (
                self.db.query(UploadChunk)
                .filter(UploadChunk.upload_id == upload_id)
                .order_by(UploadChunk.chunk_index)
                .all()
            )
            content = self._assemble(upload, chunks)
        except Exception:
            self._release_claim(upload_id)
            raise

        folder, resource_type = destination_for(upload.file_type)
        logger.info(f"Forwarding upload {upload_id} ({len(content)} bytes) to {folder} as {resource_type}")

        try:
            stored = asset_store.upload(
                content,
                folder=folder,
                resource_type=resource_type,
                file_name=upload.file_name
            )
        except Exception as e:
            logger.error(f"Forwarding upload {upload_id} failed: {e}")
            self._release_claim(upload_id)
            raise UploadForwardException(f"Failed to forward upload {upload_id}: {str(e)}")

        try:
            asset = Asset(
                public_id=stored.public_id,
                url=stored.url,
                folder=folder,
                resource_type=resource_type,
                file_name=upload.file_name,
                size=len(content),
                upload_id=upload_id
            )
            self.db.add(asset)
            self.db.flush()

            for chunk in chunks:
                self.db.delete(chunk)

            upload.asset_id = asset.id
            upload.status = UploadStatus.COMPLETED
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Finalizing upload {upload_id} failed, removing stored asset {stored.public_id}: {e}")
            try:
                asset_store.delete(stored.public_id)
            except Exception as delete_error:
                logger.error(f"Could not remove stored asset {stored.public_id}: {delete_error}")
            self._release_claim(upload_id)
            raise ChunkUploadException(f"Error finalizing upload {upload_id}: {str(e)}")

        logger.info(f"Completed upload {upload_id} as {stored.public_id}")
        return {"url": stored.url, "public_id": stored.public_id}

    def submit_chunk(
        self,
        upload_id: Optional[str],
        chunk_index: Union[int, str, None],
        total_chunks: Union[int, str, None],
        file_type: Optional[str],
        file_name: Optional[str],
        chunk_bytes: Optional[bytes]
    ) -> dict:
        """
        Accept one chunk of an upload and forward the file once every chunk is in.

        Args:
            upload_id: Client chosen upload key
            chunk_index: Position of this chunk (0-indexed)
            total_chunks: Number of chunks the file was split into
            file_type: Logical category, "pdf" is stored raw, anything else as an image
            file_name: Original file name
            chunk_bytes: Raw bytes of this chunk

        Returns:
            Dict with status, upload_id, received_chunks and total_chunks while chunks
            are outstanding, or with url and public_id once the file is stored
        """
        chunk_index, total_chunks = self._validate(
            upload_id, chunk_index, total_chunks, file_type, file_name, chunk_bytes
        )
        asset_store = self._require_asset_store()

        try:
            upload = self._get_or_create_upload(upload_id, total_chunks, file_type, file_name)

            if upload.total_chunks != total_chunks:
                raise UploadConflictException(
                    f"Upload {upload_id} was opened with {upload.total_chunks} chunks, not {total_chunks}"
                )

            if upload.file_type != file_type or upload.file_name != file_name:
                raise UploadConflictException(
                    f"Upload {upload_id} was opened for {upload.file_type} file {upload.file_name}"
                )

            if upload.status == UploadStatus.COMPLETED:
                if upload.asset is None:
                    raise UploadClosedException(f"Upload {upload_id} is already completed")
                return {"url": upload.asset.url, "public_id": upload.asset.public_id}

            if upload.status in (UploadStatus.ABORTED, UploadStatus.EXPIRED):
                raise UploadClosedException(f"Upload {upload_id} is {upload.status.value}")

            if upload.status == UploadStatus.ASSEMBLING:
                return self._received_result(upload, self._count_chunks(upload_id))

            self._store_chunk(upload_id, chunk_index, chunk_bytes)
            received = self._count_chunks(upload_id)
            logger.info(f"Received chunk {chunk_index} of upload {upload_id} ({received}/{total_chunks})")

            if received < total_chunks:
                return self._received_result(upload, received)

            if not self._claim(upload_id):
                logger.info(f"Upload {upload_id} is already being assembled")
                return self._received_result(upload, received)

        except ChunkUploadException:
            raise
        except Exception as e:
            self.db.rollback()
            raise ChunkUploadException(f"Error storing chunk: {str(e)}")

        return self._assemble_and_forward(upload_id, asset_store)

    def get_upload_status(self, upload_id: str) -> dict:
        upload = self._get_upload(upload_id)
        if not upload:
            raise UploadNotFoundException()

        received = [chunk.chunk_index for chunk in upload.chunks]
        progress_percent = len(received) / upload.total_chunks * 100 if upload.total_chunks else 0
        if upload.status == UploadStatus.COMPLETED:
            progress_percent = 100

        return {
            "upload_id": upload.upload_id,
            "file_name": upload.file_name,
            "file_type": upload.file_type,
            "total_chunks": upload.total_chunks,
            "received_chunks": sorted(received),
            "status": upload.status,
            "progress_percent": round(progress_percent, 2)
        }

    def abort_upload(self, upload_id: str) -> bool:
        """
        Abort an upload and release its chunk buffer.

        Returns:
            True if successfully aborted
        """
        upload = self._get_upload(upload_id)
        if not upload:
            raise UploadNotFoundException()

        if upload.status != UploadStatus.RECEIVING:
            raise UploadClosedException(f"Upload {upload_id} is {upload.status.value} and cannot be aborted")

        try:
            upload.chunks.clear()
            upload.status = UploadStatus.ABORTED
            self.db.commit()
            logger.info(f"Aborted upload {upload_id}")
            return True
        except Exception as e:
            self.db.rollback()
            raise ChunkUploadException(f"Error aborting upload: {str(e)}")

    def expire_stale_uploads(self, cutoff: datetime) -> int:
        """Drop the buffers of uploads that have not received a chunk since cutoff"""

        stale_uploads = (
            self.db.query(Upload)
            .filter(
                Upload.status.in_([UploadStatus.RECEIVING, UploadStatus.ASSEMBLING]),
                Upload.updated_at < cutoff
            )
            .all()
        )

        for upload in stale_uploads:
            logger.info(f"Expiring stale upload {upload.upload_id}")
            upload.chunks.clear()
            upload.status = UploadStatus.EXPIRED

        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            raise ChunkUploadException(f"Error expiring uploads: {str(e)}")

        return len(stale_uploads)
