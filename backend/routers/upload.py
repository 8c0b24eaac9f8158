import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database import get_db
from dependencies.storage import get_asset_store
from exceptions.exceptions import (
    InvalidChunkRequestException,
    MissingFieldException,
    UploadClosedException,
    UploadConflictException,
    UploadNotFoundException,
)
from schemas.upload import ChunkReceivedResponse, ChunkUploadCompleteResponse, ErrorResponse, UploadStatusResponse
from services.asset_store import AssetStore
from services.chunk_service import CHUNK_RECEIVED, ChunkService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload-chunk", tags=["upload"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post(
    "",
    response_model=ChunkUploadCompleteResponse,
    responses={
        202: {"model": ChunkReceivedResponse},
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    }
)
async def upload_chunk(
    chunk: Optional[UploadFile] = File(None),
    upload_id: Optional[str] = Form(None, alias="uploadId"),
    chunk_index: Optional[str] = Form(None, alias="chunkIndex"),
    total_chunks: Optional[str] = Form(None, alias="totalChunks"),
    file_type: Optional[str] = Form(None, alias="fileType"),
    file_name: Optional[str] = Form(None, alias="fileName"),
    db: Session = Depends(get_db),
    asset_store: AssetStore = Depends(get_asset_store)
):
    """
    Receive one chunk of a file.

    - **chunk**: Raw bytes of this chunk
    - **uploadId**: Client chosen key shared by every chunk of the file
    - **chunkIndex**: Position of this chunk, starting at 0
    - **totalChunks**: Number of chunks the file was split into
    - **fileType**: "pdf" is stored as a raw file, anything else as an image
    - **fileName**: Original file name

    Returns 202 while chunks are outstanding and the stored asset's url and publicId
    once the last chunk arrives.
    """
    chunk_service = ChunkService(db, asset_store)
    try:
        chunk_bytes = await chunk.read() if chunk is not None else None

        result = chunk_service.submit_chunk(
            upload_id=upload_id,
            chunk_index=chunk_index,
            total_chunks=total_chunks,
            file_type=file_type,
            file_name=file_name,
            chunk_bytes=chunk_bytes
        )
    except (MissingFieldException, InvalidChunkRequestException) as e:
        return _error(status.HTTP_400_BAD_REQUEST, e.message)
    except (UploadConflictException, UploadClosedException) as e:
        return _error(status.HTTP_409_CONFLICT, e.message)
    except Exception:
        logger.exception(f"Chunk upload error for upload {upload_id}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to process chunk")

    if result.get("status") == CHUNK_RECEIVED:
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content=ChunkReceivedResponse(**result).model_dump(by_alias=True)
        )

    return ChunkUploadCompleteResponse(**result)


@router.get("/{upload_id}", response_model=UploadStatusResponse)
async def get_upload_status(upload_id: str, db: Session = Depends(get_db)):
    """
    Get the current status of a chunked upload.

    Returns which chunk indices have been received so a client can resend the missing ones.
    """
    chunk_service = ChunkService(db)
    try:
        return chunk_service.get_upload_status(upload_id)
    except UploadNotFoundException as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=e.message
        )


@router.delete("/{upload_id}", status_code=status.HTTP_204_NO_CONTENT)
async def abort_upload(upload_id: str, db: Session = Depends(get_db)):
    """
    Abort a chunked upload and release its buffered chunks.
    """
    chunk_service = ChunkService(db)
    try:
        chunk_service.abort_upload(upload_id)
        return None
    except UploadNotFoundException as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=e.message
        )
    except UploadClosedException as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=e.message
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )
