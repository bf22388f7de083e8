import datetime
import uuid
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette import status

from batchupload.db import session_store as store
from batchupload.db.session import get_db
from batchupload.services.auth_service import AuthService
from batchupload.services.batch_service import BatchService, ManifestEntry
from batchupload.services.chunk_service import ChunkService
from batchupload.services.status_service import BatchStatusService
from batchupload.services.storage_service import ChunkStorage
from batchupload.utils.types import UploadStatus

router = APIRouter(prefix="/uploads", tags=["uploads"])


class ManifestFileIn(BaseModel):
    filename: str
    size: int
    mime_type: Optional[str] = None
    last_modified: Optional[int] = None


class BatchInitIn(BaseModel):
    files: List[ManifestFileIn]
    batch_id: Optional[str] = None
    project_label: Optional[str] = None


class CreatedSessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    upload_id: uuid.UUID
    filename: str
    declared_size: int
    batch_position: int


class BatchInitOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    batch_id: str
    total_files: int
    sessions: List[CreatedSessionOut]


class ChunkIn(BaseModel):
    chunk_index: int
    chunk_data: str = Field(description="Base64 encoded chunk bytes.")
    is_last_chunk: bool = False


class ChunkProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    upload_id: uuid.UUID
    bytes_uploaded: int
    declared_size: int
    progress_percent: int
    is_complete: bool
    status: UploadStatus


class FileProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    upload_id: uuid.UUID
    filename: str
    declared_size: int
    bytes_uploaded: int
    progress_percent: int
    status: UploadStatus
    batch_position: int
    created_at: datetime.datetime
    updated_at: datetime.datetime


class BatchStatusOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    batch_id: str
    total_files: int
    completed_files: int
    batch_progress: int
    files: List[FileProgressOut]


class OutcomeIn(BaseModel):
    status: Literal["completed", "error"]
    error_message: Optional[str] = None


@router.post("/batches", response_model=BatchInitOut, status_code=status.HTTP_201_CREATED)
async def init_batch(
    body: BatchInitIn,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(AuthService.get_current_owner),
):
    manifest = [
        ManifestEntry(
            filename=file.filename,
            size=file.size,
            mime_type=file.mime_type,
            last_modified=file.last_modified,
        )
        for file in body.files
    ]

    return await BatchService.init_batch(db, owner_id, manifest, body.batch_id, body.project_label)


@router.get("/batches/{batch_id}", response_model=BatchStatusOut, status_code=status.HTTP_200_OK)
async def get_batch_status(
    batch_id: str,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(AuthService.get_current_owner),
):
    return await BatchStatusService.get_batch_status(db, batch_id, owner_id)


@router.get("/{upload_id}", response_model=FileProgressOut, status_code=status.HTTP_200_OK)
async def get_upload(
    upload_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(AuthService.get_current_owner),
):
    return await BatchStatusService.get_file_status(db, upload_id, owner_id)


@router.post("/{upload_id}/chunks", response_model=ChunkProgressOut, status_code=status.HTTP_200_OK)
async def upload_chunk(
    upload_id: uuid.UUID,
    chunk: ChunkIn,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(AuthService.get_current_owner),
):
    data = ChunkStorage.decode_chunk(chunk.chunk_data)

    # never write bytes for an upload the caller does not own
    await store.get(db, upload_id, owner_id)

    path = await ChunkStorage.write_chunk(owner_id, upload_id, chunk.chunk_index, data)
    try:
        return await ChunkService.apply_chunk(db, upload_id, owner_id, len(data), chunk.is_last_chunk)

    except Exception:
        await ChunkStorage.discard_chunk(path)
        raise


@router.post("/{upload_id}/outcome", response_model=FileProgressOut, status_code=status.HTTP_200_OK)
async def report_outcome(
    upload_id: uuid.UUID,
    outcome: OutcomeIn,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(AuthService.get_current_owner),
):
    return await ChunkService.mark_outcome(db, upload_id, owner_id, UploadStatus(outcome.status), outcome.error_message)
