import uuid
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from batchupload.db import session_store as store
from batchupload.services.errors import InvalidChunk, InvalidTransition
from batchupload.services.status_service import FileProgress, progress_percent
from batchupload.utils.types import UploadStatus

# Terminal outcomes reported by the storage side, and the statuses each may follow.
OUTCOME_SOURCES: Dict[UploadStatus, Tuple[UploadStatus, ...]] = {
    UploadStatus.COMPLETED: (UploadStatus.READY_FOR_PROCESSING,),
    UploadStatus.ERROR: (UploadStatus.PENDING, UploadStatus.UPLOADING, UploadStatus.READY_FOR_PROCESSING),
}


@dataclass
class ChunkProgress:
    upload_id: uuid.UUID
    bytes_uploaded: int
    declared_size: int
    progress_percent: int
    is_complete: bool
    status: UploadStatus


class ChunkService:
    @staticmethod
    async def apply_chunk(
            db: AsyncSession,
            upload_id: uuid.UUID,
            owner_id: str,
            chunk_length: int,
            is_last_chunk: bool,
    ) -> ChunkProgress:
        """Account for one received chunk of an upload.

        Chunks are trusted as reported: order, overlap and repeats are not
        checked, so a chunk submitted twice is counted twice.
        """
        if isinstance(chunk_length, bool) or not isinstance(chunk_length, int) or chunk_length <= 0:
            raise InvalidChunk("Chunk length must be a positive number of bytes.")

        row = await store.increment_progress(db, upload_id, owner_id, chunk_length, is_last_chunk)
        status = UploadStatus(row.status)

        logger.debug(f"Upload {upload_id}: +{chunk_length} bytes ({row.bytes_uploaded}/{row.declared_size})")
        if is_last_chunk:
            logger.info(f"Upload {upload_id} received its last chunk, {row.bytes_uploaded} bytes total, status {status}")

        return ChunkProgress(
            upload_id=row.id,
            bytes_uploaded=row.bytes_uploaded,
            declared_size=row.declared_size,
            progress_percent=progress_percent(row.bytes_uploaded, row.declared_size),
            is_complete=is_last_chunk,
            status=status,
        )

    @staticmethod
    async def mark_outcome(
            db: AsyncSession,
            upload_id: uuid.UUID,
            owner_id: str,
            status: UploadStatus,
            error_message: Optional[str] = None,
    ) -> FileProgress:
        """Record the storage side's verdict on an upload: completed or error."""
        if not status.is_terminal:
            raise InvalidTransition(f"Status '{status}' cannot be reported as an upload outcome.")

        if status == UploadStatus.COMPLETED:
            error_message = None

        moved = await store.transition(db, upload_id, owner_id, status, OUTCOME_SOURCES[status], error_message)
        session = await store.get(db, upload_id, owner_id)

        current = UploadStatus(session.status)
        if not moved and current != status:
            if current.is_terminal:
                raise InvalidTransition(f"Upload {upload_id} is already {current}.")
            raise InvalidTransition(f"Upload {upload_id} cannot move from '{current}' to '{status}'.")

        if moved:
            logger.info(f"Upload {upload_id} marked {status}" + (f": {error_message}" if error_message else ""))

        return FileProgress.from_session(session)
