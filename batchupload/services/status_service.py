import datetime
import uuid
from dataclasses import dataclass, field
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from batchupload.db import session_store as store
from batchupload.db.models.upload_session import UploadSession
from batchupload.utils.types import UploadStatus


def progress_percent(done: int, total: int) -> int:
    """Whole-number percentage of ``done`` over ``total``, rounding halves up.

    Not clamped: a session that received more bytes than it declared reports
    more than 100. An empty total reports 0.
    """
    if total <= 0:
        return 0

    return (200 * done + total) // (2 * total)


@dataclass
class FileProgress:
    upload_id: uuid.UUID
    filename: str
    declared_size: int
    bytes_uploaded: int
    progress_percent: int
    status: UploadStatus
    batch_position: int
    created_at: datetime.datetime
    updated_at: datetime.datetime

    @classmethod
    def from_session(cls, session: UploadSession) -> "FileProgress":
        return cls(
            upload_id=session.id,
            filename=session.filename,
            declared_size=session.declared_size,
            bytes_uploaded=session.bytes_uploaded,
            progress_percent=progress_percent(session.bytes_uploaded, session.declared_size),
            status=UploadStatus(session.status),
            batch_position=session.batch_position,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


@dataclass
class BatchStatus:
    batch_id: str
    total_files: int = 0
    completed_files: int = 0
    batch_progress: int = 0
    files: List[FileProgress] = field(default_factory=list)


class BatchStatusService:
    @staticmethod
    async def get_batch_status(db: AsyncSession, batch_id: str, owner_id: str) -> BatchStatus:
        sessions = await store.list_by_batch(db, batch_id, owner_id)
        files = [FileProgress.from_session(session) for session in sessions]

        total_files = len(files)
        completed_files = sum(1 for f in files if f.status == UploadStatus.COMPLETED)

        return BatchStatus(
            batch_id=batch_id,
            total_files=total_files,
            completed_files=completed_files,
            batch_progress=progress_percent(completed_files, total_files),
            files=files,
        )

    @staticmethod
    async def get_file_status(db: AsyncSession, upload_id: uuid.UUID, owner_id: str) -> FileProgress:
        return FileProgress.from_session(await store.get(db, upload_id, owner_id))
